"""
Shared FastAPI dependencies: cache invalidator and registration orchestrator.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.db.session import get_db
from alumni_api.infrastructure.sql_registration_repository import SqlRegistrationRepository
from alumni_api.services.audit_service import client_info
from alumni_api.services.cache_invalidation import CacheInvalidator
from alumni_api.services.cache_service import get_cache
from alumni_api.services.interfaces.cache import CacheBackend
from alumni_api.services.notification_service import NotificationDispatcher, get_notification_dispatcher
from alumni_api.services.registration_service import RegistrationOrchestrator


def get_invalidator(cache: CacheBackend = Depends(get_cache)) -> CacheInvalidator:
    return CacheInvalidator(cache)


def get_registration_orchestrator(
    request: Request,
    db: AsyncSession = Depends(get_db),
    invalidator: CacheInvalidator = Depends(get_invalidator),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> RegistrationOrchestrator:
    ip_address, user_agent = client_info(request)
    repository = SqlRegistrationRepository(db, ip_address=ip_address, user_agent=user_agent)
    return RegistrationOrchestrator(repository, invalidator, notifications)
