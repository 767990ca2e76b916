"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .redis_client import get_redis, close_redis, RedisClient
from .sql_registration_repository import SqlRegistrationRepository

__all__ = ['get_redis', 'close_redis', 'RedisClient', 'SqlRegistrationRepository']
