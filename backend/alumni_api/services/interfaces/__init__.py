"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .cache import CacheBackend
from .notifier import Notifier
from .registration_repository import RegistrationRepository

__all__ = ['CacheBackend', 'Notifier', 'RegistrationRepository']
