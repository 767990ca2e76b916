"""
Persistence interface for the registration orchestrator.

The orchestrator only talks to this interface, so tests can run the whole
registration pipeline against an in-memory implementation.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence


class RegistrationRepository(ABC):
    """
    Implementations:
    - SqlRegistrationRepository: SQLAlchemy AsyncSession (infrastructure layer)
    """

    @abstractmethod
    async def get_event(self, event_id: int):
        """Event with its form fields loaded, or None."""

    @abstractmethod
    async def count_confirmed(self, event_id: int) -> int:
        pass

    @abstractmethod
    async def get_registration(self, event_id: int, user_id: int):
        """Registration with its event and form responses loaded, or None."""

    @abstractmethod
    async def create_registration(self, registration, responses: Sequence) -> object:
        """
        Persist a registration and its form responses as one unit and commit.
        Raises ConflictError when the (event, user) pair already exists.
        """

    @abstractmethod
    async def update_registration(self, registration, responses: Optional[Sequence]) -> object:
        """
        Persist registration changes and commit. When `responses` is not None
        the existing form responses are replaced by it.
        """

    @abstractmethod
    async def cancel_registration(self, registration) -> int:
        """Cancel the registration and its active guests, commit, return guests cancelled."""

    @abstractmethod
    async def log_activity(self, user_id: int, action: str, details: dict) -> None:
        pass
