"""
Notification sender interface.
Delivery (email, push) is an external collaborator; the services only
need fire-and-forget send methods.
"""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """
    Implementations:
    - LogNotifier: records the notification in the structured log
    """

    @abstractmethod
    async def send_registration_confirmation(self, user, event, registration) -> None:
        pass

    @abstractmethod
    async def send_guest_added(self, user, event, guest) -> None:
        pass

    @abstractmethod
    async def send_merchandise_confirmation(self, user, event, order: dict) -> None:
        pass
