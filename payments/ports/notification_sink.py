"""
NotificationSink port.
"""
from abc import ABC, abstractmethod


class NotificationSink(ABC):
    """Port delivering a message to a person."""

    @abstractmethod
    async def notify(self, recipient: str, subject: str, body: str) -> None:
        pass
