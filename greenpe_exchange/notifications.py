"""
User-facing notices.

The engine calls ``notify`` synchronously; the outer layer decides how to
show the message.
"""

from typing import List, Protocol

from greenpe_exchange.logging_config import logger


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier: writes notices to the package log"""

    def notify(self, message: str) -> None:
        logger.info(f"NOTICE: {message}")


class RecordingNotifier(LoggingNotifier):
    """Keeps every notice, newest last"""

    def __init__(self):
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        super().notify(message)
        self.messages.append(message)

    @property
    def last(self) -> str | None:
        return self.messages[-1] if self.messages else None
