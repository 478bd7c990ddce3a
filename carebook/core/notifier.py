# carebook/core/notifier.py
from __future__ import annotations

from typing import Any, Dict, Protocol

from carebook.core.logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    """Side channel for booking events (push, socket rooms, e-mail...)."""

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None: ...


class LoggingNotifier:
    """
    Default notifier: records the event in the structured log only.
    Delivery to patients/doctors is handled by a separate service.
    """

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        logger.info("notification_published", channel=channel, notification=event, **payload)
