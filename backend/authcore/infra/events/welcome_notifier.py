# authcore/infra/events/welcome_notifier.py
from __future__ import annotations

import logging

from authcore.services.auth.dto import UserRegistered

log = logging.getLogger(__name__)


def send_welcome_notification(event: UserRegistered) -> None:
    """
    Deliver the welcome notification for a freshly registered user.

    There is no outbound channel configured; delivery is recorded in the
    application log (user id only, no email).
    """
    log.info(
        "notification.welcome",
        extra={"user_id": event.user_id, "event": "notification.welcome"},
    )
