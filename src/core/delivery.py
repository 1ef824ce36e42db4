"""Delivery outcome classification (core domain)."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from core.models import DeliveryOutcome, DeliveryStatus

# Telegram reports blocked bots and deactivated users as 403 Forbidden.
RECIPIENT_UNREACHABLE_CODE = 403


class SideEffect(str, Enum):
    """State change requested by a finished delivery."""

    NONE = "none"
    UNSUBSCRIBE = "unsubscribe"
    LOG = "log"


def delivered() -> DeliveryOutcome:
    return DeliveryOutcome(status=DeliveryStatus.DELIVERED)


def classify_delivery_error(code: Optional[int], reason: str) -> DeliveryOutcome:
    """Map a delivery error code to a permanent or transient failure."""

    try:
        numeric = int(code) if code is not None else None
    except (TypeError, ValueError):
        numeric = None

    if numeric == RECIPIENT_UNREACHABLE_CODE:
        return DeliveryOutcome(status=DeliveryStatus.PERMANENT_FAILURE, reason=reason)
    return DeliveryOutcome(status=DeliveryStatus.TRANSIENT_FAILURE, reason=reason)


def side_effect_for(outcome: DeliveryOutcome) -> SideEffect:
    if outcome.status is DeliveryStatus.PERMANENT_FAILURE:
        return SideEffect.UNSUBSCRIBE
    if outcome.status is DeliveryStatus.TRANSIENT_FAILURE:
        return SideEffect.LOG
    return SideEffect.NONE
