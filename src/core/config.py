"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FeedConfig:
    """Upstream search feed settings for the listing fetcher."""

    search_endpoint: str
    timeout_seconds: Optional[float]


@dataclass(frozen=True)
class NotificationConfig:
    """Notification settings consumed by notifier adapters."""

    view_button_text: str
