"""Telegram Bot notification adapter.

Sends each listing as a photo with a caption and a single "View" button via
a Telethon client logged in with a bot token.
"""

from __future__ import annotations

import logging

from telethon import Button, errors

from adapters.notification_formatting import format_caption
from core.config import NotificationConfig
from core.delivery import RECIPIENT_UNREACHABLE_CODE, classify_delivery_error, delivered
from core.models import DeliveryOutcome, Listing

LOGGER = logging.getLogger(__name__)

# Telethon reports most of these as 400, but they all mean the chat is gone.
UNREACHABLE_ERRORS = (
    errors.ForbiddenError,
    errors.UserIsBlockedError,
    errors.InputUserDeactivatedError,
    errors.UserDeactivatedError,
)


def _error_code(exc: errors.RPCError):
    if isinstance(exc, UNREACHABLE_ERRORS):
        return RECIPIENT_UNREACHABLE_CODE
    return exc.code


class TelegramBotNotifier:
    """Notifier adapter that turns delivery errors into DeliveryOutcome values."""

    def __init__(self, client, config: NotificationConfig) -> None:
        self._client = client
        self._config = config

    async def notify(self, recipient_id: int, listing: Listing) -> DeliveryOutcome:
        """Send the listing notification to one recipient."""

        caption = format_caption(listing)
        buttons = [[Button.url(self._config.view_button_text, listing.url)]]
        try:
            if listing.photo_url:
                await self._client.send_file(
                    recipient_id,
                    listing.photo_url,
                    caption=caption,
                    buttons=buttons,
                )
            else:
                await self._client.send_message(
                    recipient_id,
                    caption,
                    buttons=buttons,
                    link_preview=False,
                )
        except errors.RPCError as exc:
            return classify_delivery_error(_error_code(exc), f"{type(exc).__name__}: {exc}")
        except OSError as exc:
            return classify_delivery_error(None, f"{type(exc).__name__}: {exc}")

        LOGGER.debug("Listing %s sent to %s", listing.external_id, recipient_id)
        return delivered()
