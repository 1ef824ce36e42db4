"""Telegram bot command handlers.

The handlers only read and write the saved search URL through the injected
session store; everything else happens in the dispatch loop.
"""

from __future__ import annotations

import functools
import logging
import re

from telethon import events

from core.ports import SessionStorePort

LOGGER = logging.getLogger(__name__)

SEARCH_LINK_PATTERN = re.compile(r"https://r\.onliner\.by/ak/", re.IGNORECASE)

PROMPT_TEXT = "Please, send a link from the Onliner with preselected filters."
CURRENT_LINK_TEXT = "Current link is:\n\n{url}"
STOPPED_TEXT = (
    "Sorry if you were insulted by this bot, I've just tried to make this world a bit better."
)
UPDATED_TEXT = "Thanks, the link has been updated."


async def handle_start(sessions: SessionStorePort, event) -> None:
    sessions.ensure_session(event.chat_id)
    subscriber = sessions.get_subscriber(event.chat_id)

    if subscriber is None or not subscriber.url:
        text = PROMPT_TEXT
    else:
        text = CURRENT_LINK_TEXT.format(url=subscriber.url)
    await event.reply(text, link_preview=False)


async def handle_stop(sessions: SessionStorePort, event) -> None:
    sessions.clear_url(event.chat_id)
    LOGGER.info("Chat %s unsubscribed", event.chat_id)
    await event.reply(STOPPED_TEXT)


async def handle_search_link(sessions: SessionStorePort, event) -> None:
    sessions.set_url(event.chat_id, event.raw_text)
    LOGGER.info("Chat %s saved a search link", event.chat_id)
    await event.reply(UPDATED_TEXT)


def register_handlers(client, sessions: SessionStorePort) -> None:
    """Wire the command handlers onto a Telethon client."""

    client.add_event_handler(
        functools.partial(handle_start, sessions),
        events.NewMessage(incoming=True, pattern=r"^/start\b"),
    )
    client.add_event_handler(
        functools.partial(handle_stop, sessions),
        events.NewMessage(incoming=True, pattern=r"^/stop\b"),
    )
    client.add_event_handler(
        functools.partial(handle_search_link, sessions),
        events.NewMessage(incoming=True, pattern=lambda text: bool(SEARCH_LINK_PATTERN.search(text))),
    )
