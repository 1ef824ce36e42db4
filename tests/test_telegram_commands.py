from __future__ import annotations

import asyncio

from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_commands import (
    PROMPT_TEXT,
    SEARCH_LINK_PATTERN,
    STOPPED_TEXT,
    UPDATED_TEXT,
    handle_search_link,
    handle_start,
    handle_stop,
)

LINK = "https://r.onliner.by/ak/?rent_type%5B%5D=1_room#bounds%5Blb%5D%5Blat%5D=53.8"


class DummyEvent:
    def __init__(self, chat_id: int, text: str) -> None:
        self.chat_id = chat_id
        self.raw_text = text
        self.replies: list[str] = []

    async def reply(self, text: str, **kwargs) -> None:
        self.replies.append(text)


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "flatwatch.db"))
    storage.init_db()
    return storage


def test_start_without_link_prompts_and_creates_session(tmp_path) -> None:
    storage = _storage(tmp_path)
    event = DummyEvent(7, "/start")

    asyncio.run(handle_start(storage, event))

    assert event.replies == [PROMPT_TEXT]
    assert storage.get_subscriber(7) is not None
    assert storage.list_active_subscribers() == []


def test_start_does_not_clear_saved_link(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_url(7, LINK)
    event = DummyEvent(7, "/start")

    asyncio.run(handle_start(storage, event))

    assert storage.get_subscriber(7).url == LINK
    assert event.replies == [f"Current link is:\n\n{LINK}"]


def test_link_then_start_shows_current_link(tmp_path) -> None:
    storage = _storage(tmp_path)

    link_event = DummyEvent(7, LINK)
    asyncio.run(handle_search_link(storage, link_event))
    start_event = DummyEvent(7, "/start")
    asyncio.run(handle_start(storage, start_event))

    assert link_event.replies == [UPDATED_TEXT]
    assert start_event.replies == [f"Current link is:\n\n{LINK}"]
    assert storage.get_subscriber(7).url == LINK


def test_stop_clears_link(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_url(7, LINK)
    event = DummyEvent(7, "/stop")

    asyncio.run(handle_stop(storage, event))

    assert event.replies == [STOPPED_TEXT]
    assert storage.get_subscriber(7).url is None


def test_search_link_pattern() -> None:
    assert SEARCH_LINK_PATTERN.search(f"look: {LINK}")
    assert SEARCH_LINK_PATTERN.search("HTTPS://R.ONLINER.BY/AK/")
    assert not SEARCH_LINK_PATTERN.search("https://catalog.onliner.by/")
