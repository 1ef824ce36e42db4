"""Application entry point for the flatwatch bot."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from art import tprint
from dotenv import load_dotenv

import settings
from adapters.building_seed import load_building_dataset, seed_buildings
from adapters.onliner_fetcher import OnlinerFetcher
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_commands import register_handlers
from client import bot_token, build_client
from core.building_resolver import BuildingResolver
from core.config import FeedConfig, NotificationConfig
from core.dedup import AdmitGate
from core.processor import ListingDispatcher

NAME = "FLATWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/flatwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _init_storage() -> SQLiteStorage:
    logger = logging.getLogger(__name__)

    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    seed_buildings(storage, load_building_dataset(settings.BUILDINGS_DATASET_PATH))
    logger.info("%s buildings available for lookups", storage.count_buildings())
    return storage


def _build_dispatcher(storage: SQLiteStorage, client) -> tuple[ListingDispatcher, OnlinerFetcher]:
    fetcher = OnlinerFetcher(
        FeedConfig(
            search_endpoint=settings.SEARCH_ENDPOINT,
            timeout_seconds=settings.FEED_TIMEOUT_SECONDS,
        )
    )
    notifier = TelegramBotNotifier(
        client,
        NotificationConfig(view_button_text=settings.VIEW_BUTTON_TEXT),
    )
    gate = AdmitGate(storage, BuildingResolver(storage, storage))
    dispatcher = ListingDispatcher(
        sessions=storage,
        fetcher=fetcher,
        gate=gate,
        notifier=notifier,
    )
    return dispatcher, fetcher


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting flatwatch")

    # Storage errors here are fatal on purpose: nothing works without the DB.
    storage = _init_storage()

    client = build_client()
    client.start(bot_token=bot_token())
    register_handlers(client, storage)

    dispatcher, fetcher = _build_dispatcher(storage, client)

    client.loop.run_until_complete(dispatcher.run())

    # Started after the first run so two runs never overlap.
    if settings.SCHEDULE:
        scheduler = AsyncIOScheduler(event_loop=client.loop)
        scheduler.add_job(
            dispatcher.run,
            CronTrigger.from_crontab(settings.SCHEDULE),
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        logger.info("Dispatch scheduled with cron %r", settings.SCHEDULE)
    else:
        logger.info("No schedule configured, dispatched once at startup")

    logger.info("Bot connected. Listening for commands...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(fetcher.close())


def _tick() -> None:
    _configure_logging()
    storage = _init_storage()

    client = build_client()
    client.start(bot_token=bot_token())
    dispatcher, fetcher = _build_dispatcher(storage, client)

    async def _run_once() -> None:
        try:
            await dispatcher.run()
        finally:
            await fetcher.close()
            await client.disconnect()

    client.loop.run_until_complete(_run_once())


def _seed() -> None:
    _configure_logging()
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    inserted = seed_buildings(storage, load_building_dataset(settings.BUILDINGS_DATASET_PATH))
    print(f"Inserted {inserted} buildings ({storage.count_buildings()} total).")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="flatwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot and the scheduled dispatch loop")
    subparsers.add_parser("tick", help="Run the dispatch loop once and exit")
    subparsers.add_parser("seed", help="Seed the buildings table from the reference dataset")

    args = parser.parse_args(argv)
    if args.command == "tick":
        _tick()
        return
    if args.command == "seed":
        _seed()
        return
    _run()


if __name__ == "__main__":
    main()
