"""Static configuration for flatwatch.

All user-editable settings (feed, schedule, storage, notifications, logging)
live in a single JSON file for quick edits without touching Python. Secrets
stay in the environment (.env).
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Upstream search feed. A null timeout means the request may wait forever.
_feed = _CONFIG.get("feed", {})
SEARCH_ENDPOINT = _feed.get("search_endpoint", "https://ak.api.onliner.by/search/apartments")
_timeout = _feed.get("timeout_seconds")
FEED_TIMEOUT_SECONDS = float(_timeout) if _timeout is not None else None

# Cron expression for the dispatch loop; null runs it once at startup only.
SCHEDULE = _CONFIG.get("schedule") or None

# Where to store the SQLite database.
_storage = _CONFIG.get("storage", {})
DB_PATH = _project_path(_storage.get("db_path", "flatwatch.db"))

# Reference dataset used to seed the buildings table.
_buildings = _CONFIG.get("buildings", {})
BUILDINGS_DATASET_PATH = _project_path(_buildings.get("dataset_path", "data/buildings.json"))

_notifications = _CONFIG.get("notifications", {})
VIEW_BUTTON_TEXT = _notifications.get("view_button_text", "View")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
