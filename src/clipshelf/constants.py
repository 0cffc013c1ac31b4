#!/usr/bin/env python3
"""Constants for clipshelf storage, synchronization and refresh behavior.

These constants control where history is persisted, how long the syncing
indicator stays visible, and how transient store failures are retried.
"""
from pathlib import Path

# Default SQLite database location when neither --db nor CLIPSHELF_DB is set.
DEFAULT_DB_PATH: Path = Path.home() / ".local" / "share" / "clipshelf" / "clipshelf.db"

# Environment variable consulted for the database path.
DB_PATH_ENVVAR: str = "CLIPSHELF_DB"

# Collection holding one document per clipboard item.
ITEMS_COLLECTION: str = "clipboard-items"

# Collection holding the singleton settings document.
SETTINGS_COLLECTION: str = "app-settings"

# Fixed id of the settings document.
SETTINGS_ID: str = "app-settings"

# Minimum time in seconds the syncing indicator stays visible once shown.
MIN_SYNC_INDICATOR_SECONDS: float = 0.4

# Interval in seconds between silent background refreshes.
DEFAULT_REFRESH_INTERVAL: float = 5.0

# Image type every stored image payload is transcoded to.
CANONICAL_MIME_TYPE: str = "image/png"

# Retry parameters for a locked SQLite database.
# Initial delay between attempts in seconds.
STORE_RETRY_INITIAL_WAIT: float = 0.05

# Maximum delay between attempts in seconds.
STORE_RETRY_MAX_WAIT: float = 1.0

# Attempts before the failure is surfaced as a StoreError.
STORE_RETRY_ATTEMPTS: int = 5

# Seconds to wait for wl-copy or xclip to take an image payload.
CLIPBOARD_COMMAND_TIMEOUT: float = 2.0
