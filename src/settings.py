"""Static configuration for carscope.

All user-editable settings (polling, marketplace, services, logging) live in
a single JSON file for quick edits without touching Python. Secrets stay in
.env and are read where they are needed.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Where to store the SQLite database.
DB_PATH = os.path.join(PROJECT_ROOT, "carscope.db")

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Polling loop: fixed interval between cycles, no backoff, and the place
# distances are measured from.
_polling = _CONFIG.get("polling", {})
POLL_INTERVAL_SECONDS = float(_polling.get("interval_seconds", 45))
ORIGIN = _polling.get("origin", "Sevran")

# Marketplace search page; category 2 is cars on leboncoin.
_marketplace = _CONFIG.get("marketplace", {})
MARKETPLACE_BASE_URL = _marketplace.get("base_url", "https://www.leboncoin.fr/recherche")
MARKETPLACE_CATEGORY = str(_marketplace.get("category", "2"))

# Remote services. API keys come from .env (ZYTE_API_KEY, GOOGLE_MAPS_API_KEY).
EXTRACTION_ENDPOINT = _CONFIG.get("extraction", {}).get("endpoint", "https://api.zyte.com/v1/extract")
DISTANCE_ENDPOINT = _CONFIG.get("distance", {}).get(
    "endpoint", "https://maps.googleapis.com/maps/api/distancematrix/json"
)

# Notification and command surface settings.
MAX_IMAGES = int(_CONFIG.get("notifications", {}).get("max_images", 5))
FAVORITES_PER_PAGE = int(_CONFIG.get("favorites", {}).get("per_page", 10))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
