"""
Configuration settings for the directory listing scraper.
"""

import logging
import os
from pathlib import Path

# Browser headless mode
# False = browser window visible (useful for debugging block pages)
# True = browser runs in background (faster, less resource intensive)
HEADLESS = True

logger = logging.getLogger(__name__)


def read_page_limit(raw):
    """Parse a page limit setting; blank or invalid values mean unlimited."""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring SCRAPER_DEFAULT_PAGE_LIMIT={raw!r}: not an integer")
        return None
    if value < 1:
        logger.warning(f"Ignoring SCRAPER_DEFAULT_PAGE_LIMIT={raw!r}: must be at least 1")
        return None
    return value


# Default maximum number of result pages per run (None = follow "next" until it disappears)
# Override with SCRAPER_DEFAULT_PAGE_LIMIT
DEFAULT_PAGE_LIMIT = read_page_limit(os.environ.get("SCRAPER_DEFAULT_PAGE_LIMIT"))

# Page load condition passed to the browser and its timeout
WAIT_UNTIL = "networkidle"
NAVIGATION_TIMEOUT_MS = 60000

# How long to wait for the listing rows to appear after navigation
CONTENT_TIMEOUT_MS = 15000

# Timeout in seconds for the ad-click redirect probe
PROBE_TIMEOUT = 10.0

# Browser fingerprint used by curl_cffi for the redirect probe
IMPERSONATE = "chrome120"

# Rate limiting: delay in seconds before moving to the next result page
PAGE_DELAY = 2.0

# Delay in seconds after each record whose website needed a network probe
RECORD_DELAY = 0.2

# Directory where export files are written and served from
OUTPUT_DIR = Path(os.environ.get("SCRAPER_OUTPUT_DIR", "downloads"))

# Logging
LOG_LEVEL = os.environ.get("SCRAPER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level=None):
    """Configure root logging for the CLI and the API server."""
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format=LOG_FORMAT
    )
