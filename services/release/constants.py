"""Constants shared across the release host modules."""

from __future__ import annotations

API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
USER_AGENT = "OnionFruit-Deploy"

DEFAULT_REQUEST_TIMEOUT = 30
UPLOAD_TIMEOUT = 600
RECENT_RELEASES_PAGE_SIZE = 5

DMG_CONTENT_TYPE = "application/x-apple-diskimage"
