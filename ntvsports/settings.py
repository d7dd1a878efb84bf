"""Runtime settings read from the environment."""

from __future__ import annotations

import os

CACHE_TTL = int(os.environ.get("NTV_CACHE_TTL_SEC", "300"))
REQUEST_TIMEOUT = int(os.environ.get("NTV_REQUEST_TIMEOUT_SEC", "15"))
RETRY_COUNT = int(os.environ.get("NTV_RETRY_COUNT", "2"))
BACKOFF_FACTOR = float(os.environ.get("NTV_BACKOFF_FACTOR", "1.0"))
MAX_WORKERS = int(os.environ.get("NTV_MAX_WORKERS", "8"))
LOG_LEVEL = os.environ.get("NTV_LOG_LEVEL", "INFO").upper()

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "7000"))
