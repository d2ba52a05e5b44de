# settings.py
"""
Process-level configuration, read once from the environment (or .env).

CORS:
- EXTENSION_IDS        comma-separated Chrome extension ids
                       (defaults to PROD + TEST ids below)
- CORS_EXTRA_ORIGINS   comma-separated extra origins to allow

HTTP:
- HTTP_TIMEOUT_SECONDS timeout for outbound calls to Airtable / HubSpot
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

# ---------- Defaults ----------

DEFAULT_EXTENSION_IDS = [
    "eilckjfihngldoedpfdnhpponpbaphig",  # PROD (Chrome Web Store)
    "fapmbomkbbckmnpbeecncppfbmcabmbc",  # TEST (dev mode)
]

STATIC_ORIGINS = [
    "http://localhost:3000",
    "https://backend-selltionia.vercel.app",
]

DEFAULT_ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With"
PREFLIGHT_MAX_AGE = 86400


def http_timeout() -> float:
    return float(os.environ.get("HTTP_TIMEOUT_SECONDS", "15"))


def parse_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [x.strip() for x in value.split(",") if x.strip()]


def _dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


# ---------- CORS ----------

@dataclass(frozen=True)
class CorsConfig:
    """
    Allowed browser origins for the extension-facing functions.

    Built once per process (see load_cors_config) and handed to each
    handler class; nothing mutates it afterwards.
    """

    allowed_origins: Tuple[str, ...]
    allow_headers: str = DEFAULT_ALLOW_HEADERS
    max_age: int = PREFLIGHT_MAX_AGE

    def allow_origin(self, origin: Optional[str]) -> str:
        """Echo the request origin if allowed, else the first allowed origin."""
        if self.is_allowed(origin):
            return origin
        return self.allowed_origins[0] if self.allowed_origins else ""

    def is_allowed(self, origin: Optional[str]) -> bool:
        return bool(origin) and origin in self.allowed_origins


def load_cors_config() -> CorsConfig:
    extension_ids = parse_csv(os.environ.get("EXTENSION_IDS")) or DEFAULT_EXTENSION_IDS
    extension_origins = [f"chrome-extension://{ext_id}" for ext_id in extension_ids]
    extra = parse_csv(os.environ.get("CORS_EXTRA_ORIGINS"))

    origins = _dedupe(extension_origins + STATIC_ORIGINS + extra)
    return CorsConfig(allowed_origins=tuple(origins))
