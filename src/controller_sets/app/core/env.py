from __future__ import annotations

import os

PROD_NAMES = frozenset({"prod", "production"})


def is_prod(raw: str | None = None) -> bool:
    """True when APP_ENV (or ``raw``) names production; logging defaults key off this."""
    value = os.getenv("APP_ENV", "") if raw is None else raw
    return value.strip().lower() in PROD_NAMES
