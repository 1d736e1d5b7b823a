"""Runtime settings for the CLI and host applications.

Settings are read from environment variables (optionally populated from a
local ``.env`` by the CLI via ``python-dotenv``). Core functions never read
the environment themselves; callers pass resolved values explicitly.

Variables
---------
- ``EXPENSE_INSIGHTS_DEFAULT_CURRENCY``: fallback currency code for detected
  candidates and exports (default ``"MYR"``).
- ``EXPENSE_INSIGHTS_LOG_LEVEL``: logging level name or number (optional).
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_CURRENCY = "MYR"

_CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")


def normalize_currency(value: str) -> str:
    """Validate a 3-letter currency code and return it upper-cased."""

    code = value.strip()
    if not _CURRENCY_RE.fullmatch(code):
        raise ValueError(f"invalid currency code: {value!r} (expected 3 letters)")
    return code.upper()


@dataclass(frozen=True, slots=True)
class Settings:
    default_currency: str = DEFAULT_CURRENCY
    log_level: str | None = None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``).

    Blank values are treated as unset. An invalid currency raises
    ``ValueError`` naming the offending variable.
    """

    env = os.environ if environ is None else environ

    currency_raw = (env.get("EXPENSE_INSIGHTS_DEFAULT_CURRENCY") or "").strip()
    try:
        currency = normalize_currency(currency_raw) if currency_raw else DEFAULT_CURRENCY
    except ValueError as exc:
        raise ValueError(f"EXPENSE_INSIGHTS_DEFAULT_CURRENCY: {exc}") from exc

    level = (env.get("EXPENSE_INSIGHTS_LOG_LEVEL") or "").strip() or None

    return Settings(default_currency=currency, log_level=level)


__all__ = ["DEFAULT_CURRENCY", "Settings", "load_settings", "normalize_currency"]
