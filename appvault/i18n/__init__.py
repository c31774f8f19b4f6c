"""Message catalogs for user-visible backup and restore texts.

Catalogs are JSON files named after their locale (``en_US.json``,
``zh_CN.json``) beside this module. A lookup falls back to the English
catalog, then to the key itself.
"""

from __future__ import annotations

import json
from functools import cache
from pathlib import Path
from typing import Any

from loguru import logger

FALLBACK_LANGUAGE = "en_US"

_CATALOG_DIR = Path(__file__).parent
_active = FALLBACK_LANGUAGE


class _Placeholders(dict):
    """Leave unknown ``{name}`` fields in place instead of raising."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def available_languages() -> tuple[str, ...]:
    return tuple(sorted(p.stem for p in _CATALOG_DIR.glob("*.json")))


@cache
def _catalog(language: str) -> dict[str, str]:
    try:
        with open(_CATALOG_DIR / f"{language}.json", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Message catalog '{language}' unavailable: {e}")
        return {}


def set_language(language: str) -> str:
    """Activate ``language`` when a catalog exists for it. Returns the active code."""
    global _active
    _active = language if language in available_languages() else FALLBACK_LANGUAGE
    return _active


def t(key: str, **kwargs: Any) -> str:
    """Look up ``key`` in the active catalog and fill ``{name}`` placeholders.

        t("backup.err_prepare", message="disk full")
        # "Failed to prepare backup: disk full" (en_US)
    """
    text = _catalog(_active).get(key) or _catalog(FALLBACK_LANGUAGE).get(key, key)
    return text.format_map(_Placeholders(kwargs)) if kwargs else text
