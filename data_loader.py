from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

import streamlit as st

from settings import DEFAULT_LANG

logger = logging.getLogger(__name__)

LANG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "lang")


def _read_json_safe(path: str, default=None):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default if default is not None else {}
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON file %s: %s", path, e)
        return default if default is not None else {}


def lang_path(locale: str) -> str:
    # Locale tags come from the query string; keep them out of the filesystem path
    safe = "".join(ch for ch in (locale or "") if ch.isalnum() or ch in "-_")
    return os.path.join(LANG_DIR, f"{safe or DEFAULT_LANG}.json")


def read_lang(locale: str) -> Dict[str, str]:
    """
    Page strings for `locale`, layered over the default locale so a partial
    translation never leaves a blank label.
    """
    base: Dict[str, Any] = _read_json_safe(lang_path(DEFAULT_LANG), {})
    if locale and locale != DEFAULT_LANG:
        extra = _read_json_safe(lang_path(locale), {})
        if not extra:
            logger.info("No strings for locale %r; using %s", locale, DEFAULT_LANG)
        base = {**base, **extra}
    return {str(k): str(v) for k, v in base.items()}


@st.cache_data(show_spinner=False)
def load_lang(locale: str = DEFAULT_LANG) -> Dict[str, str]:
    return read_lang(locale)


def t(lang: Dict[str, str], key: str, **fmt: Any) -> str:
    """Look up `key` in a lang map, formatting `{name}` placeholders; the key itself if missing."""
    text = lang.get(key, key)
    if fmt:
        try:
            return text.format(**fmt)
        except (KeyError, IndexError, ValueError):
            return text
    return text
