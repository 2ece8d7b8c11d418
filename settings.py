"""
Runtime settings for the questionnaire page.

Each value is read from an environment variable first, then from Streamlit
secrets, then falls back to a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st

DEFAULT_LANG = "pt-BR"


def _setting(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val:
        return val
    # st.secrets raises when no secrets.toml exists at all
    try:
        return st.secrets[name]
    except Exception:
        return default


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    rpc_key: str
    default_lang: str = DEFAULT_LANG
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        rpc_url=(_setting("FORM_RPC_URL", "") or "").strip(),
        rpc_key=(_setting("FORM_RPC_KEY", "") or "").strip(),
        default_lang=_setting("FORM_DEFAULT_LANG", DEFAULT_LANG) or DEFAULT_LANG,
        log_level=(_setting("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
