import asyncio
import logging
from typing import Optional

import streamlit as st

from data_loader import load_lang, t
from form_renderer import render_page
from form_session import FormSession
from logging_setup import configure_logging
from rpc_client import FormRpcClient
from settings import load_settings

SESSION_KEY = "_form_session"

# ---------------- App Config ----------------

st.set_page_config(page_title="Questionário", layout="centered")

settings = load_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("main")

form_id: str = (st.query_params.get("form_id") or "").strip()
lang_tag: str = (st.query_params.get("lang") or settings.default_lang).strip()
lang_map = load_lang(lang_tag)

if not form_id:
    st.info(t(lang_map, "page.missing_form"))
    st.stop()

if not settings.rpc_url:
    st.error(t(lang_map, "page.config_error", message="FORM_RPC_URL"))
    st.stop()


def _enter_route(form_id: str, lang: str) -> FormSession:
    """
    One session per (form, language). Landing on a different form or language
    tears the old session down and starts a fresh one.
    """
    current: Optional[FormSession] = st.session_state.get(SESSION_KEY)
    if current is not None and current.form_id == form_id and current.lang == lang and not current.closed:
        return current
    if current is not None:
        logger.info("leaving form %s", current.form_id)
        current.close()
        # Widget state of the old form must not leak into the new one
        for k in [k for k in st.session_state.keys() if str(k).startswith("q__")]:
            del st.session_state[k]
    client = FormRpcClient(settings.rpc_url, settings.rpc_key)
    session = FormSession(client, form_id, lang)
    st.session_state[SESSION_KEY] = session
    return session


session = _enter_route(form_id, lang_tag)

if session.payload is None and session.error is None:
    with st.spinner(t(lang_map, "page.loading")):
        asyncio.run(session.load())

render_page(session, lang_map)
