import streamlit as st

FLASH_KEY = "_flash"


def wide_button(label: str, **kwargs):
    """Render a full-width Streamlit button, safely ignoring any width kwarg.

    - Pops an accidental "width" kwarg to avoid TypeError on st.button
    - Defaults to use_container_width=True so the button spans its container
    """
    kwargs.pop("width", None)
    kwargs.setdefault("use_container_width", True)
    return st.button(label, **kwargs)


def flash(kind: str, message: str) -> None:
    """Queue a page message from a widget callback; shown on the next run.

    kind is one of "success", "warning", "error", "info".
    """
    st.session_state.setdefault(FLASH_KEY, []).append((kind, message))


def show_flashes() -> None:
    for kind, message in st.session_state.pop(FLASH_KEY, []) or []:
        getattr(st, kind, st.info)(message)
