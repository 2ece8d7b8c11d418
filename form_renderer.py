"""
Question rendering for the intake questionnaire (Streamlit).

Exports:
- render_question(question, session, lang) -> None
- render_page(session, lang) -> None
- widget_key(question_code, *parts) -> str

Every variant in QuestionType has exactly one renderer in _RENDERERS; tags we
do not know go to _render_unsupported. Widget callbacks run the codec, then
the answer sync, and the committed value shows up on the next script run.
"""

from __future__ import annotations

import asyncio
import datetime
import functools
import logging
from typing import Any, Callable, Dict, List

import streamlit as st

import value_codec
from app.ui import flash, show_flashes, wide_button
from data_loader import t
from errors import PersistFailure, SubmitFailure, ValidationFailure, describe_missing
from form_models import Question, QuestionType
from form_session import FormSession
from table_editor import TableEditor

logger = logging.getLogger(__name__)

Renderer = Callable[[Question, FormSession, Dict[str, str]], None]

DATE_MIN = datetime.date(1900, 1, 1)
DATE_MAX = datetime.date(2100, 12, 31)
TABLE_FIELDS = ("name", "service")


def run_async(coro: Any) -> Any:
    return asyncio.run(coro)


def widget_key(code: str, *parts: Any) -> str:
    return "__".join(["q", code, *(str(p) for p in parts)])


# ---------------- callbacks ----------------

def _commit_edit(session: FormSession, code: str, value: Any) -> None:
    try:
        run_async(session.answers.persist_answer(code, value))
    except PersistFailure:
        # Recorded on the field; render_question shows it under the widget
        return


def _on_answer_edit(session: FormSession, code: str, key: str, encode: Callable[[Any], Any]) -> None:
    raw = st.session_state.get(key)
    try:
        value = encode(raw)
    except ValueError as e:
        logger.info("edit of %s rejected by codec: %s", code, e)
        session.answers.reject(code, str(e))
        return
    _commit_edit(session, code, value)


def _on_multi_toggle(session: FormSession, code: str, option_value: str, key: str) -> None:
    question = session.find_question(code)
    if question is None:
        return
    checked = bool(st.session_state.get(key))
    value = value_codec.toggle_multi_select(
        question.answer, [o.value for o in question.options], option_value, checked
    )
    _commit_edit(session, code, value)


def _on_row_field(editor: TableEditor, row_index: int, field: str, key: str) -> None:
    editor.update_field(row_index, field, st.session_state.get(key))


def _on_save_row(editor: TableEditor, row_index: int, lang: Dict[str, str]) -> None:
    try:
        saved = run_async(editor.save_row(row_index))
    except PersistFailure as e:
        flash("error", t(lang, "table.row_error", message=e.message))
        return
    if saved:
        flash("success", t(lang, "table.row_saved"))


def _on_add_row(editor: TableEditor) -> None:
    run_async(editor.add_row())


def _on_submit(session: FormSession, lang: Dict[str, str]) -> None:
    try:
        result = run_async(session.submit())
    except ValidationFailure as e:
        flash("warning", t(lang, "submit.missing", missing=describe_missing(e.missing_required)))
        return
    except SubmitFailure as e:
        flash("error", t(lang, "submit.error", message=e.message))
        return
    if result is not None:
        flash("success", t(lang, "submit.success"))


# ---------------- per-variant renderers ----------------

def _render_boolean(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    key = widget_key(q.code)
    index = 0 if q.answer is True else 1 if q.answer is False else None
    labels = {True: t(lang, "boolean.yes"), False: t(lang, "boolean.no")}
    st.radio(
        q.label,
        options=[True, False],
        index=index,
        format_func=lambda v: labels[v],
        horizontal=True,
        key=key,
        on_change=_on_answer_edit,
        args=(session, q.code, key, value_codec.encode_boolean),
        label_visibility="collapsed",
    )


def _render_single_select(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    key = widget_key(q.code)
    values = [o.value for o in q.options]
    labels = {o.value: o.label for o in q.options}
    index = values.index(q.answer) if q.answer in values else None
    st.selectbox(
        q.label,
        options=values,
        index=index,
        format_func=lambda v: labels.get(v, v),
        placeholder=t(lang, "select.placeholder"),
        key=key,
        on_change=_on_answer_edit,
        args=(session, q.code, key, value_codec.encode_single_select),
        label_visibility="collapsed",
    )


def _render_multi_select(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    selected = q.answer if isinstance(q.answer, list) else []
    if not q.options:
        return
    cols = st.columns(min(len(q.options), 4))
    for i, opt in enumerate(q.options):
        key = widget_key(q.code, opt.value)
        with cols[i % len(cols)]:
            st.checkbox(
                opt.label,
                value=opt.value in selected,
                key=key,
                on_change=_on_multi_toggle,
                args=(session, q.code, opt.value, key),
            )


def _render_date(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    key = widget_key(q.code)
    st.date_input(
        q.label,
        value=value_codec.decode_date(q.answer),
        min_value=DATE_MIN,
        max_value=DATE_MAX,
        format="YYYY-MM-DD",
        key=key,
        on_change=_on_answer_edit,
        args=(session, q.code, key, value_codec.encode_date),
        label_visibility="collapsed",
    )


def _render_currency(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    key = widget_key(q.code)
    encode = functools.partial(value_codec.encode_currency, config=q.config)
    prefix, field = st.columns([1, 8])
    with prefix:
        st.markdown(t(lang, "currency.prefix"))
    with field:
        st.text_input(
            q.label,
            value=value_codec.decode_currency(q.answer),
            placeholder=t(lang, "currency.placeholder"),
            key=key,
            on_change=_on_answer_edit,
            args=(session, q.code, key, encode),
            label_visibility="collapsed",
        )


def _render_text(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    key = widget_key(q.code)
    st.text_area(
        q.label,
        value=q.answer if isinstance(q.answer, str) else "",
        key=key,
        on_change=_on_answer_edit,
        args=(session, q.code, key, value_codec.encode_text),
        label_visibility="collapsed",
    )


def _render_number(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    key = widget_key(q.code)
    st.number_input(
        q.label,
        value=value_codec.decode_number(q.answer),
        key=key,
        on_change=_on_answer_edit,
        args=(session, q.code, key, value_codec.encode_number),
        label_visibility="collapsed",
    )


def _render_attachment(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    st.caption(t(lang, "attachment.pending"))


def _render_table(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    editor = session.table_editor(q)
    for r in editor.rows:
        with st.container(border=True):
            cols = st.columns(3)
            for col, field in zip(cols, TABLE_FIELDS):
                key = widget_key(q.code, r.row_index, field)
                with col:
                    st.text_input(
                        t(lang, f"table.{field}"),
                        value=str(r.row.get(field) or ""),
                        key=key,
                        on_change=_on_row_field,
                        args=(editor, r.row_index, field, key),
                    )
            baa_key = widget_key(q.code, r.row_index, "has_baa")
            with cols[2]:
                st.checkbox(
                    t(lang, "table.has_baa"),
                    value=bool(r.row.get("has_baa")),
                    key=baa_key,
                    on_change=_on_row_field,
                    args=(editor, r.row_index, "has_baa", baa_key),
                )
            st.button(
                t(lang, "table.save_row"),
                key=widget_key(q.code, r.row_index, "save"),
                on_click=_on_save_row,
                args=(editor, r.row_index, lang),
            )
    wide_button(
        t(lang, "table.add_row"),
        key=widget_key(q.code, "add_row"),
        on_click=_on_add_row,
        args=(editor,),
    )


def _render_unsupported(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    st.warning(t(lang, "unsupported", type=q.type))


_RENDERERS: Dict[QuestionType, Renderer] = {
    QuestionType.BOOLEAN: _render_boolean,
    QuestionType.SINGLE_SELECT: _render_single_select,
    QuestionType.MULTI_SELECT: _render_multi_select,
    QuestionType.DATE: _render_date,
    QuestionType.CURRENCY: _render_currency,
    QuestionType.TEXT: _render_text,
    QuestionType.NUMBER: _render_number,
    QuestionType.ATTACHMENT: _render_attachment,
    QuestionType.TABLE: _render_table,
}

_unhandled: List[str] = [qt.value for qt in QuestionType if qt not in _RENDERERS]
if _unhandled:
    raise RuntimeError(f"question types without a renderer: {_unhandled}")


def renderer_for(q: Question) -> Renderer:
    kind = q.kind
    if kind is None:
        return _render_unsupported
    return _RENDERERS[kind]


# ---------------- public ----------------

def render_question(q: Question, session: FormSession, lang: Dict[str, str]) -> None:
    with st.container(border=True):
        st.markdown(f"**{q.label}**")
        if q.help:
            st.caption(q.help)
        renderer_for(q)(q, session, lang)
        err = session.answers.error(q.code)
        if err:
            st.error(t(lang, "answer.error", message=err))


def submit_label(session: FormSession, lang: Dict[str, str]) -> str:
    payload = session.payload
    if payload is not None and payload.form.is_submitted:
        return t(lang, "submit.done")
    if session.submitting:
        return t(lang, "submit.in_flight")
    return t(lang, "submit.label")


def render_page(session: FormSession, lang: Dict[str, str]) -> None:
    """
    Whole-page view for one session. Queued callback messages come first so a
    page error cannot strand them; then the loading, error or empty state, or
    the company label, one control per question and the submit button.
    """
    show_flashes()
    if session.loading:
        st.info(t(lang, "page.loading"))
        return
    if session.error is not None:
        st.error(t(lang, "page.error", message=session.error.message))
        return
    payload = session.payload
    if payload is None:
        st.info(t(lang, "page.empty"))
        return

    st.title(t(lang, "page.title"))
    st.caption(t(lang, "page.company", company=payload.form.company or ""))

    for q in payload.questions:
        render_question(q, session, lang)

    _spacer, right = st.columns([3, 1])
    with right:
        wide_button(
            submit_label(session, lang),
            key="submit_form",
            disabled=not session.can_submit,
            on_click=_on_submit,
            args=(session, lang),
        )
