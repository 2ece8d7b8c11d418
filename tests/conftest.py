"""Shared fixtures: an in-memory form backend and a recording stand-in for `st`."""

from __future__ import annotations

import asyncio
import copy
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest  # noqa: E402

from errors import RpcError  # noqa: E402
from form_models import Payload  # noqa: E402
from form_session import FormSession  # noqa: E402
from rpc_client import SubmitResponse  # noqa: E402


SAMPLE_PAYLOAD: Dict[str, Any] = {
    "form": {
        "id": "form-1",
        "status": "draft",
        "company": "Acme Ltda",
        "contact": {"name": "Ana", "email": "ana@acme.example"},
    },
    "questions": [
        {"code": "has_dpo", "type": "boolean", "label": "Possui encarregado (DPO)?", "answer": None},
        {
            "code": "sector",
            "type": "single_select",
            "label": "Setor",
            "options": [
                {"value": "health", "label": "Saúde", "order": 2},
                {"value": "tech", "label": "Tecnologia", "order": 1},
            ],
            "answer": None,
        },
        {
            "code": "data_types",
            "type": "multi_select",
            "label": "Dados tratados",
            "options": [
                {"value": "cpf", "label": "CPF", "order": 1},
                {"value": "health", "label": "Saúde", "order": 2},
                {"value": "biometric", "label": "Biometria", "order": 3},
            ],
            "answer": ["cpf"],
        },
        {"code": "started_on", "type": "date", "label": "Início das operações", "answer": "2021-03-15"},
        {
            "code": "revenue",
            "type": "currency",
            "label": "Faturamento anual",
            "help": "Valor aproximado",
            "config": {"currency": "BRL"},
            "answer": None,
        },
        {"code": "notes", "type": "text", "label": "Observações", "answer": None},
        {"code": "employees", "type": "number", "label": "Funcionários", "answer": 12},
        {"code": "policy_doc", "type": "attachment", "label": "Política de privacidade", "answer": None},
        {
            "code": "vendors",
            "type": "table",
            "label": "Fornecedores",
            "answer": None,
            "table_rows": [{"row_index": 0, "row": {"name": "Acme"}}],
        },
    ],
}


class FakeFormBackend:
    """In-memory stand-in for FormRpcClient. Records every call in `calls`."""

    def __init__(self, payload_data: Dict[str, Any]) -> None:
        self.payload_data = payload_data
        self.calls: List[Tuple[str, tuple]] = []
        self.failures: Dict[str, str] = {}
        self.submit_response = SubmitResponse(ok=True)
        self.hold_answers = False
        self.gates: List[asyncio.Event] = []

    def fail(self, function: str, message: str = "permission denied") -> None:
        self.failures[function] = message

    def recover(self, function: str) -> None:
        self.failures.pop(function, None)

    def _maybe_fail(self, function: str) -> None:
        if function in self.failures:
            raise RpcError(self.failures[function], function=function, status=400)

    def count(self, function: str) -> int:
        return sum(1 for name, _ in self.calls if name == function)

    async def fetch_payload(self, form_id: str, lang: str) -> Payload:
        self.calls.append(("get_form_payload", (form_id, lang)))
        self._maybe_fail("get_form_payload")
        return Payload.from_dict(copy.deepcopy(self.payload_data))

    async def upsert_answer(self, form_id: str, question_code: str, value: Any) -> None:
        self.calls.append(("upsert_answer", (form_id, question_code, value)))
        if self.hold_answers:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        self._maybe_fail("upsert_answer")

    async def upsert_table_row(self, form_id: str, question_code: str, row_index: int, row: Dict[str, Any]) -> None:
        self.calls.append(("upsert_table_row", (form_id, question_code, row_index, copy.deepcopy(row))))
        self._maybe_fail("upsert_table_row")

    async def submit_form(self, form_id: str) -> SubmitResponse:
        self.calls.append(("submit_form", (form_id,)))
        self._maybe_fail("submit_form")
        if self.submit_response.ok:
            self.payload_data["form"]["status"] = "submitted"
        return self.submit_response


@dataclass
class Call:
    name: str
    args: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def fire(self, event: str = "on_change") -> Any:
        callback = self.kwargs[event]
        return callback(*self.kwargs.get("args", ()))


class _Block:
    def __enter__(self) -> "_Block":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


class FakeStreamlit:
    """Records widget calls instead of drawing them; `session_state` is a plain dict."""

    def __init__(self) -> None:
        self.session_state: Dict[str, Any] = {}
        self.calls: List[Call] = []

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)

        def widget(*args: Any, **kwargs: Any) -> Any:
            self.calls.append(Call(name, args, kwargs))
            if name in ("container", "spinner", "expander"):
                return _Block()
            if name == "columns":
                spec = args[0] if args else kwargs.get("spec", 1)
                n = spec if isinstance(spec, int) else len(spec)
                return [_Block() for _ in range(n)]
            if name in ("button", "checkbox"):
                return False
            return None

        return widget

    def named(self, name: str) -> List[Call]:
        return [c for c in self.calls if c.name == name]

    def by_key(self, key: str) -> Call:
        for c in reversed(self.calls):
            if c.kwargs.get("key") == key:
                return c
        raise KeyError(key)

    def texts(self, name: str) -> List[str]:
        return [str(c.args[0]) for c in self.named(name) if c.args]

    def reset(self) -> None:
        self.calls.clear()


@pytest.fixture
def payload_data() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def backend(payload_data) -> FakeFormBackend:
    return FakeFormBackend(payload_data)


@pytest.fixture
def session(backend) -> FormSession:
    return FormSession(backend, "form-1", "pt-BR")


@pytest.fixture
def fake_st(monkeypatch) -> FakeStreamlit:
    import app.ui as ui
    import form_renderer

    fake = FakeStreamlit()
    monkeypatch.setattr(form_renderer, "st", fake)
    monkeypatch.setattr(ui, "st", fake)
    return fake


@pytest.fixture
def lang() -> Dict[str, str]:
    from data_loader import read_lang

    return read_lang("pt-BR")
