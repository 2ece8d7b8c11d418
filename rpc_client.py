"""
HTTP client for the four remote procedures behind the questionnaire.

Calls are PostgREST-style: POST {base_url}/rest/v1/rpc/<function> with a JSON
body of p_-prefixed parameters. Keep this module as the ONLY place where the
page talks to the persistence service.

No client-side timeout is applied: a hung call stays pending until it settles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from errors import RpcError
from form_models import Payload

logger = logging.getLogger(__name__)

RPC_PATH = "/rest/v1/rpc"


@dataclass(frozen=True)
class SubmitResponse:
    ok: bool
    missing_required: Any = None

    @classmethod
    def from_dict(cls, raw: Any) -> "SubmitResponse":
        if not isinstance(raw, dict):
            return cls(ok=False)
        return cls(ok=bool(raw.get("ok")), missing_required=raw.get("missing_required"))


class FormRpcClient:
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("FORM_RPC_URL is not configured.")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _call(self, function: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{RPC_PATH}/{function}"
        logger.debug("rpc %s %s", function, sorted(params))
        try:
            async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
                response = await client.post(url, json=params, headers=self._headers())
        except httpx.RequestError as e:
            logger.error("rpc %s: request error: %s", function, e)
            raise RpcError(str(e) or e.__class__.__name__, function=function) from e

        if response.status_code >= 400:
            message, code = _error_details(response)
            logger.warning("rpc %s failed: %s %s", function, response.status_code, message)
            raise RpcError(message, function=function, status=response.status_code, code=code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RpcError(f"invalid JSON from {function}", function=function, status=response.status_code) from e

    async def fetch_payload(self, form_id: str, lang: str) -> Payload:
        data = await self._call("get_form_payload", {"p_form_id": form_id, "p_lang": lang})
        try:
            return Payload.from_dict(data)
        except (TypeError, ValueError) as e:
            raise RpcError(f"malformed payload: {e}", function="get_form_payload") from e

    async def upsert_answer(self, form_id: str, question_code: str, value: Any) -> None:
        await self._call(
            "upsert_answer",
            {"p_form_id": form_id, "p_question_code": question_code, "p_value_json": value},
        )

    async def upsert_table_row(self, form_id: str, question_code: str, row_index: int, row: Dict[str, Any]) -> None:
        await self._call(
            "upsert_table_row",
            {
                "p_form_id": form_id,
                "p_question_code": question_code,
                "p_row_index": row_index,
                "p_row_json": row,
            },
        )

    async def submit_form(self, form_id: str) -> SubmitResponse:
        data = await self._call("submit_form", {"p_form_id": form_id})
        return SubmitResponse.from_dict(data)


def _error_details(response: httpx.Response) -> tuple[str, Optional[str]]:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or body.get("hint")
        if message:
            return str(message), body.get("code")
    text = (response.text or "").strip()
    return text or f"HTTP {response.status_code}", None
