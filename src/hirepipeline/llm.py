"""HTTP client for the scoring, generation and vision oracles."""

from __future__ import annotations

import base64
import json
import socket
from typing import Any
from urllib import error, request

import structlog

from .core.prompts import VISION_PROMPT
from .errors import OracleError, OracleUnavailableError

DEFAULT_ENDPOINT = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.5-flash"

# Status codes that mean "try again later" rather than "contact support".
_UNAVAILABLE_STATUSES: dict[int, str] = {
    402: "oracle credits exhausted",
    408: "oracle request timed out",
    429: "oracle rate limit exceeded",
    500: "oracle internal error",
    502: "oracle gateway error",
    503: "oracle unavailable",
    504: "oracle gateway timeout",
}


class HTTPOracleClient:
    """OpenAI-compatible chat-completions client.

    Implements both the completion oracle (``complete``) and the vision oracle
    (``extract_text``). Calls are never retried here.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_MODEL,
        vision_model: str | None = None,
        timeout: float = 60.0,
        max_tokens: int = 4000,
    ):
        self._endpoint = endpoint or DEFAULT_ENDPOINT
        self._api_key = api_key
        self._model = model
        self._vision_model = vision_model or model
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._logger = structlog.get_logger(__name__)

    def complete(self, system: str, user: str) -> str:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        return self._chat(payload)

    def extract_text(self, data: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        payload = {
            "model": self._vision_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": VISION_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type};base64,{encoded}"},
                        },
                    ],
                }
            ],
            "max_tokens": self._max_tokens,
        }
        return self._chat(payload)

    def _chat(self, payload: dict[str, Any]) -> str:
        body = self._post(payload)
        try:
            envelope = json.loads(body) if body else {}
        except json.JSONDecodeError as exc:
            raise OracleError("oracle returned a non-JSON envelope") from exc
        return _message_content(envelope)

    def _post(self, payload: dict[str, Any]) -> str:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        req = request.Request(self._endpoint, data=data, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                return resp.read().decode("utf-8")
        except error.HTTPError as exc:
            self._logger.warning("oracle.request_failed", status=exc.code, reason=str(exc.reason))
            message = _UNAVAILABLE_STATUSES.get(exc.code)
            if message is not None:
                raise OracleUnavailableError(message, status=exc.code) from exc
            raise OracleError(f"oracle request failed with HTTP {exc.code}: {exc.reason}") from exc
        except (error.URLError, socket.timeout, TimeoutError, ConnectionError) as exc:
            self._logger.warning("oracle.request_failed", error=str(exc))
            raise OracleUnavailableError(f"oracle transport failure: {exc}") from exc


def _message_content(envelope: dict[str, Any]) -> str:
    try:
        content = envelope["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise OracleError("oracle response is missing choices[0].message.content") from exc
    if content is None:
        return ""
    if isinstance(content, list):
        # Some gateways return content parts instead of a single string.
        return "".join(part.get("text", "") for part in content if isinstance(part, dict))
    return str(content)


__all__ = ["DEFAULT_ENDPOINT", "DEFAULT_MODEL", "HTTPOracleClient"]
