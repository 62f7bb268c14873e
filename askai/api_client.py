"""
Async OpenAI-compatible Chat Completions client. One request, no retries.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List

import aiohttp

from .config import HTTP_TIMEOUT_SECS, USER_AGENT
from .errors import ApiError, EmptyResponseError, OperationCancelledError, TransportError
from .utils import TRACE

logger = logging.getLogger(__name__)


def build_endpoint(url: str) -> str:
    return url.rstrip("/") + "/chat/completions"


def build_payload(model: str, prompt: str) -> Dict[str, Any]:
    messages: List[Dict[str, str]] = [{"role": "user", "content": prompt}]
    return {"model": model, "messages": messages}


class ChatClient:
    def __init__(self, url: str, token: str, logger: logging.Logger = logger) -> None:
        if not token:
            raise ValueError("API token is required")
        self.url = url
        self.token = token
        self.logger = logger

    async def send_query(self, model: str, prompt: str) -> str:
        endpoint = build_endpoint(self.url)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        payload = build_payload(model, prompt)

        self.logger.debug("POST %s (model=%s)", endpoint, model)
        self.logger.log(TRACE, "Request body: %s", json.dumps(payload))

        timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECS)
        try:
            async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
                async with session.post(endpoint, json=payload) as resp:
                    status = resp.status
                    text_body = await resp.text()  # read once; log + parse
        except asyncio.CancelledError:
            raise OperationCancelledError() from None
        except asyncio.TimeoutError as e:
            raise TransportError("Request timed out.") from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e

        self.logger.debug("HTTP %s", status)
        self.logger.log(TRACE, "Response body: %s", text_body)

        if not 200 <= status < 300:
            raise ApiError(status, text_body)
        return parse_response(text_body)


def parse_response(text_body: str) -> str:
    """Return the first choice's message content or raise EmptyResponseError."""
    try:
        data = json.loads(text_body)
    except json.JSONDecodeError as e:
        raise EmptyResponseError(f"Malformed response: {e}") from e
    if not isinstance(data, dict):
        raise EmptyResponseError("Malformed response: expected a JSON object.")

    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise EmptyResponseError("No content in response.")

    msg = choices[0].get("message") or {}
    content = msg.get("content") if isinstance(msg, dict) else None
    if not content:
        raise EmptyResponseError("No content in response.")
    return str(content)
