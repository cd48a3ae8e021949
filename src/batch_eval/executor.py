"""
Request construction and chat-completion call execution.

One call to :func:`execute_chat_request` performs exactly one HTTP POST.
Retries are the orchestrator's job (see retry.py); this module only turns
the outcome into a ChatCompletion or a RequestError.

Design notes:
- ``requests`` is blocking; :func:`execute_chat_request_async` runs it on a
  worker thread so the event loop keeps scheduling other records.
- A request that is already on the wire is never aborted.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from concurrent.futures import Executor
from dataclasses import dataclass

import requests

from .config import API_CONFIG, DEFAULT_TEMPERATURE, REQUEST_TIMEOUT_SECONDS
from .errors import ConfigurationError, EndpointError, TransportError
from .parser import (
    extract_message_content,
    get_completion_tokens,
    get_prompt_tokens,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatCompletion:
    """Normalized reply of one chat-completion call.

    Attributes:
        content: Model reply text (``""`` when absent).
        prompt_tokens: Input tokens reported by the endpoint (0 if absent).
        completion_tokens: Output tokens reported by the endpoint (0 if absent).
        latency_seconds: Wall-clock duration of the HTTP call.
    """

    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def build_request_headers(api_key: str) -> dict:
    """
    Construct HTTP authentication headers for a chat-completion call.

    Raises:
        ConfigurationError: If ``api_key`` is empty, or ``auth_type`` in
            ``API_CONFIG`` is not recognized.
    """
    if not api_key:
        raise ConfigurationError(
            f"API key not found. Set the '{API_CONFIG['api_key_env']}' "
            "environment variable or pass a key explicitly."
        )

    auth_type = API_CONFIG["auth_type"]
    if auth_type == "bearer":
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    raise ConfigurationError(f"Unknown auth_type '{auth_type}' in API_CONFIG.")


def build_messages(user_prompt: str, system_prompt: str | None = None) -> list[dict]:
    """Return the message list: optional system turn, then the user turn."""
    messages: list[dict] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages


def build_request_payload(
    model: str,
    user_prompt: str,
    system_prompt: str | None = None,
    temperature: float | None = DEFAULT_TEMPERATURE,
) -> dict:
    """
    Construct the JSON request body.

    Args:
        model: Model identifier.
        user_prompt: Fully rendered user prompt.
        system_prompt: Optional system instruction; omitted when empty.
        temperature: Sampling temperature; ``None`` uses the default.

    Returns:
        Dict suitable for the ``json=`` argument of ``requests.post()``.
    """
    if temperature is None:
        temperature = DEFAULT_TEMPERATURE
    return {
        "model": model,
        "messages": build_messages(user_prompt, system_prompt),
        "temperature": float(temperature),
    }


# ---------------------------------------------------------------------------
# API call execution
# ---------------------------------------------------------------------------

def execute_chat_request(
    api_key: str,
    model: str,
    user_prompt: str,
    system_prompt: str | None = None,
    temperature: float | None = DEFAULT_TEMPERATURE,
    endpoint: str = API_CONFIG["endpoint"],
    timeout: float = REQUEST_TIMEOUT_SECONDS,
) -> ChatCompletion:
    """
    Execute a single, stateless chat-completion call.

    Args:
        api_key: Bearer credential.
        model: Model identifier.
        user_prompt: Fully rendered user prompt.
        system_prompt: Optional system instruction.
        temperature: Sampling temperature.
        endpoint: Chat-completion URL.
        timeout: HTTP timeout in seconds.

    Returns:
        ChatCompletion with reply text and token usage.

    Raises:
        EndpointError: Any status outside 200-299, including unfollowed
            redirects (body captured verbatim).
        TransportError: Timeout, connection failure, or a 2xx body that is
            not a JSON object or lacks the chat-completion shape.
        ConfigurationError: Missing API key.
    """
    headers = build_request_headers(api_key)
    payload = build_request_payload(model, user_prompt, system_prompt, temperature)

    start = time.monotonic()
    try:
        response = requests.post(
            endpoint,
            headers=headers,
            json=payload,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise TransportError(f"{type(exc).__name__}: {exc}") from exc
    latency = round(time.monotonic() - start, 3)

    if not 200 <= response.status_code < 300:
        raise EndpointError(response.status_code, response.text)

    try:
        body = response.json()
    except ValueError as exc:
        raise TransportError(f"Invalid JSON in response body: {exc}") from exc
    if not isinstance(body, dict):
        raise TransportError(
            f"Unexpected response body type: {type(body).__name__}"
        )

    try:
        completion = ChatCompletion(
            content=extract_message_content(body),
            prompt_tokens=get_prompt_tokens(body),
            completion_tokens=get_completion_tokens(body),
            latency_seconds=latency,
        )
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        raise TransportError(
            f"Malformed chat-completion body: {type(exc).__name__}: {exc}"
        ) from exc
    logger.debug(
        "Chat completion ok: model=%s latency=%.3fs tokens=%d/%d",
        model,
        latency,
        completion.prompt_tokens,
        completion.completion_tokens,
    )
    return completion


async def execute_chat_request_async(
    api_key: str,
    model: str,
    user_prompt: str,
    system_prompt: str | None = None,
    temperature: float | None = DEFAULT_TEMPERATURE,
    endpoint: str = API_CONFIG["endpoint"],
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    executor: Executor | None = None,
) -> ChatCompletion:
    """
    Await :func:`execute_chat_request` on a worker thread.

    Args:
        executor: Thread pool to run the blocking call on; ``None`` uses the
            event loop's default executor.

    Other arguments and errors are those of :func:`execute_chat_request`.
    """
    loop = asyncio.get_running_loop()
    call = functools.partial(
        execute_chat_request,
        api_key,
        model,
        user_prompt,
        system_prompt=system_prompt,
        temperature=temperature,
        endpoint=endpoint,
        timeout=timeout,
    )
    return await loop.run_in_executor(executor, call)
