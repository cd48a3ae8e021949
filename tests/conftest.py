"""
Shared pytest fixtures for the batch evaluator tests.

No test touches the network: HTTP is replaced by patching
``src.batch_eval.executor.requests.post``, or the orchestrator is given a
scripted ``request_fn`` (see :class:`ScriptedRequests`).
"""

from __future__ import annotations

import asyncio
import json

import pytest
import requests

from src.batch_eval.config import BatchConfig
from src.batch_eval.errors import EndpointError
from src.batch_eval.executor import ChatCompletion


# ---------------------------------------------------------------------------
# Canned model replies
# ---------------------------------------------------------------------------

FENCED_REPLY = '```json\n{\n "score": 5, "decision": "Go"\n}\n```'
PROSE_REPLY = "not json at all"


def make_chat_body(content: str | None, prompt_tokens: int = 10, completion_tokens: int = 5) -> dict:
    """Chat-completion success body as the endpoint returns it."""
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


def make_http_response(status_code: int = 200, body: dict | None = None, text: str = "") -> requests.Response:
    """
    Real ``requests.Response`` carrying ``body`` as JSON, or ``text`` verbatim.

    Built by hand so ``ok``, ``text`` and ``json()`` behave exactly as they
    do for a live reply.
    """
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    payload = json.dumps(body) if body is not None else text
    response._content = payload.encode("utf-8")
    return response


# ---------------------------------------------------------------------------
# Scripted request function
# ---------------------------------------------------------------------------

class ScriptedRequests:
    """
    Async stand-in for the HTTP call, awaited with the rendered prompt.

    ``script`` maps a prompt substring to a list of outcomes consumed one per
    attempt; an outcome is a reply string or an exception instance.  The
    last outcome repeats once the list is exhausted.  Prompts matching no
    key get ``default``.
    """

    def __init__(self, script: dict | None = None, default: str = '{"score": 3}', delay: float = 0.0):
        self.script = {key: list(outcomes) for key, outcomes in (script or {}).items()}
        self.default = default
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call = None

    async def __call__(self, prompt: str) -> ChatCompletion:
        self.calls.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call is not None:
                self.on_call(prompt)
            await asyncio.sleep(self.delay)
            outcome = self._next_outcome(prompt)
            if isinstance(outcome, Exception):
                raise outcome
            return ChatCompletion(content=outcome, prompt_tokens=10, completion_tokens=5)
        finally:
            self.in_flight -= 1

    def _next_outcome(self, prompt: str):
        for key, outcomes in self.script.items():
            if key in prompt:
                return outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        return self.default

    def calls_for(self, fragment: str) -> int:
        return sum(1 for prompt in self.calls if fragment in prompt)


def server_error(message: str = "upstream unavailable") -> EndpointError:
    return EndpointError(503, message)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_records():
    """Three independent rows keyed like the built-in sample."""
    return [
        {"id": "1", "submission": "alpha proposal", "author": "Team A"},
        {"id": "2", "submission": "beta proposal", "author": "Team B"},
        {"id": "3", "submission": "gamma proposal", "author": "Team C"},
    ]


@pytest.fixture
def make_records():
    """Factory: ``make_records(n)`` → n rows whose text is ``row-<i>``."""
    def _make(n: int) -> list[dict]:
        return [{"id": str(i), "text": f"row-{i}"} for i in range(n)]
    return _make


@pytest.fixture
def batch_config():
    """Config with a dummy key, no backoff wait, and a prompt echoing the text."""
    return BatchConfig(
        api_key="test-key",
        user_prompt="Evaluate: {{submission}}",
        concurrency=2,
        max_retries=2,
        text_column="submission",
        backoff_base_seconds=0.0,
    )
