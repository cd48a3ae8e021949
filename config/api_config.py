"""
Endpoint and authentication configuration for the chat-completion API.

This is the AUTHORITATIVE source for API configuration.
src/batch_eval/config.py imports from here; do not maintain parallel copies.

ENVIRONMENT VARIABLES:
    OPENAI_API_KEY      - used when no key is passed explicitly
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
#
# Fields:
#   endpoint      - Full URL of the chat-completion API
#   auth_type     - 'bearer' → Authorization: Bearer <key> header
#   api_key_env   - Environment variable consulted when no key is supplied
#
# Any OpenAI-compatible endpoint works; override ``endpoint`` per run via
# BatchConfig.endpoint or the CLI ``--endpoint`` flag.

API_CONFIG: dict[str, str] = {
    "endpoint": "https://api.openai.com/v1/chat/completions",
    "auth_type": "bearer",
    "api_key_env": "OPENAI_API_KEY",
}

# Models offered by the runner.  Any other model id is accepted and priced
# with DEFAULT_PRICING_MODEL.
SUPPORTED_MODELS: list[str] = [
    "gpt-4o-mini",
    "gpt-4o",
    "gpt-4.1-mini",
    "gpt-3.5-turbo",
]

DEFAULT_MODEL: str = "gpt-4o-mini"
