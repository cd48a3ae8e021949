"""
Run configuration, output paths, and re-exported evaluator constants.

Constants are defined in the top-level ``config`` package and re-exported
here so that modules in this package import from a single place.
BatchConfig bundles everything one batch run needs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from config.api_config import API_CONFIG, DEFAULT_MODEL, SUPPORTED_MODELS
from config.model_params import (
    BACKOFF_BASE_SECONDS,
    DECISION_COLUMN,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PRICING_MODEL,
    DEFAULT_RESULT_KEY,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    DEFAULT_USER_PROMPT,
    ERROR_DISPLAY_LIMIT,
    MAX_CONCURRENCY,
    MAX_RETRIES_LIMIT,
    MODEL_PRICING,
    PREVIEW_ROWS,
    PROMOTED_FIELDS,
    REQUEST_TIMEOUT_SECONDS,
    SCORE_COLUMN,
    VALID_COLUMN,
)

from .errors import ConfigurationError

__all__ = [
    "API_CONFIG",
    "BACKOFF_BASE_SECONDS",
    "BatchConfig",
    "DECISION_COLUMN",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_CSV_EXPORT",
    "DEFAULT_JSON_EXPORT",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_MODEL",
    "DEFAULT_PRICING_MODEL",
    "DEFAULT_RESULT_KEY",
    "DEFAULT_SYSTEM_PROMPT",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_USER_PROMPT",
    "ERROR_DISPLAY_LIMIT",
    "MAX_CONCURRENCY",
    "MAX_RETRIES_LIMIT",
    "MODEL_PRICING",
    "OUTPUT_DIR",
    "PREVIEW_ROWS",
    "PROMOTED_FIELDS",
    "REQUEST_TIMEOUT_SECONDS",
    "SCORE_COLUMN",
    "SUPPORTED_MODELS",
    "VALID_COLUMN",
]

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Resolve from this file: src/batch_eval/config.py → src/batch_eval → src → root
PROJECT_ROOT = Path(__file__).resolve().parents[2]

OUTPUT_DIR = PROJECT_ROOT / "output"
DEFAULT_CSV_EXPORT = OUTPUT_DIR / "evaluations.csv"
DEFAULT_JSON_EXPORT = OUTPUT_DIR / "evaluations.json"


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------

@dataclass
class BatchConfig:
    """Configuration bundle for one batch run.

    Attributes:
        api_key: Credential for the endpoint; falls back to the environment
            variable named in ``API_CONFIG['api_key_env']``.
        model: Model identifier sent in the request body.
        user_prompt: Template rendered once per record.
        system_prompt: Optional system instruction (omitted when empty).
        temperature: Sampling temperature.
        concurrency: Admission limit K (≥ 1).
        max_retries: Retries after the first attempt (≥ 0).
        result_key: Column receiving the raw model output.
        text_column: Column aliased as ``{{submission}}``; when unset the
            whole record is passed as JSON.
        backoff_base_seconds: Linear backoff unit between attempts.
        request_timeout_seconds: Per-request HTTP timeout.
        endpoint: Chat-completion URL.
    """

    api_key: str | None = None
    model: str = DEFAULT_MODEL
    user_prompt: str = DEFAULT_USER_PROMPT
    system_prompt: str | None = DEFAULT_SYSTEM_PROMPT
    temperature: float = DEFAULT_TEMPERATURE
    concurrency: int = DEFAULT_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES
    result_key: str = DEFAULT_RESULT_KEY
    text_column: str | None = None
    backoff_base_seconds: float = BACKOFF_BASE_SECONDS
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    endpoint: str = API_CONFIG["endpoint"]

    def __post_init__(self) -> None:
        if not self.result_key:
            self.result_key = DEFAULT_RESULT_KEY

    def resolve_api_key(self) -> str | None:
        """Return the explicit key, else the one found in the environment."""
        return self.api_key or os.getenv(API_CONFIG["api_key_env"]) or None

    def validate(self, require_api_key: bool = True) -> None:
        """
        Check the configuration before any request is made.

        Args:
            require_api_key: Skip the credential check when False (e.g. when
                requests are served by a custom request function).

        Raises:
            ConfigurationError: On a missing credential, empty prompt
                template, or an out-of-range concurrency / retry setting.
        """
        if require_api_key and not self.resolve_api_key():
            raise ConfigurationError(
                "Please provide your OpenAI API Key "
                f"(or set the '{API_CONFIG['api_key_env']}' environment variable)."
            )
        if not self.user_prompt or not self.user_prompt.strip():
            raise ConfigurationError("User prompt template is empty.")
        if self.concurrency < 1:
            raise ConfigurationError(
                f"Concurrency must be at least 1 (got {self.concurrency})."
            )
        if self.max_retries < 0:
            raise ConfigurationError(
                f"Max retries cannot be negative (got {self.max_retries})."
            )
