"""
Sampling defaults, run defaults, default prompts, and the model price table.

This is the AUTHORITATIVE source for all parameter and execution constants.
src/batch_eval/config.py imports from here; do not maintain parallel copies.

Design notes:
- Prices are USD per 1,000 tokens, input and output priced independently.
- Models missing from MODEL_PRICING are priced as DEFAULT_PRICING_MODEL.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Sampling parameters
# ---------------------------------------------------------------------------

DEFAULT_TEMPERATURE: float = 0.2

# HTTP request timeout; a timeout counts as a transport failure and is retried
REQUEST_TIMEOUT_SECONDS: int = 60

# ---------------------------------------------------------------------------
# Run parameters
# ---------------------------------------------------------------------------

DEFAULT_CONCURRENCY: int = 3      # admission limit K
MAX_CONCURRENCY: int = 20         # upper bound offered by the runner
DEFAULT_MAX_RETRIES: int = 2      # retries after the first attempt
MAX_RETRIES_LIMIT: int = 5

# Linear backoff: wait BACKOFF_BASE_SECONDS × attempt before the next attempt
BACKOFF_BASE_SECONDS: float = 0.5

DEFAULT_RESULT_KEY: str = "evaluation"

# Number of error-log entries shown to the user
ERROR_DISPLAY_LIMIT: int = 20

# Number of rows shown by the runner's table preview
PREVIEW_ROWS: int = 10

# ---------------------------------------------------------------------------
# Result columns
# ---------------------------------------------------------------------------

VALID_COLUMN: str = "eval.valid"
SCORE_COLUMN: str = "eval.score"
DECISION_COLUMN: str = "eval.decision"

# Keys promoted from a parsed JSON object into their own columns
PROMOTED_FIELDS: dict[str, str] = {
    "score": SCORE_COLUMN,
    "decision": DECISION_COLUMN,
}

# ---------------------------------------------------------------------------
# Default prompts
# ---------------------------------------------------------------------------

DEFAULT_SYSTEM_PROMPT: str = (
    "You are a careful evaluator. Return concise, structured results."
)

# {{submission}} resolves to the text column (or the whole row as JSON);
# {{json}} always inserts the whole row as JSON; {{<column>}} any column.
DEFAULT_USER_PROMPT: str = (
    "Evaluate the following submission and return JSON with the schema:\n"
    "{\n"
    '  "score": integer 0-5,\n'
    '  "summary": short summary,\n'
    '  "strengths": array of strings,\n'
    '  "risks": array of strings,\n'
    '  "decision": "Go" or "No-Go"\n'
    "}\n"
    "\n"
    "Submission:\n"
    "{{submission}}"
)

# ---------------------------------------------------------------------------
# Price table (USD per 1,000 tokens)
# ---------------------------------------------------------------------------
# Rates are approximate and should be verified against the provider's
# current pricing page.

MODEL_PRICING: dict[str, dict[str, float]] = {
    "gpt-4o": {
        "input_per_1k":  2.5,
        "output_per_1k": 10.0,
    },
    "gpt-4o-mini": {
        "input_per_1k":  0.15,
        "output_per_1k": 0.6,
    },
    "gpt-4.1-mini": {
        "input_per_1k":  0.2,
        "output_per_1k": 0.8,
    },
    "gpt-3.5-turbo": {
        "input_per_1k":  0.5,
        "output_per_1k": 1.5,
    },
}

DEFAULT_PRICING_MODEL: str = "gpt-4o-mini"
