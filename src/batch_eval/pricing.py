"""
Token cost estimation.

Prices come from ``MODEL_PRICING`` (USD per 1,000 tokens, input and output
priced separately).  Models without an entry are priced as
``DEFAULT_PRICING_MODEL``.
"""

from __future__ import annotations

import logging

from .config import DEFAULT_PRICING_MODEL, MODEL_PRICING

logger = logging.getLogger(__name__)


def get_model_pricing(model: str) -> dict[str, float]:
    """
    Return the price entry for ``model``.

    Args:
        model: Model identifier.

    Returns:
        Dict with ``input_per_1k`` and ``output_per_1k`` rates.
    """
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        logger.debug(
            "No price entry for model '%s'; using '%s' rates.",
            model,
            DEFAULT_PRICING_MODEL,
        )
        pricing = MODEL_PRICING[DEFAULT_PRICING_MODEL]
    return pricing


def estimate_cost(
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
) -> dict[str, float]:
    """
    Estimate the USD cost of a token volume.

    Args:
        model: Model identifier.
        prompt_tokens: Total input tokens.
        completion_tokens: Total output tokens.

    Returns:
        Dict with keys ``prompt_usd``, ``completion_usd``, ``total_usd``.
    """
    pricing = get_model_pricing(model)
    prompt_usd = prompt_tokens / 1000 * pricing["input_per_1k"]
    completion_usd = completion_tokens / 1000 * pricing["output_per_1k"]
    return {
        "prompt_usd": prompt_usd,
        "completion_usd": completion_usd,
        "total_usd": prompt_usd + completion_usd,
    }
