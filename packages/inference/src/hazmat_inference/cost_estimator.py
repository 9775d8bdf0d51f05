"""Usage and cost estimation.

Rates are USD per million tokens, matched by substring on the model id.
Informational only.
"""

from dataclasses import dataclass
from typing import Optional

from hazmat_contracts import UsageInfo

TOKENS_PER_UNIT = 1_000_000


@dataclass(frozen=True)
class ModelRates:
    """Per-million-token prices."""

    input_per_million: float
    output_per_million: float


# First match wins, so "pro" must come before any tier it could shadow
RATE_TABLE: tuple[tuple[str, ModelRates], ...] = (
    ("pro", ModelRates(input_per_million=1.25, output_per_million=10.00)),
    ("flash-lite", ModelRates(input_per_million=0.10, output_per_million=0.40)),
)

DEFAULT_RATES = ModelRates(input_per_million=0.30, output_per_million=2.50)


def rates_for(model_id: str) -> ModelRates:
    """Look up rates for a model id (default fast tier when nothing matches)."""
    lowered = model_id.lower()
    for needle, rates in RATE_TABLE:
        if needle in lowered:
            return rates
    return DEFAULT_RATES


def cost_of(
    model_id: str,
    prompt_tokens: int,
    candidate_tokens: int,
    total_tokens: Optional[int] = None,
) -> UsageInfo:
    """Estimate the dollar cost of one call.

    Example:
        >>> cost_of("gemini-2.5-pro", 1_000_000, 0).input_cost
        1.25
    """
    rates = rates_for(model_id)
    input_cost = prompt_tokens / TOKENS_PER_UNIT * rates.input_per_million
    output_cost = candidate_tokens / TOKENS_PER_UNIT * rates.output_per_million

    return UsageInfo(
        model_id=model_id,
        prompt_tokens=prompt_tokens,
        candidate_tokens=candidate_tokens,
        total_tokens=(
            total_tokens if total_tokens is not None else prompt_tokens + candidate_tokens
        ),
        input_cost=input_cost,
        output_cost=output_cost,
        estimated_cost=input_cost + output_cost,
    )
