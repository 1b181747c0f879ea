"""
Pricing calculations for recorded usage.

Estimates the cost attached to usage events recorded through the SDK.
"""

from dataclasses import dataclass
from decimal import ROUND_UP, Decimal
from typing import Dict


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a specific model."""
    prompt_cost_per_1k: Decimal  # Cost per 1K prompt tokens
    completion_cost_per_1k: Decimal  # Cost per 1K completion tokens


# Fixed table - no dynamic fetching, no defaults
PRICING_TABLE: Dict[str, ModelPricing] = {
    "gpt-4": ModelPricing(Decimal("0.03"), Decimal("0.06")),
    "gpt-4o": ModelPricing(Decimal("0.0025"), Decimal("0.01")),
    "gpt-4o-mini": ModelPricing(Decimal("0.00015"), Decimal("0.0006")),
    "gpt-3.5-turbo": ModelPricing(Decimal("0.0005"), Decimal("0.0015")),
    "o1": ModelPricing(Decimal("0.015"), Decimal("0.06")),
}


def estimate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimate the cost of one request, rounded up to the cent.

    Args:
        model: Model identifier
        prompt_tokens: Prompt token count
        completion_tokens: Completion token count

    Returns:
        Cost in dollars, rounded UP to 2 decimal places

    Raises:
        ValueError: If model is not in the pricing table
    """
    if model not in PRICING_TABLE:
        raise ValueError(f"Unsupported model: {model}")
    pricing = PRICING_TABLE[model]

    prompt_cost = (Decimal(prompt_tokens) / Decimal("1000")) * pricing.prompt_cost_per_1k
    completion_cost = (Decimal(completion_tokens) / Decimal("1000")) * pricing.completion_cost_per_1k

    total = (prompt_cost + completion_cost).quantize(Decimal("0.01"), rounding=ROUND_UP)
    return float(total)
