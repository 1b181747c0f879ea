"""
Provider inference from model identifiers.

Events that do not carry an explicit provider are attributed by matching
the model identifier against an ordered rule table.
"""

from typing import Optional, Sequence, Tuple

UNKNOWN = "unknown"

ProviderRule = Tuple[Tuple[str, ...], str]

# Checked in order, first match wins
PROVIDER_RULES: Tuple[ProviderRule, ...] = (
    (("claude", "anthropic"), "anthropic"),
    (("gpt", "o1", "o3", "davinci"), "openai"),
    (("gemini", "palm"), "google"),
    (("mistral", "mixtral"), "mistral"),
    (("deepseek",), "deepseek"),
    (("llama", "meta"), "meta"),
)


def infer_provider(model: Optional[str], rules: Sequence[ProviderRule] = PROVIDER_RULES) -> str:
    """Infer the provider for a model identifier.

    Matching is a case-insensitive substring test.

    Args:
        model: Model identifier, may be None
        rules: Ordered (substrings, provider) rules

    Returns:
        Provider name, or "unknown" when nothing matches
    """
    if not model:
        return UNKNOWN
    lowered = model.lower()
    for substrings, provider in rules:
        if any(s in lowered for s in substrings):
            return provider
    return UNKNOWN


def resolve_provider(provider: Optional[str], model: Optional[str]) -> str:
    """Use the explicit provider when present, otherwise infer it."""
    return provider or infer_provider(model)
