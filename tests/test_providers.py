"""
Unit tests for provider inference.
"""

import pytest

from daily_wrapped.core.providers import (
    PROVIDER_RULES,
    infer_provider,
    resolve_provider,
)


class TestInferProvider:
    """Test the ordered substring rule table."""

    @pytest.mark.parametrize("model, provider", [
        ("claude-3-opus", "anthropic"),
        ("anthropic/claude-instant", "anthropic"),
        ("gpt-4o", "openai"),
        ("o1-preview", "openai"),
        ("o3-mini", "openai"),
        ("text-davinci-003", "openai"),
        ("gemini-1.5-pro", "google"),
        ("palm-2", "google"),
        ("mistral-large", "mistral"),
        ("mixtral-8x7b", "mistral"),
        ("deepseek-coder", "deepseek"),
        ("llama-3-70b", "meta"),
        ("meta-llama/Llama-3", "meta"),
        ("unknown-model-xyz", "unknown"),
    ])
    def test_known_models(self, model, provider):
        """Each family maps to its provider."""
        assert infer_provider(model) == provider

    def test_case_insensitive(self):
        """Matching ignores case."""
        assert infer_provider("Claude-3-Sonnet") == "anthropic"
        assert infer_provider("GPT-4") == "openai"

    def test_missing_model_is_unknown(self):
        """None and empty strings yield unknown."""
        assert infer_provider(None) == "unknown"
        assert infer_provider("") == "unknown"

    def test_first_match_wins(self):
        """Earlier rules take priority over later ones."""
        # Contains both "claude" and "gpt"
        assert infer_provider("claude-vs-gpt-eval") == "anthropic"
        # Contains both "gemini" and "llama"
        assert infer_provider("gemini-llama-merge") == "google"

    def test_rule_table_order(self):
        """The rule table is checked in a fixed provider order."""
        assert [provider for _, provider in PROVIDER_RULES] == [
            "anthropic", "openai", "google", "mistral", "deepseek", "meta",
        ]

    def test_custom_rules(self):
        """Callers can pass an extended rule table."""
        rules = ((("grok",), "xai"),) + PROVIDER_RULES
        assert infer_provider("grok-2", rules) == "xai"
        assert infer_provider("grok-2") == "unknown"


class TestResolveProvider:
    """Test explicit provider precedence."""

    def test_explicit_provider_wins(self):
        """An explicit provider is used even if the model suggests another."""
        assert resolve_provider("azure", "gpt-4o") == "azure"

    def test_falls_back_to_inference(self):
        """Without a provider, the model is used."""
        assert resolve_provider(None, "gpt-4o") == "openai"
        assert resolve_provider(None, None) == "unknown"
