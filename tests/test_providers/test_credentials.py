"""Tests for API key resolution."""

from shop_agent.providers import ProviderKind, credential_sources, resolve_credential


class TestResolveCredential:
    """Tests for credential_sources / resolve_credential."""

    def test_order_of_sources(self):
        names = [s.name for s in credential_sources(ProviderKind.GEMINI, "x")]

        assert names == ["argument", "GEMINI_API_KEY", "API_KEY"]

    def test_explicit_argument_first(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "env")

        cred = resolve_credential(credential_sources(ProviderKind.DEEPSEEK, "arg"))

        assert cred.value == "arg"
        assert cred.source == "argument"

    def test_generic_env_var_last(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "generic")

        cred = resolve_credential(credential_sources(ProviderKind.DEEPSEEK))

        assert cred.value == "generic"
        assert cred.source == "API_KEY"

    def test_other_provider_key_ignored(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-only")

        cred = resolve_credential(credential_sources(ProviderKind.DEEPSEEK))

        assert not cred
        assert cred.value == ""

    def test_empty_values_skipped(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "")
        monkeypatch.setenv("API_KEY", "fallback")

        cred = resolve_credential(credential_sources(ProviderKind.DEEPSEEK, ""))

        assert cred.value == "fallback"
