"""
Tests for backend/settings.py
"""
import pytest
from pydantic import ValidationError

from backend.settings import Settings

pytestmark = pytest.mark.unit


def make_settings(**kwargs) -> Settings:
    kwargs.setdefault("environment", "test")
    return Settings(_env_file=None, **kwargs)


class TestEnvironment:
    def test_environment_is_normalized(self):
        settings = make_settings(environment="PRODUCTION")
        assert settings.environment == "production"
        assert settings.is_production
        assert not settings.is_development

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            make_settings(environment="qa")

    def test_test_flag(self):
        assert make_settings().is_test


class TestParsedLists:
    def test_api_keys_list_skips_blanks(self):
        settings = make_settings(api_keys="sk_a, sk_b,, ")
        assert settings.api_keys_list == ["sk_a", "sk_b"]

    def test_empty_api_keys(self):
        assert make_settings().api_keys_list == []

    def test_cors_origins(self):
        settings = make_settings(cors_allowed_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_reads_environment_variables(self, monkeypatch):
        monkeypatch.setenv("API_KEYS", "from_env")
        assert make_settings().api_keys_list == ["from_env"]


class TestSupabaseKey:
    def test_service_role_preferred(self):
        settings = make_settings(supabase_service_role_key="service", supabase_anon_key="anon")
        assert settings.supabase_key == "service"

    def test_falls_back_to_anon(self):
        assert make_settings(supabase_anon_key="anon").supabase_key == "anon"


class TestSyncRetryPolicy:
    def test_defaults(self):
        policy = make_settings().sync_retry_policy()
        assert policy.max_retries == 3
        assert policy.base_delay == 1.0
        assert policy.max_delay == 10.0
        assert policy.jitter is False

    def test_overrides(self):
        policy = make_settings(
            retry_max_attempts=5, retry_base_delay_seconds=0.5, retry_max_delay_seconds=4
        ).sync_retry_policy()
        assert (policy.max_retries, policy.base_delay, policy.max_delay) == (5, 0.5, 4.0)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(retry_max_attempts=-1)
