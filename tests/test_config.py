"""
Tests for settings helpers: credential discovery and runtime detection.
"""

from occsync.core.config import Settings, is_serverless_runtime, is_valid_api_key, load_api_keys
from occsync.services.sync_orchestrator import SyncConfig

from conftest import KEY_A, KEY_B, KEY_C


class TestLoadApiKeys:
    """Tests for load_api_keys."""

    def test_primary_key_first_then_sorted_suffixes(self):
        env = {"BLS_API_KEY_3": KEY_C, "BLS_API_KEY": KEY_A, "BLS_API_KEY_2": KEY_B}

        assert load_api_keys(env) == [KEY_A, KEY_B, KEY_C]

    def test_invalid_format_ignored(self):
        env = {"BLS_API_KEY": "short", "BLS_API_KEY_2": KEY_B, "BLS_API_KEY_3": "x" * 31 + "!"}

        assert load_api_keys(env) == [KEY_B]

    def test_duplicates_removed(self):
        env = {"BLS_API_KEY": KEY_A, "BLS_API_KEY_BACKUP": KEY_A}

        assert load_api_keys(env) == [KEY_A]

    def test_unrelated_variables_ignored(self):
        assert load_api_keys({"OTHER_KEY": KEY_A}) == []

    def test_whitespace_stripped(self):
        assert load_api_keys({"BLS_API_KEY": f"  {KEY_A}\n"}) == [KEY_A]


class TestHelpers:
    """Tests for key format and serverless detection."""

    def test_valid_api_key(self):
        assert is_valid_api_key("a1B2" * 8)
        assert not is_valid_api_key("a1B2" * 7)
        assert not is_valid_api_key("-" * 32)

    def test_serverless_detection(self):
        assert is_serverless_runtime({"VERCEL": "1"})
        assert is_serverless_runtime({"AWS_LAMBDA_FUNCTION_NAME": "sync"})
        assert not is_serverless_runtime({})


class TestSyncConfig:
    """Tests for SyncConfig construction."""

    def test_defaults(self):
        config = SyncConfig()

        assert config.max_concurrent == 5
        assert config.batch_size == 50
        assert config.retry_attempts == 3
        assert config.checkpoint_history == 10

    def test_serverless_defaults(self):
        config = SyncConfig.for_serverless()

        assert config.max_concurrent == 2
        assert config.batch_size == 10
        assert config.retry_attempts == 5
        assert config.base_retry_delay == 2.0
        assert config.max_retry_delay == 60.0

    def test_serverless_overrides(self):
        assert SyncConfig.for_serverless(batch_size=4).batch_size == 4

    def test_from_settings(self, monkeypatch):
        monkeypatch.delenv("VERCEL", raising=False)
        monkeypatch.delenv("AWS_LAMBDA_FUNCTION_NAME", raising=False)
        monkeypatch.delenv("SERVERLESS", raising=False)

        config = SyncConfig.from_settings(Settings(SYNC_BATCH_SIZE=20, SYNC_MAX_CONCURRENT=4))

        assert config.batch_size == 20
        assert config.max_concurrent == 4
