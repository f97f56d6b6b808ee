"""
Тесты для системы конфигурации
"""

import os
import tempfile

from netlify_api.config import ClientConfig


class TestClientConfig:
    """Тесты конфигурации клиента"""

    def test_default_values(self):
        """Тест значений по умолчанию"""
        config = ClientConfig()

        assert config.user_agent == "netlify/js-client"
        assert config.base_path == "https://api.netlify.com/api/v1"
        assert config.access_token is None
        assert config.global_params == {}
        assert config.poll_interval_ms == 1000
        assert config.timeout_ms == 3_600_000

    def test_retry_policy(self):
        policy = ClientConfig(max_retry=5, retry_delay=0.5).retry_policy()

        assert policy.max_attempts == 6
        assert policy.default_delay == 0.5

    def test_config_save_and_load(self):
        """Тест сохранения и загрузки конфигурации"""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, "netlify.toml")

            original_config = ClientConfig(
                host="api.example.com",
                global_params={"account_slug": "team"},
                spec="openapi.json",
            )
            original_config.save_to_file(config_path)

            loaded_config = ClientConfig.from_file(config_path)

            assert loaded_config is not None
            assert loaded_config.host == "api.example.com"
            assert loaded_config.global_params == {"account_slug": "team"}
            assert loaded_config.spec == "openapi.json"
            assert loaded_config.access_token is None

    def test_search_dir(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            ClientConfig(host="dir.example.com").save_to_file(
                os.path.join(temp_dir, "netlify.toml")
            )

            loaded_config = ClientConfig.from_file("missing.toml", search_dir=temp_dir)

            assert loaded_config.host == "dir.example.com"

    def test_config_file_not_exists(self):
        """Тест загрузки несуществующего конфига"""
        assert ClientConfig.from_file("nonexistent.toml") is None

    def test_invalid_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, "netlify.toml")
            with open(config_path, "w") as f:
                f.write("host = [unclosed")

            assert ClientConfig.from_file(config_path) is None

    def test_config_merge_with_args(self):
        """Тест объединения конфига с аргументами"""
        config = ClientConfig(host="api.netlify.com", access_token="file-token")

        class MockArgs:
            def __init__(self):
                self.spec = "https://example.com/openapi.json"
                self.access_token = None
                self.host = None
                self.proxy = "http://proxy:3128"

        merged = config.merge_with_args(MockArgs())

        assert merged.spec == "https://example.com/openapi.json"
        assert merged.access_token == "file-token"
        assert merged.host == "api.netlify.com"
        assert merged.proxy == "http://proxy:3128"
