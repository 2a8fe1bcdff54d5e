"""
Unit tests for configuration manager
"""

import pytest
import json

from utils.config_manager import UnifiedConfigManager, ApiConfig, StorageConfig
from utils.exceptions import ConfigurationError, ErrorCodes


@pytest.mark.unit
class TestConfigManager:
    """Test cases for UnifiedConfigManager"""

    @pytest.fixture
    def config_dir(self, temp_dir):
        """Two config files merged in filename order"""
        config_dir = temp_dir / "config"
        config_dir.mkdir()
        with open(config_dir / "00-base.json", 'w') as f:
            json.dump({
                "api_config": {"host": "localhost", "port": 8080},
                "auth_config": {"jwt_secret": "from-file", "bcrypt_rounds": 6},
                "provider_config": {"enabled": True, "timeout": "1.5"},
            }, f)
        with open(config_dir / "10-override.json", 'w') as f:
            json.dump({"api_config": {"host": "0.0.0.0", "port": 9090, "static_dir": "client/build"}}, f)
        return config_dir

    @pytest.fixture
    def manager(self, config_dir, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        return UnifiedConfigManager(config_dir)

    def test_files_merged_in_order(self, manager):
        assert manager.get_nested("api_config.port") == 9090
        assert "auth_config" in manager
        assert manager["api_config"]["host"] == "0.0.0.0"

    def test_get_nested_default(self, manager):
        assert manager.get_nested("api_config.missing", "fallback") == "fallback"
        assert manager.get("nope") is None

    def test_set_nested_invalidates_typed_cache(self, manager):
        assert manager.get_api_config().port == 9090
        manager.set_nested("api_config.port", 7070)
        assert manager.get_api_config().port == 7070

    def test_api_config(self, manager):
        api = manager.get_api_config()
        assert isinstance(api, ApiConfig)
        assert api.static_dir == "client/build"
        assert api.cors_origins == ["*"]

    def test_port_env_override(self, manager, monkeypatch):
        monkeypatch.setenv("PORT", "6000")
        manager.clear_cache()
        assert manager.get_api_config().port == 6000

    def test_auth_config_and_env_secret(self, manager, monkeypatch):
        auth = manager.get_auth_config()
        assert auth.jwt_secret == "from-file"
        assert auth.bcrypt_rounds == 6
        assert auth.token_ttl_days == 7

        monkeypatch.setenv("JWT_SECRET", "from-env")
        manager.clear_cache()
        assert manager.get_auth_config().jwt_secret == "from-env"

    def test_provider_config(self, manager):
        provider = manager.get_provider_config()
        assert provider.timeout == 1.5
        assert provider.base_url == "https://api.quotable.io"

    def test_storage_defaults(self, manager):
        storage = manager.get_storage_config()
        assert isinstance(storage, StorageConfig)
        assert storage.quote_cache_path.name == "quoteCache.json"
        assert storage.users_path.parent == storage.data_path
        assert storage.data_path.is_absolute()

    def test_scheduler_defaults(self, manager):
        scheduler = manager.get_scheduler_config()
        assert scheduler.enabled is True
        assert scheduler.jobs == {}

    def test_is_enabled(self, manager):
        assert manager.is_enabled("provider_config")
        assert not manager.is_enabled("scheduler_config")

    def test_save_config(self, manager, config_dir):
        manager.save_config()
        saved = json.loads((config_dir / "config.merged.json").read_text())
        assert saved["api_config"]["port"] == 9090

        # 导出文件不参与下一次合并
        UnifiedConfigManager(config_dir)

    def test_missing_directory(self, temp_dir):
        with pytest.raises(ConfigurationError) as exc_info:
            UnifiedConfigManager(temp_dir / "absent")
        assert exc_info.value.error_code == ErrorCodes.CONFIG_NOT_FOUND

    def test_empty_directory(self, temp_dir):
        with pytest.raises(ConfigurationError):
            UnifiedConfigManager(temp_dir)

    def test_invalid_json(self, temp_dir):
        (temp_dir / "config.json").write_text("{ broken")
        with pytest.raises(ConfigurationError) as exc_info:
            UnifiedConfigManager(temp_dir)
        assert exc_info.value.error_code == ErrorCodes.CONFIG_INVALID_FORMAT

    def test_non_object_file(self, temp_dir):
        (temp_dir / "config.json").write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            UnifiedConfigManager(temp_dir)
