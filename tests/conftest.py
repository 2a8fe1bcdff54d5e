"""
pytest configuration and fixtures for Quote Browser tests
"""

import pytest
import json
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock
import sys

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from utils.config_manager import UnifiedConfigManager
from utils.security_utils import PasswordHasher, TokenManager
from stores import QuoteStore, AccountStore, SnapshotFile
from data_sources import BaseQuoteSource
from quote_manager import QuoteManager


TEST_JWT_SECRET = "test-secret"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def test_config_data(temp_dir):
    """Test configuration: no provider, no scheduler, fast bcrypt, temp data dir"""
    return {
        "logging_config": {
            "level": "WARNING",
            "file_config": {"enabled": False},
            "console_config": {"enabled": False}
        },
        "api_config": {
            "host": "127.0.0.1",
            "port": 5001,
            "cors_origins": ["http://localhost:3000"],
            "static_dir": None
        },
        "provider_config": {
            "enabled": False,
            "base_url": "https://quotes.test",
            "timeout": 0.5
        },
        "storage_config": {
            "data_dir": str(temp_dir / "data"),
            "quote_cache_file": "quoteCache.json",
            "users_file": "users.json"
        },
        "auth_config": {
            "jwt_secret": TEST_JWT_SECRET,
            "jwt_algorithm": "HS256",
            "token_ttl_days": 7,
            "bcrypt_rounds": 4
        },
        "scheduler_config": {
            "enabled": False,
            "timezone": "UTC",
            "jobs": {
                "save_quote_cache": {
                    "enabled": True,
                    "description": "Write the quote store snapshot to disk",
                    "trigger": {"type": "interval", "minutes": 10}
                },
                "save_users": {
                    "enabled": True,
                    "description": "Write the account store snapshot to disk",
                    "trigger": {"type": "interval", "minutes": 10}
                }
            }
        }
    }


@pytest.fixture
def test_config_dir(temp_dir, test_config_data):
    """Write the test configuration into an isolated config directory"""
    config_dir = temp_dir / "config"
    config_dir.mkdir()
    with open(config_dir / "config.json", 'w', encoding='utf-8') as f:
        json.dump(test_config_data, f)
    return config_dir


@pytest.fixture
def test_config(test_config_dir, monkeypatch):
    """Config manager reading the isolated directory"""
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    return UnifiedConfigManager(test_config_dir)


@pytest.fixture
def password_hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_manager():
    return TokenManager(TEST_JWT_SECRET, ttl_days=7)


@pytest.fixture
def quote_snapshot(temp_dir):
    return SnapshotFile(temp_dir / "data" / "quoteCache.json", "quote cache")


@pytest.fixture
def users_snapshot(temp_dir):
    return SnapshotFile(temp_dir / "data" / "users.json", "users")


@pytest.fixture
def quote_store(quote_snapshot):
    return QuoteStore(quote_snapshot)


@pytest.fixture
def account_store(users_snapshot, password_hasher):
    return AccountStore(users_snapshot, password_hasher)


@pytest.fixture
def stub_source():
    """Provider stub; every call reports the provider as unavailable by default"""
    source = Mock(spec=BaseQuoteSource)
    source.get_random_quote.return_value = None
    source.get_quotes_by_tag.return_value = None
    source.get_tags.return_value = None
    source.get_status.return_value = {"name": "Stub", "initialized": True}
    return source


@pytest.fixture
def quote_manager(test_config, stub_source, password_hasher):
    return QuoteManager(test_config, source=stub_source, password_hasher=password_hasher)


def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
