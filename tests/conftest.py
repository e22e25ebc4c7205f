"""Root pytest configuration for kodo-storage-driver tests."""
import pytest

from kodo_driver.settings import Settings
from kodo_driver.storage.driver import KodoDriver
from .storage.fakes.fake_kodo import FakeKodoStore


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires KODO credentials)"
    )


# Set up test environment variables
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically set up test environment variables."""
    monkeypatch.setenv("KODO_BUCKET", "registry")
    monkeypatch.setenv("KODO_BASE_URL", "http://cdn.example.com")
    monkeypatch.setenv("KODO_ACCESS_KEY", "test-ak")
    monkeypatch.setenv("KODO_SECRET_KEY", "test-sk")


@pytest.fixture
def scratch_dir(tmp_path):
    """Empty scratch directory for spilled write streams."""
    path = tmp_path / "scratch"
    path.mkdir()
    return path


# Standardized test fixtures
@pytest.fixture
def settings(scratch_dir):
    """Standard test settings (bucket root, small list pages)."""
    return Settings(
        bucket="registry",
        base_url="http://cdn.example.com",
        access_key="test-ak",
        secret_key="test-sk",
        list_limit=2,
        scratch_dir=str(scratch_dir),
    )


@pytest.fixture
def rooted_settings(scratch_dir):
    """Test settings with a root directory prefix."""
    return Settings(
        bucket="registry",
        base_url="http://cdn.example.com",
        access_key="test-ak",
        secret_key="test-sk",
        root_directory="/registry-root/",
        list_limit=2,
        scratch_dir=str(scratch_dir),
    )


@pytest.fixture
def store():
    """Standard fake KODO store for testing."""
    return FakeKodoStore()


@pytest.fixture
def driver(settings, store):
    """Driver over the fake store with no root directory."""
    return KodoDriver(settings, store=store)


@pytest.fixture
def rooted_driver(rooted_settings, store):
    """Driver over the fake store rooted at /registry-root."""
    return KodoDriver(rooted_settings, store=store)
