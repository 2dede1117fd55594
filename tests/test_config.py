"""Tests for the configuration module."""

from pathlib import Path

import pytest

from uptimewatch.config import (
    DEFAULT_INTERVAL,
    DEFAULT_TIMEOUT,
    Config,
    ConfigError,
    Endpoint,
    MonitorConfig,
    load_config,
)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for config files."""
    return tmp_path


@pytest.fixture
def list_config_content() -> str:
    """Endpoints file as a plain YAML list."""
    return """- name: fetch index page
  url: https://fetch.com/
  method: GET
  headers:
    user-agent: fetch-synthetic-monitor

- name: fetch careers page
  url: https://fetch.com/careers

- name: fetch some fake post endpoint
  url: https://fetch.com/some/post/endpoint
  method: POST
  headers:
    content-type: application/json
  body: '{"foo":"bar"}'

- name: fetch rewards index page
  url: https://www.fetchrewards.com/
"""


@pytest.fixture
def dict_config_content() -> str:
    """Endpoints file with a monitor section."""
    return """endpoints:
  - name: Example
    url: https://example.com/

monitor:
  interval: 30
  timeout: 2.5
"""


def write_config(config_dir: Path, content: str) -> str:
    path = config_dir / "endpoints.yaml"
    path.write_text(content)
    return str(path)


class TestEndpoint:
    """Tests for Endpoint dataclass."""

    def test_creates_with_defaults(self) -> None:
        endpoint = Endpoint(name="svc", url="https://example.com/")

        assert endpoint.method == "GET"
        assert endpoint.headers == {}
        assert endpoint.body is None

    def test_rejects_empty_name(self) -> None:
        with pytest.raises(ConfigError, match="name cannot be empty"):
            Endpoint(name="", url="https://example.com/")

    def test_rejects_empty_url(self) -> None:
        with pytest.raises(ConfigError, match="URL cannot be empty"):
            Endpoint(name="svc", url="")

    def test_allows_unknown_scheme(self) -> None:
        """Unsupported schemes surface when probed, not when loaded."""
        endpoint = Endpoint(name="svc", url="fake://example.com/")

        assert endpoint.url == "fake://example.com/"

    def test_rejects_non_string_header_values(self) -> None:
        with pytest.raises(ConfigError, match="Header"):
            Endpoint(name="svc", url="https://example.com/", headers={"X-Retry": 3})  # type: ignore[dict-item]

    def test_rejects_empty_method(self) -> None:
        with pytest.raises(ConfigError, match="Method"):
            Endpoint(name="svc", url="https://example.com/", method="")

    def test_is_immutable(self) -> None:
        endpoint = Endpoint(name="svc", url="https://example.com/")

        with pytest.raises(AttributeError):
            endpoint.url = "https://other.example.com/"  # type: ignore[misc]

    def test_is_hashable(self) -> None:
        endpoint = Endpoint(name="svc", url="https://example.com/", headers={"Accept": "text/plain"})
        same = Endpoint(name="svc", url="https://example.com/", headers={"Accept": "text/plain"})

        assert hash(endpoint) == hash(same)
        assert {endpoint, same} == {endpoint}

    def test_headers_are_read_only(self) -> None:
        endpoint = Endpoint(name="svc", url="https://example.com/", headers={"Accept": "text/plain"})

        with pytest.raises(TypeError):
            endpoint.headers["Accept"] = "application/json"  # type: ignore[index]

    def test_headers_are_copied(self) -> None:
        headers = {"Accept": "text/plain"}
        endpoint = Endpoint(name="svc", url="https://example.com/", headers=headers)

        headers["Accept"] = "application/json"

        assert endpoint.headers == {"Accept": "text/plain"}


class TestMonitorConfig:
    """Tests for MonitorConfig dataclass."""

    def test_defaults(self) -> None:
        monitor = MonitorConfig()

        assert monitor.interval == DEFAULT_INTERVAL == 15.0
        assert monitor.timeout == DEFAULT_TIMEOUT == 0.5

    def test_rejects_interval_below_minimum(self) -> None:
        with pytest.raises(ConfigError, match="interval must be at least"):
            MonitorConfig(interval=0.5, timeout=0.1)

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ConfigError, match="timeout must be positive"):
            MonitorConfig(timeout=0)

    def test_rejects_timeout_longer_than_interval(self) -> None:
        with pytest.raises(ConfigError, match="cannot exceed"):
            MonitorConfig(interval=5, timeout=10)


class TestConfig:
    """Tests for Config dataclass."""

    def test_requires_an_endpoint(self) -> None:
        with pytest.raises(ConfigError, match="At least one endpoint"):
            Config(endpoints=[])


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_plain_list(self, config_dir: Path, list_config_content: str) -> None:
        config = load_config(write_config(config_dir, list_config_content))

        assert len(config.endpoints) == 4
        assert config.monitor == MonitorConfig()

        first = config.endpoints[0]
        assert first.name == "fetch index page"
        assert first.headers == {"user-agent": "fetch-synthetic-monitor"}

        post = config.endpoints[2]
        assert post.method == "POST"
        assert post.body == '{"foo":"bar"}'

        careers = config.endpoints[1]
        assert careers.method == "GET"
        assert careers.headers == {}
        assert careers.body is None

    def test_loads_dict_with_monitor_section(self, config_dir: Path, dict_config_content: str) -> None:
        config = load_config(write_config(config_dir, dict_config_content))

        assert [e.name for e in config.endpoints] == ["Example"]
        assert config.monitor.interval == 30.0
        assert config.monitor.timeout == 2.5

    def test_keeps_duplicate_urls(self, config_dir: Path) -> None:
        content = """- name: one
  url: https://example.com/
- name: two
  url: https://example.com/
"""
        config = load_config(write_config(config_dir, content))

        assert len(config.endpoints) == 2

    def test_file_not_found(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(config_dir / "missing.yaml"))

    def test_empty_file(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="empty"):
            load_config(write_config(config_dir, ""))

    def test_invalid_yaml(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            load_config(write_config(config_dir, "- name: [unclosed\n"))

    def test_scalar_document(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="list or dictionary"):
            load_config(write_config(config_dir, "just a string\n"))

    def test_missing_endpoints_section(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="'endpoints' section"):
            load_config(write_config(config_dir, "monitor:\n  interval: 30\n"))

    def test_endpoints_must_be_list(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="must be a list"):
            load_config(write_config(config_dir, "endpoints:\n  name: x\n"))

    def test_missing_url(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="missing 'url'"):
            load_config(write_config(config_dir, "- name: no url\n"))

    def test_missing_name(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="missing 'name'"):
            load_config(write_config(config_dir, "- url: https://example.com/\n"))

    def test_entry_must_be_mapping(self, config_dir: Path) -> None:
        with pytest.raises(ConfigError, match="must be a dictionary"):
            load_config(write_config(config_dir, "- https://example.com/\n"))

    def test_headers_must_be_mapping(self, config_dir: Path) -> None:
        content = "- name: x\n  url: https://example.com/\n  headers: [a, b]\n"
        with pytest.raises(ConfigError, match="'headers' must be a dictionary"):
            load_config(write_config(config_dir, content))

    def test_invalid_monitor_value(self, config_dir: Path) -> None:
        content = "endpoints:\n  - name: x\n    url: https://example.com/\nmonitor:\n  interval: soon\n"
        with pytest.raises(ConfigError, match="Invalid monitor setting"):
            load_config(write_config(config_dir, content))

    def test_env_overrides(
        self, config_dir: Path, dict_config_content: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("UPTIMEWATCH_INTERVAL", "60")
        monkeypatch.setenv("UPTIMEWATCH_TIMEOUT", "1.5")

        config = load_config(write_config(config_dir, dict_config_content))

        assert config.monitor.interval == 60.0
        assert config.monitor.timeout == 1.5

    def test_env_overrides_apply_to_plain_list(
        self, config_dir: Path, list_config_content: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("UPTIMEWATCH_INTERVAL", "5")

        config = load_config(write_config(config_dir, list_config_content))

        assert config.monitor.interval == 5.0
        assert config.monitor.timeout == DEFAULT_TIMEOUT
