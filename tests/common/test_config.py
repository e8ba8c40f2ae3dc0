from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from concord.config import (
    ConfigurationError,
    MissingConfigurationError,
    env_int,
    env_list,
    get_itunes_config,
    get_lookup_config,
    get_storage_config,
    get_tidal_config,
    require_env_vars,
)
from concord.config.lookup import DEFAULT_REGIONS
from concord.domain.model import SnapshotFallback

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_reports_all_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert str(exc.value) == "Missing configuration for: BLANK_VAR, MISSING_VAR"
    assert exc.value.variables == ("BLANK_VAR", "MISSING_VAR")


def test_env_int(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    assert env_int("EXAMPLE_INT", 5) == 5

    monkeypatch.setenv("EXAMPLE_INT", " 12 ")
    assert env_int("EXAMPLE_INT", 5, minimum=1) == 12

    monkeypatch.setenv("EXAMPLE_INT", "0")
    with pytest.raises(ConfigurationError, match="at least 1"):
        env_int("EXAMPLE_INT", 5, minimum=1)

    monkeypatch.setenv("EXAMPLE_INT", "many")
    with pytest.raises(ConfigurationError, match="must be an integer") as exc:
        env_int("EXAMPLE_INT", 5)
    assert exc.value.variable == "EXAMPLE_INT"


def test_env_list(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_LIST", " a, b ,,c ")
    assert env_list("EXAMPLE_LIST") == ("a", "b", "c")

    monkeypatch.setenv("EXAMPLE_LIST", " ")
    assert env_list("EXAMPLE_LIST", ["x"]) == ("x",)


@pytest.mark.usefixtures("isolated_env")
def test_lookup_config_defaults() -> None:
    config = get_lookup_config()

    assert config.regions == DEFAULT_REGIONS
    assert config.snapshot_fallback is SnapshotFallback.STRICT
    assert config.providers == ()


@pytest.mark.usefixtures("isolated_env")
def test_lookup_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONCORD_REGIONS", "de,fr")
    monkeypatch.setenv("CONCORD_CONCURRENCY", "4")
    monkeypatch.setenv("CONCORD_SNAPSHOT_MAX_AGE", "0")
    monkeypatch.setenv("CONCORD_SNAPSHOT_FALLBACK", " Mixed ")
    monkeypatch.setenv("CONCORD_PROVIDERS", "tidal")

    config = get_lookup_config()

    assert config.regions == ("DE", "FR")
    assert config.concurrency_limit == 4
    assert config.snapshot_max_age_seconds == 0
    assert config.snapshot_fallback is SnapshotFallback.MIXED
    assert config.providers == ("tidal",)


@pytest.mark.usefixtures("isolated_env")
def test_lookup_config_rejects_unknown_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONCORD_SNAPSHOT_FALLBACK", "sometimes")

    with pytest.raises(ConfigurationError, match="CONCORD_SNAPSHOT_FALLBACK must be one of"):
        get_lookup_config()


def test_storage_config_uses_data_dir(isolated_env: Path) -> None:
    config = get_storage_config()

    assert config.resolve_data_dir() == isolated_env.resolve()
    assert config.snapshot_dir() == isolated_env.resolve() / "snaps"
    assert config.http_cache_path(ensure=False).name == "http_cache.db"


@pytest.mark.skipif(os.name == "nt", reason="uses LOCALAPPDATA on Windows")
def test_storage_config_default_location(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("CONCORD_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    config = get_storage_config()

    assert config.data_dir == (tmp_path / "concord").resolve()


@pytest.mark.usefixtures("isolated_env")
def test_tidal_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(MissingConfigurationError, match="TIDAL_CLIENT_ID"):
        get_tidal_config()

    monkeypatch.setenv("TIDAL_CLIENT_ID", "client")
    monkeypatch.setenv("TIDAL_CLIENT_SECRET", "secret")
    config = get_tidal_config()

    assert config.client_secret == "secret"
    assert config.resilience.name == "tidal"
    assert config.resilience.ratelimit is not None


def test_itunes_config_skips_caching_empty_results() -> None:
    config = get_itunes_config()

    assert config.resilience.cache is not None
    should_cache = config.resilience.cache.should_cache
    assert should_cache is not None
    assert should_cache({"resultCount": 1, "results": [{}]})
    assert not should_cache({"resultCount": 0, "results": []})
