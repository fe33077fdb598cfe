from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from feedmatch.categories import UnifiedCategory
from feedmatch.config import PROVIDER_NAMES, ProviderSettings, load_config


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "feedmatch.yaml"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, ""))

    assert config.settings.data_dir == Path("/data")
    assert config.settings.poster_root == Path("/data/posters")
    assert config.settings.database_path == Path("/data/feedmatch.db")
    assert config.settings.http.timeout == 20.0
    assert set(config.providers) == set(PROVIDER_NAMES)
    assert config.source_overrides == {}


def test_full_configuration(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "secret")
    path = _write(
        tmp_path,
        """
        settings:
          data_dir: /srv/feedmatch
          poster_dir: /srv/posters
          http:
            timeout: 5
        providers:
          tmdb:
            api_key: ${TMDB_API_KEY}
            language: EN
          igdb:
            client_id: abc
            client_secret: def
          comicvine:
            enabled: false
            api_key: key
        categories:
          source_overrides:
            Torr9:
              105000: Anime
              105100: serie
        """,
    )

    config = load_config(path)

    assert config.settings.poster_root == Path("/srv/posters")
    assert config.settings.database_path == Path("/srv/feedmatch/feedmatch.db")
    assert config.settings.http.timeout == 5.0
    assert config.provider("tmdb").api_key == "secret"
    assert config.provider("tmdb").language == "en"
    assert config.provider("igdb").active
    assert not config.provider("comicvine").active
    assert config.source_overrides == {
        "Torr9": {105000: UnifiedCategory.ANIME, 105100: UnifiedCategory.SERIE}
    }


def test_provider_credentials() -> None:
    assert ProviderSettings(name="tvmaze").active
    assert not ProviderSettings(name="fanart").active
    assert ProviderSettings(name="fanart", api_key="k").active
    assert not ProviderSettings(name="igdb", client_id="id").active
    assert not ProviderSettings(name="jikan", enabled=False).active


@pytest.mark.parametrize(
    "content,message",
    [
        ("- a\n- b\n", "root must be a mapping"),
        ("settings: [1]\n", "'settings' must be provided as a mapping"),
        ("settings:\n  http:\n    timeout: 0\n", "settings.http.timeout"),
        ("settings:\n  http:\n    timeout: soon\n", "settings.http.timeout"),
        ("providers:\n  imdb: {}\n", "unknown provider"),
        ("providers:\n  tmdb: key\n", "providers.tmdb"),
        ("providers:\n  tmdb:\n    base_url: ftp://x\n", "providers.tmdb.base_url"),
        ("categories:\n  source_overrides:\n    C411:\n      abc: Film\n", "keys must be integers"),
        ("categories:\n  source_overrides:\n    C411:\n      105000: Cartoon\n", "C411.105000"),
    ],
)
def test_invalid_configuration(tmp_path: Path, content: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        load_config(_write(tmp_path, content))


def test_sample_configuration_loads(monkeypatch: pytest.MonkeyPatch) -> None:
    sample_path = Path(__file__).resolve().parents[1] / "config" / "feedmatch.sample.yaml"
    if not sample_path.exists():
        pytest.skip("Sample configuration not present in repository checkout")
    monkeypatch.setenv("TMDB_API_KEY", "tmdb-key")

    config = load_config(sample_path)

    assert config.provider("tmdb").api_key == "tmdb-key"
    assert config.provider("tvmaze").active
    assert not config.provider("comicvine").active
    assert config.source_overrides["Torr9"][105070] is UnifiedCategory.ANIME


@pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("off", False), ("yes", True), ("1", True)])
def test_enabled_accepts_env_strings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("COMICVINE_ENABLED", raw)
    path = _write(tmp_path, "providers:\n  comicvine:\n    enabled: ${COMICVINE_ENABLED}\n    api_key: key\n")

    config = load_config(path)

    assert config.provider("comicvine").enabled is expected
    assert config.provider("comicvine").active is expected


def test_enabled_rejects_unknown_strings(tmp_path: Path) -> None:
    path = _write(tmp_path, "providers:\n  comicvine:\n    enabled: maybe\n")

    with pytest.raises(ValueError, match="'providers.comicvine.enabled' must be a boolean"):
        load_config(path)
