from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .categories.unified import UnifiedCategory, try_parse
from .utils import load_yaml_file, parse_env_bool, validate_url

PROVIDER_NAMES = (
    "tmdb",
    "tvmaze",
    "fanart",
    "igdb",
    "jikan",
    "theaudiodb",
    "googlebooks",
    "comicvine",
)

# Providers that answer without credentials.
KEYLESS_PROVIDERS = frozenset({"tvmaze", "jikan", "googlebooks"})


@dataclass
class ProviderSettings:
    name: str
    enabled: bool = True
    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    language: str = "fr"
    base_url: str | None = None

    @property
    def has_credentials(self) -> bool:
        if self.name in KEYLESS_PROVIDERS:
            return True
        if self.name == "igdb":
            return bool(self.client_id and self.client_secret)
        return bool(self.api_key)

    @property
    def active(self) -> bool:
        return self.enabled and self.has_credentials


@dataclass
class HttpSettings:
    timeout: float = 20.0


@dataclass
class Settings:
    data_dir: Path = field(default_factory=lambda: Path("/data"))
    poster_dir: Path | None = None
    database: Path | None = None
    http: HttpSettings = field(default_factory=HttpSettings)

    @property
    def poster_root(self) -> Path:
        return self.poster_dir or self.data_dir / "posters"

    @property
    def database_path(self) -> Path:
        return self.database or self.data_dir / "feedmatch.db"


@dataclass
class AppConfig:
    settings: Settings = field(default_factory=Settings)
    providers: dict[str, ProviderSettings] = field(default_factory=dict)
    source_overrides: dict[str, dict[int, UnifiedCategory]] = field(default_factory=dict)

    def provider(self, name: str) -> ProviderSettings:
        return self.providers.get(name) or ProviderSettings(name=name)


def _optional_str(value: Any, *, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, (str, int)):
        raise ValueError(f"'{field_name}' must be a string")
    text = str(value).strip()
    return text or None


def _optional_path(value: Any, *, field_name: str) -> Path | None:
    text = _optional_str(value, field_name=field_name)
    return Path(text).expanduser() if text else None


def _parse_enabled(value: Any, name: str) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    parsed = parse_env_bool(str(value))
    if parsed is None:
        raise ValueError(f"'providers.{name}.enabled' must be a boolean")
    return parsed


def _build_http_settings(data: dict[str, Any]) -> HttpSettings:
    if not data:
        return HttpSettings()
    if not isinstance(data, dict):
        raise ValueError("'settings.http' must be provided as a mapping when specified")
    try:
        timeout = float(data.get("timeout", HttpSettings.timeout))
    except (TypeError, ValueError) as exc:
        raise ValueError("'settings.http.timeout' must be a number") from exc
    if timeout <= 0:
        raise ValueError("'settings.http.timeout' must be greater than 0")
    return HttpSettings(timeout=timeout)


def _build_settings(data: dict[str, Any]) -> Settings:
    if not data:
        return Settings()
    if not isinstance(data, dict):
        raise ValueError("'settings' must be provided as a mapping when specified")

    data_dir = _optional_path(data.get("data_dir"), field_name="settings.data_dir") or Path("/data")
    return Settings(
        data_dir=data_dir,
        poster_dir=_optional_path(data.get("poster_dir"), field_name="settings.poster_dir"),
        database=_optional_path(data.get("database"), field_name="settings.database"),
        http=_build_http_settings(data.get("http", {}) or {}),
    )


def _build_provider_settings(name: str, data: Any) -> ProviderSettings:
    if data is None:
        return ProviderSettings(name=name)
    if not isinstance(data, dict):
        raise ValueError(f"'providers.{name}' must be provided as a mapping when specified")

    base_url = _optional_str(data.get("base_url"), field_name=f"providers.{name}.base_url")
    if base_url and not validate_url(base_url):
        raise ValueError(f"'providers.{name}.base_url' must be an http(s) URL")

    language = _optional_str(data.get("language"), field_name=f"providers.{name}.language") or "fr"
    return ProviderSettings(
        name=name,
        enabled=_parse_enabled(data.get("enabled", True), name),
        api_key=_optional_str(data.get("api_key"), field_name=f"providers.{name}.api_key"),
        client_id=_optional_str(data.get("client_id"), field_name=f"providers.{name}.client_id"),
        client_secret=_optional_str(data.get("client_secret"), field_name=f"providers.{name}.client_secret"),
        language=language.lower(),
        base_url=base_url,
    )


def _build_providers(data: dict[str, Any]) -> dict[str, ProviderSettings]:
    if not data:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("'providers' must be provided as a mapping when specified")
    unknown = sorted(set(data) - set(PROVIDER_NAMES))
    if unknown:
        raise ValueError(f"'providers' contains unknown provider(s): {', '.join(unknown)}")
    return {name: _build_provider_settings(name, data.get(name)) for name in PROVIDER_NAMES}


def _build_source_overrides(data: dict[str, Any]) -> dict[str, dict[int, UnifiedCategory]]:
    if not data:
        return {}
    if not isinstance(data, dict):
        raise ValueError("'categories.source_overrides' must be provided as a mapping when specified")

    overrides: dict[str, dict[int, UnifiedCategory]] = {}
    for source, entries in data.items():
        field_prefix = f"categories.source_overrides.{source}"
        if not isinstance(entries, dict):
            raise ValueError(f"'{field_prefix}' must be a mapping of spec id -> category")
        mapping: dict[int, UnifiedCategory] = {}
        for raw_id, raw_category in entries.items():
            try:
                spec_id = int(raw_id)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"'{field_prefix}' keys must be integers") from exc
            category = try_parse(str(raw_category)) if raw_category is not None else None
            if category is None:
                raise ValueError(f"'{field_prefix}.{spec_id}' must name a unified category")
            mapping[spec_id] = category
        overrides[str(source)] = mapping
    return overrides


def _build_categories(data: dict[str, Any]) -> dict[str, dict[int, UnifiedCategory]]:
    if not data:
        return {}
    if not isinstance(data, dict):
        raise ValueError("'categories' must be provided as a mapping when specified")
    return _build_source_overrides(data.get("source_overrides", {}) or {})


def load_config(path: Path) -> AppConfig:
    data = load_yaml_file(path)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping")

    return AppConfig(
        settings=_build_settings(data.get("settings", {}) or {}),
        providers=_build_providers(data.get("providers", {}) or {}),
        source_overrides=_build_categories(data.get("categories", {}) or {}),
    )
