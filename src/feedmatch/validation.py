from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from jsonschema import Draft7Validator

from .categories.unified import try_parse
from .config import PROVIDER_NAMES
from .utils import parse_env_bool, validate_url


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> List[ValidationIssue]:
        return [*self.errors, *self.warnings]


_TEXT = {"type": ["string", "integer"]}

_PROVIDER_SCHEMA: Dict[str, Any] = {
    "type": ["object", "null"],
    "properties": {
        "enabled": {"type": ["boolean", "string", "integer"]},
        "api_key": _TEXT,
        "client_id": _TEXT,
        "client_secret": _TEXT,
        "language": {"type": "string"},
        "base_url": {"type": "string"},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "settings": {
            "type": ["object", "null"],
            "properties": {
                "data_dir": {"type": "string"},
                "poster_dir": {"type": "string"},
                "database": {"type": "string"},
                "http": {
                    "type": ["object", "null"],
                    "properties": {
                        "timeout": {"type": "number", "exclusiveMinimum": 0},
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
        "providers": {
            "type": ["object", "null"],
            "properties": {name: _PROVIDER_SCHEMA for name in PROVIDER_NAMES},
            "additionalProperties": False,
        },
        "categories": {
            "type": ["object", "null"],
            "properties": {
                "source_overrides": {
                    "type": ["object", "null"],
                    "additionalProperties": {
                        "type": "object",
                        "propertyNames": {"pattern": r"^[0-9]+$"},
                        "additionalProperties": {"type": "string"},
                    },
                },
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": True,
}


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    # The schema has no arrays; integer parts are spec-id mapping keys.
    if not path:
        return "<root>"
    return ".".join(str(part) for part in path)


def _error(report: ValidationReport, path: str, message: str, code: str) -> None:
    report.errors.append(ValidationIssue(severity="error", path=path, message=message, code=code))


def validate_config_data(data: Any) -> ValidationReport:
    """Validate raw configuration data against the schema and semantic rules.

    Schema errors are reported first, sorted by path. Semantic checks only
    look at values whose shape the schema already accepted.
    """
    report = ValidationReport()
    validator = Draft7Validator(CONFIG_SCHEMA)

    for error in sorted(validator.iter_errors(data), key=lambda exc: [str(part) for part in exc.path]):
        _error(report, _format_jsonschema_path(error.absolute_path), error.message, "schema")

    if isinstance(data, dict):
        _validate_semantics(data, report)
    return report


def _validate_semantics(data: Dict[str, Any], report: ValidationReport) -> None:
    providers = data.get("providers") or {}
    if isinstance(providers, dict):
        for name, provider in providers.items():
            if name not in PROVIDER_NAMES or not isinstance(provider, dict):
                continue
            enabled = provider.get("enabled")
            if isinstance(enabled, str) and parse_env_bool(enabled) is None:
                _error(report, f"providers.{name}.enabled", f"{enabled!r} is not a boolean", "provider-enabled")
            base_url = provider.get("base_url")
            if isinstance(base_url, str) and base_url.strip() and not validate_url(base_url):
                _error(report, f"providers.{name}.base_url", "Base URL must be an http(s) URL", "provider-url")
            if provider.get("enabled", True) is not False and name == "igdb":
                if bool(provider.get("client_id")) != bool(provider.get("client_secret")):
                    report.warnings.append(
                        ValidationIssue(
                            severity="warning",
                            path="providers.igdb",
                            message="IGDB needs both client_id and client_secret",
                            code="provider-credentials",
                        )
                    )

    categories = data.get("categories") or {}
    overrides = categories.get("source_overrides") if isinstance(categories, dict) else None
    if isinstance(overrides, dict):
        for source, entries in overrides.items():
            if not isinstance(entries, dict):
                continue
            for spec_id, category in entries.items():
                if isinstance(category, str) and try_parse(category) is None:
                    _error(
                        report,
                        f"categories.source_overrides.{source}.{spec_id}",
                        f"{category!r} is not a unified category",
                        "unknown-category",
                    )


__all__ = [
    "CONFIG_SCHEMA",
    "ValidationIssue",
    "ValidationReport",
    "validate_config_data",
]
