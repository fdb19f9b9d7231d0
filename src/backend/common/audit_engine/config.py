from __future__ import annotations

import os
from typing import Any, List, Optional, Union

from dotenv import load_dotenv
from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import ALL_RESULT_TYPES, ResultType, WireModel

DEFAULT_MAX_ELEMENTS_PER_RULE = 5000
DEFAULT_GLOBAL_TIMEOUT_MS = 30000
DEFAULT_PER_RULE_TIMEOUT_MS = 5000


class EngineOptions(WireModel):
    """Options recognised by the engine.

    Unknown keys are kept and handed to every rule predicate untouched, so rule
    packs can carry their own settings in the same bag.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    # None runs every registered rule.
    run_only: Optional[List[str]] = None
    # None keeps all four buckets in the report.
    result_types: Optional[List[ResultType]] = None
    max_elements_per_rule: int = Field(default=DEFAULT_MAX_ELEMENTS_PER_RULE, gt=0)
    global_timeout_ms: int = Field(default=DEFAULT_GLOBAL_TIMEOUT_MS, gt=0)
    per_rule_timeout_ms: int = Field(default=DEFAULT_PER_RULE_TIMEOUT_MS, gt=0)
    silent: bool = False

    @field_validator("run_only", mode="before")
    @classmethod
    def _single_ruleset_to_list(cls, value: Union[str, List[str], None]) -> Optional[List[str]]:
        if isinstance(value, str):
            return [value]
        return value

    @property
    def global_timeout_s(self) -> float:
        return self.global_timeout_ms / 1000.0

    @property
    def per_rule_timeout_s(self) -> float:
        return self.per_rule_timeout_ms / 1000.0

    def wanted_result_types(self) -> tuple[ResultType, ...]:
        if self.result_types is None:
            return ALL_RESULT_TYPES
        return tuple(self.result_types)

    def merged(self, overrides: Optional[Union["EngineOptions", dict[str, Any]]]) -> "EngineOptions":
        """Return a copy with `overrides` applied on top of these options."""
        if overrides is None:
            return self
        if isinstance(overrides, EngineOptions):
            patch = overrides.model_dump(exclude_unset=True)
        else:
            patch = EngineOptions.model_validate(overrides).model_dump(exclude_unset=True)
        return EngineOptions.model_validate({**self.model_dump(), **patch})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def coerce_options(options: Optional[Union[EngineOptions, dict[str, Any]]]) -> EngineOptions:
    if options is None:
        return EngineOptions()
    if isinstance(options, EngineOptions):
        return options
    return EngineOptions.model_validate(options)


def options_from_env(**overrides: Any) -> EngineOptions:
    """
    Build engine options from environment variables (and a `.env` file if present).

    Reads:
      AUDIT_RUN_ONLY, AUDIT_RESULT_TYPES (comma separated),
      AUDIT_MAX_ELEMENTS_PER_RULE, AUDIT_GLOBAL_TIMEOUT_MS,
      AUDIT_PER_RULE_TIMEOUT_MS, AUDIT_SILENT
    Keyword overrides win over the environment.
    """
    load_dotenv()

    raw: dict[str, Any] = {}
    run_only = _csv_env("AUDIT_RUN_ONLY")
    if run_only:
        raw["run_only"] = run_only
    result_types = _csv_env("AUDIT_RESULT_TYPES")
    if result_types:
        raw["result_types"] = result_types
    for name, key in (
        ("AUDIT_MAX_ELEMENTS_PER_RULE", "max_elements_per_rule"),
        ("AUDIT_GLOBAL_TIMEOUT_MS", "global_timeout_ms"),
        ("AUDIT_PER_RULE_TIMEOUT_MS", "per_rule_timeout_ms"),
    ):
        value = _int_env(name)
        if value is not None:
            raw[key] = value
    silent = os.getenv("AUDIT_SILENT", "").strip().lower()
    if silent:
        raw["silent"] = silent in ("1", "true", "yes", "on")

    raw.update(overrides)
    return EngineOptions.model_validate(raw)


def rule_modules_from_env() -> list[str]:
    """Rule packs named in AUDIT_RULE_MODULES (comma separated) for hosts to import."""
    load_dotenv()
    return _csv_env("AUDIT_RULE_MODULES")


def _csv_env(name: str) -> list[str]:
    value = os.getenv(name, "")
    return [part.strip() for part in value.split(",") if part.strip()]


def _int_env(name: str) -> Optional[int]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from exc
