"""
Configuration loader (``claimtech_config.loader``).

Responsibility
--------------
Reads a workflow YAML file and parses it into the kernel's frozen
``WorkflowPolicy``.  Runtime callers go through
``claimtech_config.get_active_policy()``.

Invariants enforced
-------------------
* Unknown stages, child-record kinds, numbered entities and top-level keys
  are rejected with ``ValueError``; nothing is silently ignored.
* Sections left out of the file take the ``WorkflowPolicy()`` defaults.
* Money and percentage values are parsed as ``Decimal`` (quote them in YAML).

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Structurally invalid content -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from claimtech_kernel.domain.policies import (
    ChildRecordKind,
    DamageDefaults,
    EstimateDefaults,
    NumberedEntity,
    NumberingPolicy,
    RetryPolicy,
    WorkflowPolicy,
)
from claimtech_kernel.domain.stages import AssessmentStage, TERMINAL_STAGES

KNOWN_SECTIONS = frozenset({
    "version",
    "numbering",
    "retry",
    "stage_children",
    "tyre_positions",
    "estimate_defaults",
    "damage_defaults",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Contents of ``path`` as a dict (empty for an empty file)."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed configuration."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _enum_value(enum_cls, value: Any, section: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"{section}: unknown value {value!r} (expected one of: {allowed})") from None


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name}: not a decimal: {value!r}") from None


def _reject_unknown(data: dict[str, Any], allowed: set[str], section: str) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"{section}: unknown keys {sorted(unknown)}")


def parse_numbering(data: dict[str, Any]) -> NumberingPolicy:
    _reject_unknown(data, {"width", "prefixes"}, "numbering")
    default = NumberingPolicy()
    prefixes = dict(default.prefixes)
    for key, prefix in (data.get("prefixes") or {}).items():
        entity = _enum_value(NumberedEntity, key, "numbering.prefixes")
        if not isinstance(prefix, str) or not prefix.isalpha() or not prefix.isupper():
            raise ValueError(f"numbering.prefixes.{key}: prefix must be upper-case letters, got {prefix!r}")
        prefixes[entity] = prefix
    if len(set(prefixes.values())) != len(prefixes):
        raise ValueError("numbering.prefixes: prefixes must be distinct")

    width = int(data.get("width", default.width))
    if width < 1:
        raise ValueError("numbering.width must be at least 1")
    return NumberingPolicy(prefixes=prefixes, width=width)


def parse_retry(data: dict[str, Any]) -> RetryPolicy:
    _reject_unknown(data, {f.name for f in fields(RetryPolicy)}, "retry")
    return RetryPolicy(
        max_attempts=int(data.get("max_attempts", RetryPolicy.max_attempts)),
        base_delay_seconds=float(data.get("base_delay_seconds", RetryPolicy.base_delay_seconds)),
        backoff_factor=float(data.get("backoff_factor", RetryPolicy.backoff_factor)),
    )


def parse_stage_children(data: dict[str, Any]) -> dict[AssessmentStage, tuple[ChildRecordKind, ...]]:
    result: dict[AssessmentStage, tuple[ChildRecordKind, ...]] = {}
    for stage_name, kinds in data.items():
        stage = _enum_value(AssessmentStage, stage_name, "stage_children")
        if stage in TERMINAL_STAGES:
            raise ValueError(f"stage_children: terminal stage {stage.value} cannot create records")
        parsed = tuple(_enum_value(ChildRecordKind, k, f"stage_children.{stage.value}") for k in kinds or ())
        if len(set(parsed)) != len(parsed):
            raise ValueError(f"stage_children.{stage.value}: duplicate record kinds")
        result[stage] = parsed
    return result


def parse_tyre_positions(data: list[Any]) -> tuple[str, ...]:
    positions = tuple(str(p) for p in data)
    if not positions:
        raise ValueError("tyre_positions: at least one position is required")
    if len(set(positions)) != len(positions):
        raise ValueError("tyre_positions: positions must be distinct")
    return positions


def parse_estimate_defaults(data: dict[str, Any]) -> EstimateDefaults:
    _reject_unknown(data, {f.name for f in fields(EstimateDefaults)}, "estimate_defaults")
    values: dict[str, Any] = {}
    for f in fields(EstimateDefaults):
        if f.name not in data:
            continue
        if f.name == "currency":
            currency = str(data[f.name])
            if len(currency) != 3:
                raise ValueError(f"estimate_defaults.currency: expected ISO 4217 code, got {currency!r}")
            values[f.name] = currency
        else:
            amount = _decimal(data[f.name], f"estimate_defaults.{f.name}")
            if amount < 0:
                raise ValueError(f"estimate_defaults.{f.name} cannot be negative")
            values[f.name] = amount
    return EstimateDefaults(**values)


def parse_damage_defaults(data: dict[str, Any]) -> DamageDefaults:
    _reject_unknown(data, {f.name for f in fields(DamageDefaults)}, "damage_defaults")
    return DamageDefaults(**{k: str(v) for k, v in data.items()})


def parse_policy(data: dict[str, Any]) -> WorkflowPolicy:
    """Build a WorkflowPolicy from parsed YAML."""
    _reject_unknown(data, set(KNOWN_SECTIONS), "workflow config")
    default = WorkflowPolicy()
    return WorkflowPolicy(
        numbering=parse_numbering(data["numbering"]) if "numbering" in data else default.numbering,
        retry=parse_retry(data["retry"]) if "retry" in data else default.retry,
        stage_children=(
            parse_stage_children(data["stage_children"])
            if "stage_children" in data
            else default.stage_children
        ),
        tyre_positions=(
            parse_tyre_positions(data["tyre_positions"])
            if "tyre_positions" in data
            else default.tyre_positions
        ),
        estimate=(
            parse_estimate_defaults(data["estimate_defaults"])
            if "estimate_defaults" in data
            else default.estimate
        ),
        damage=(
            parse_damage_defaults(data["damage_defaults"])
            if "damage_defaults" in data
            else default.damage
        ),
    )
