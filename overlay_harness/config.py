"""Configuration loader for the overlay verification harness."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


DEFAULT_ERROR_TYPES: Tuple[str, ...] = (
    "spelling",
    "grammar",
    "punctuation",
    "capitalization",
    "preposition",
    "missing-words",
)

DEFAULTS: Dict[str, Any] = {
    "wait_timeout_ms": 10000,
    "poll_interval_ms": 200,
    "host_tolerance": 5.0,
    "host_tag": "proofly-highlighter",
    "highlight_selector": ".u",
    "issue_id_attribute": "data-issue-id",
    "popover_tag": "proofly-correction-popover",
    "error_types": DEFAULT_ERROR_TYPES,
    "click_delay_ms": 20,
    "control_event_name": "proofly:proofread-control",
    "control_buffer_key": "__prooflyControlEvents",
    "log_storage_key": "__dev_logs",
    "log_output_path": "e2e/logs.txt",
    "model_ready_text": "AI Model Ready",
    "model_ready_retries": 10,
    "model_ready_delay_ms": 2000,
    "trace_path": None,
}


def _as_tuple(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(part) for part in value)


@dataclass(slots=True)
class HarnessConfig:
    wait_timeout_ms: int = DEFAULTS["wait_timeout_ms"]
    poll_interval_ms: int = DEFAULTS["poll_interval_ms"]
    host_tolerance: float = DEFAULTS["host_tolerance"]
    host_tag: str = DEFAULTS["host_tag"]
    highlight_selector: str = DEFAULTS["highlight_selector"]
    issue_id_attribute: str = DEFAULTS["issue_id_attribute"]
    popover_tag: str = DEFAULTS["popover_tag"]
    error_types: Tuple[str, ...] = DEFAULTS["error_types"]
    click_delay_ms: int = DEFAULTS["click_delay_ms"]
    control_event_name: str = DEFAULTS["control_event_name"]
    control_buffer_key: str = DEFAULTS["control_buffer_key"]
    log_storage_key: str = DEFAULTS["log_storage_key"]
    log_output_path: Path = field(default_factory=lambda: Path(DEFAULTS["log_output_path"]))
    model_ready_text: str = DEFAULTS["model_ready_text"]
    model_ready_retries: int = DEFAULTS["model_ready_retries"]
    model_ready_delay_ms: int = DEFAULTS["model_ready_delay_ms"]
    trace_path: Optional[Path] = None

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "HarnessConfig":
        data = dict(DEFAULTS)
        data.update(mapping)
        trace_path = data.get("trace_path")
        return cls(
            wait_timeout_ms=int(data["wait_timeout_ms"]),
            poll_interval_ms=int(data["poll_interval_ms"]),
            host_tolerance=float(data["host_tolerance"]),
            host_tag=str(data["host_tag"]),
            highlight_selector=str(data["highlight_selector"]),
            issue_id_attribute=str(data["issue_id_attribute"]),
            popover_tag=str(data["popover_tag"]),
            error_types=_as_tuple(data["error_types"]),
            click_delay_ms=int(data["click_delay_ms"]),
            control_event_name=str(data["control_event_name"]),
            control_buffer_key=str(data["control_buffer_key"]),
            log_storage_key=str(data["log_storage_key"]),
            log_output_path=Path(data["log_output_path"]),
            model_ready_text=str(data["model_ready_text"]),
            model_ready_retries=int(data["model_ready_retries"]),
            model_ready_delay_ms=int(data["model_ready_delay_ms"]),
            trace_path=Path(trace_path) if trace_path else None,
        )


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Path | None = None) -> HarnessConfig:
    """Load configuration from environment, optional TOML file, and defaults."""

    env_map: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith("HARNESS_"):
            env_map[key[8:].lower()] = value

    file_map: Dict[str, Any] = {}
    path = config_path or Path("config.toml")
    if path.exists():
        file_map = _load_toml(path).get("harness", {})

    merged = {**file_map, **env_map}
    known = {key: value for key, value in merged.items() if key in DEFAULTS}
    return HarnessConfig.from_mapping(known)


def resolve_config(config: Optional[HarnessConfig]) -> HarnessConfig:
    return config if config is not None else HarnessConfig()
