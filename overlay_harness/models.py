"""Data structures describing observed overlay state and extension records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True, slots=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_mapping(cls, data: Any) -> "Rect":
        data = data or {}
        return cls(
            left=float(data.get("left", 0.0)),
            top=float(data.get("top", 0.0)),
            width=float(data.get("width", 0.0)),
            height=float(data.get("height", 0.0)),
        )

    @property
    def center(self) -> Tuple[float, float]:
        return self.left + self.width / 2, self.top + self.height / 2


@dataclass(frozen=True, slots=True)
class HostRef:
    """Snapshot of the overlay host positioned over a field."""

    field_id: str
    index: int
    rect: Rect
    field_rect: Rect
    has_root: bool
    candidate_count: int


@dataclass(frozen=True, slots=True)
class HighlightEntity:
    """One flagged span as currently rendered by the overlay.

    ``start``/``end`` are ``None`` when the node's issue identifier could not be
    parsed; such entities still carry coordinates so they can be activated.
    """

    issue_id: str
    start: Optional[int]
    end: Optional[int]
    original_text: str
    center_x: float
    center_y: float

    @property
    def is_valid(self) -> bool:
        return self.start is not None and self.end is not None


ControlStatus = Literal[
    "queued",
    "throttled",
    "language-detected",
    "start",
    "complete",
    "ignored",
    "error",
    "abort",
]


class ControlEvent(BaseModel):
    """Lifecycle notification emitted by the extension for a proofreading pass."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: str
    reason: Optional[str] = None
    text_length: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("textLength", "text_length")
    )
    element_kind: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("elementKind", "element_kind")
    )
    element_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("elementId", "element_id")
    )
    execution_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("executionId", "execution_id")
    )
    correction_count: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("correctionCount", "correction_count")
    )
    detected_issue_count: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("detectedIssueCount", "detected_issue_count"),
    )
    error: Optional[str] = None
    language: Optional[str] = None
    forced: Optional[bool] = None
    timestamp: Optional[float] = None

    def matches(
        self,
        *,
        status: Optional[str] = None,
        reason: Optional[str] = None,
        element_kind: Optional[str] = None,
        text_length: Optional[int] = None,
    ) -> bool:
        if status is not None and self.status != status:
            return False
        if reason is not None and self.reason != reason:
            return False
        if element_kind is not None and self.element_kind != element_kind:
            return False
        if text_length is not None and self.text_length != text_length:
            return False
        return True


class ExtensionLogEntry(BaseModel):
    """Single record of the extension's persisted diagnostic log."""

    model_config = ConfigDict(extra="ignore")

    ctx: str
    level: str
    msg: Any = Field(default_factory=list)
    sid: str
    t: datetime

    @field_validator("t")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def epoch_ms(self) -> float:
        return self.t.timestamp() * 1000

    @property
    def message(self) -> str:
        if isinstance(self.msg, list):
            return " ".join("" if part is None else str(part) for part in self.msg)
        return str(self.msg)


class LogQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    since: Optional[float] = None
    session_id: Optional[str] = None
    max_entries: int = Field(default=1000, ge=0)
    context_type: str = "all"
    log_level: str = "all"
