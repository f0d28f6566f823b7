"""Reconstruct the overlay's flagged spans from live DOM state."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional, Sequence, Tuple

from playwright.async_api import Page

from .boundary import CrossBoundaryQuery, RootProvider
from .config import HarnessConfig, resolve_config
from .host_resolver import OverlaySnapshot, read_overlay_snapshot
from .models import HighlightEntity, Rect

log = logging.getLogger(__name__)

OverlayStatus = Literal["no-field", "no-host", "empty", "ok"]

_ISSUE_ID_PATTERN = re.compile(r"^\s*([+-]?\d+)")


@dataclass(slots=True)
class OverlayState:
    """Highlights of one field plus why the list may be empty."""

    status: OverlayStatus
    text: str = ""
    highlights: List[HighlightEntity] = field(default_factory=list)

    @property
    def host_found(self) -> bool:
        return self.status in ("empty", "ok")


def _leading_int(value: str) -> Optional[int]:
    match = _ISSUE_ID_PATTERN.match(value)
    return int(match.group(1)) if match else None


def parse_issue_id(issue_id: str) -> Tuple[Optional[int], Optional[int]]:
    """Split ``"<start>:<end>"`` into integer offsets.

    Parsing is lenient like ``parseInt``: trailing junk after the digits is
    ignored. An identifier without two leading integers yields ``(None, None)``.
    """

    parts = (issue_id or "").split(":")
    if len(parts) < 2:
        return None, None
    start = _leading_int(parts[0])
    end = _leading_int(parts[1])
    if start is None or end is None:
        return None, None
    return start, end


def _clamp_offsets(start: int, end: int, length: int) -> Tuple[int, int]:
    start = min(max(start, 0), length)
    end = min(max(end, start), length)
    return start, end


def build_highlight(issue_id: str, rect: Rect, text: str) -> HighlightEntity:
    start, end = parse_issue_id(issue_id)
    center_x, center_y = rect.center
    if start is None or end is None:
        log.debug("Highlight node carries unparsable issue id %r", issue_id)
        return HighlightEntity(
            issue_id=issue_id,
            start=None,
            end=None,
            original_text="",
            center_x=center_x,
            center_y=center_y,
        )
    start, end = _clamp_offsets(start, end, len(text))
    return HighlightEntity(
        issue_id=issue_id,
        start=start,
        end=end,
        original_text=text[start:end],
        center_x=center_x,
        center_y=center_y,
    )


def state_from_snapshot(snapshot: OverlaySnapshot, tolerance: float) -> OverlayState:
    if not snapshot.field_found:
        return OverlayState(status="no-field")
    index = snapshot.match(tolerance)
    if index is None:
        return OverlayState(status="no-host")
    host = snapshot.hosts[index]
    if not host.has_root:
        return OverlayState(status="no-host")
    text = snapshot.text or ""
    if not host.nodes:
        return OverlayState(status="empty", text=text)
    highlights = [
        build_highlight(str(node.get("issueId") or ""), Rect.from_mapping(node.get("rect")), text)
        for node in host.nodes
    ]
    return OverlayState(status="ok", text=text, highlights=highlights)


async def extract_overlay_state(
    page: Page,
    field_id: str,
    *,
    tolerance: Optional[float] = None,
    config: Optional[HarnessConfig] = None,
) -> OverlayState:
    cfg = resolve_config(config)
    tol = cfg.host_tolerance if tolerance is None else tolerance
    snapshot = await read_overlay_snapshot(page, field_id, include_nodes=True, config=cfg)
    return state_from_snapshot(snapshot, tol)


async def extract_highlights(
    page: Page,
    field_id: str,
    *,
    tolerance: Optional[float] = None,
    config: Optional[HarnessConfig] = None,
) -> List[HighlightEntity]:
    """Return the highlights currently rendered over ``field_id``.

    Ordering follows the highlight nodes inside the matched host. A missing
    field or host yields an empty list rather than an error.
    """

    state = await extract_overlay_state(page, field_id, tolerance=tolerance, config=config)
    return state.highlights


async def immediate_highlight_count(
    page: Page,
    field_id: str,
    *,
    tolerance: Optional[float] = None,
    config: Optional[HarnessConfig] = None,
) -> int:
    """Count highlight nodes over ``field_id`` without waiting; 0 without a host."""

    cfg = resolve_config(config)
    tol = cfg.host_tolerance if tolerance is None else tolerance
    snapshot = await read_overlay_snapshot(page, field_id, include_nodes=False, config=cfg)
    index = snapshot.match(tol)
    if index is None:
        return 0
    return snapshot.hosts[index].node_count


def select_highlight_by_word(
    highlights: Sequence[HighlightEntity],
    target: Optional[str] = None,
) -> Optional[HighlightEntity]:
    """Pick the highlight whose text equals, then contains, ``target``.

    Falls back to the first highlight; ``None`` only when there are none.
    """

    if not highlights:
        return None
    if target:
        normalized = target.strip().lower()
        for detail in highlights:
            if detail.original_text.strip().lower() == normalized:
                return detail
        for detail in highlights:
            if normalized in detail.original_text.strip().lower():
                return detail
    return highlights[0]


def issue_ids(highlights: Iterable[HighlightEntity]) -> List[str]:
    return [detail.issue_id for detail in highlights]


async def has_mirror_overlay(page: Page, *, config: Optional[HarnessConfig] = None) -> bool:
    cfg = resolve_config(config)
    query = CrossBoundaryQuery(RootProvider.first_shadow_root_of(cfg.host_tag), "#mirror")
    return await query.exists(page)
