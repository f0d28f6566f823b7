"""Waits for highlight and overlay state built on :func:`poll_until`."""

from __future__ import annotations

from typing import Callable, List, Optional

from playwright.async_api import Page

from .config import HarnessConfig, resolve_config
from .contenteditable import count_highlights
from .highlights import extract_highlights, issue_ids
from .host_resolver import has_host
from .models import HighlightEntity
from .polling import poll_until
from .trace import HarnessTrace

CountPredicate = Callable[[int], bool]


def _timing(
    cfg: HarnessConfig, timeout_ms: Optional[int], interval_ms: Optional[int]
) -> tuple[int, int]:
    return (
        cfg.wait_timeout_ms if timeout_ms is None else timeout_ms,
        cfg.poll_interval_ms if interval_ms is None else interval_ms,
    )


async def wait_for_highlights(
    page: Page,
    field_id: str,
    predicate: Callable[[List[HighlightEntity]], bool],
    *,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    config: Optional[HarnessConfig] = None,
    trace: Optional[HarnessTrace] = None,
) -> List[HighlightEntity]:
    cfg = resolve_config(config)
    timeout, interval = _timing(cfg, timeout_ms, interval_ms)
    return await poll_until(
        lambda: extract_highlights(page, field_id, config=cfg),
        predicate,
        timeout_ms=timeout,
        interval_ms=interval,
        subject=field_id,
        description="Highlights did not satisfy predicate",
        trace=trace,
    )


async def wait_for_highlight_count(
    page: Page,
    field_id: str,
    predicate: CountPredicate,
    *,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    config: Optional[HarnessConfig] = None,
    trace: Optional[HarnessTrace] = None,
) -> int:
    """Wait until the overlay highlight count over ``field_id`` satisfies ``predicate``."""

    cfg = resolve_config(config)
    timeout, interval = _timing(cfg, timeout_ms, interval_ms)

    async def sample() -> int:
        return len(await extract_highlights(page, field_id, config=cfg))

    return await poll_until(
        sample,
        predicate,
        timeout_ms=timeout,
        interval_ms=interval,
        subject=field_id,
        description="Highlight count did not satisfy predicate",
        trace=trace,
    )


async def wait_for_contenteditable_highlight_count(
    page: Page,
    field_id: str,
    predicate: CountPredicate,
    *,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    config: Optional[HarnessConfig] = None,
    trace: Optional[HarnessTrace] = None,
) -> int:
    """Like :func:`wait_for_highlight_count` for ``CSS.highlights`` ranges.

    A missing field or unsupported page aborts the wait immediately.
    """

    cfg = resolve_config(config)
    timeout, interval = _timing(cfg, timeout_ms, interval_ms)
    return await poll_until(
        lambda: count_highlights(page, field_id, config=cfg),
        predicate,
        timeout_ms=timeout,
        interval_ms=interval,
        subject=field_id,
        description="Contenteditable highlight count did not satisfy predicate",
        trace=trace,
    )


async def wait_for_overlay_presence(
    page: Page,
    field_id: str,
    *,
    present: bool = True,
    timeout_ms: Optional[int] = None,
    tolerance: Optional[float] = None,
    interval_ms: Optional[int] = None,
    config: Optional[HarnessConfig] = None,
    trace: Optional[HarnessTrace] = None,
) -> None:
    cfg = resolve_config(config)
    timeout, interval = _timing(cfg, timeout_ms, interval_ms)
    expected = "present" if present else "absent"
    await poll_until(
        lambda: has_host(page, field_id, tolerance=tolerance, config=cfg),
        lambda found: found is present,
        timeout_ms=timeout,
        interval_ms=interval,
        subject=field_id,
        description=f"Highlighter presence did not reach expected state: {expected}",
        trace=trace,
    )


async def wait_for_issue_cleared(
    page: Page,
    field_id: str,
    issue_id: str,
    *,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    config: Optional[HarnessConfig] = None,
    trace: Optional[HarnessTrace] = None,
) -> List[HighlightEntity]:
    """Wait until no highlight over ``field_id`` carries ``issue_id``."""

    return await wait_for_highlights(
        page,
        field_id,
        lambda highlights: issue_id not in issue_ids(highlights),
        timeout_ms=timeout_ms,
        interval_ms=interval_ms,
        config=config,
        trace=trace,
    )
