"""Capture the extension's proofreading lifecycle events.

The extension dispatches a ``CustomEvent`` on ``window`` for every pass it
queues, runs, or skips. A page-side listener buffers the event details so the
harness can inspect them later.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from playwright.async_api import Page
from pydantic import ValidationError

from .config import HarnessConfig, resolve_config
from .interactions import read_field_text
from .models import ControlEvent, ControlStatus
from .polling import poll_until

log = logging.getLogger(__name__)

START_CAPTURE_SCRIPT = """
({ eventName, bufferKey }) => {
  const listenerKey = bufferKey + 'Listener';
  if (window[listenerKey]) {
    window.removeEventListener(eventName, window[listenerKey]);
  }
  window[bufferKey] = [];
  const listener = (event) => {
    window[bufferKey]?.push(event.detail);
  };
  window.addEventListener(eventName, listener);
  window[listenerKey] = listener;
}
"""

READ_EVENTS_SCRIPT = """
(bufferKey) => {
  const events = window[bufferKey];
  return Array.isArray(events) ? events : [];
}
"""


async def start_control_capture(page: Page, *, config: Optional[HarnessConfig] = None) -> None:
    """Install a fresh listener, replacing one from an earlier capture."""

    cfg = resolve_config(config)
    await page.evaluate(
        START_CAPTURE_SCRIPT,
        {"eventName": cfg.control_event_name, "bufferKey": cfg.control_buffer_key},
    )


async def read_control_events(
    page: Page, *, config: Optional[HarnessConfig] = None
) -> List[ControlEvent]:
    cfg = resolve_config(config)
    raw_events = await page.evaluate(READ_EVENTS_SCRIPT, cfg.control_buffer_key) or []
    events: List[ControlEvent] = []
    for raw in raw_events:
        if not isinstance(raw, dict):
            continue
        try:
            events.append(ControlEvent.model_validate(raw))
        except ValidationError as exc:
            log.debug("Skipping malformed control event %r: %s", raw, exc)
    return events


async def wait_for_control_event(
    page: Page,
    *,
    status: ControlStatus,
    reason: Optional[str] = None,
    element_kind: Optional[str] = None,
    text_length: Optional[int] = None,
    field_id: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    config: Optional[HarnessConfig] = None,
) -> ControlEvent:
    """Wait for a buffered control event matching every given field.

    With ``field_id`` and no explicit ``text_length``, the field's current
    text length is read on each poll and must match the event's.
    """

    cfg = resolve_config(config)

    async def sample() -> Optional[ControlEvent]:
        expected_length = text_length
        if expected_length is None and field_id is not None:
            text = await read_field_text(page, field_id)
            expected_length = len(text or "")
        for event in await read_control_events(page, config=cfg):
            if event.matches(
                status=status,
                reason=reason,
                element_kind=element_kind,
                text_length=expected_length,
            ):
                return event
        return None

    description = f"No control event with status '{status}'"
    if reason:
        description += f" and reason '{reason}'"
    return await poll_until(
        sample,
        lambda event: event is not None,
        timeout_ms=cfg.wait_timeout_ms if timeout_ms is None else timeout_ms,
        interval_ms=cfg.poll_interval_ms,
        subject=field_id or "page",
        description=description,
    )
