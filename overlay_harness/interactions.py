"""Synthesized input aimed at the overlay and the fields it decorates."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from playwright.async_api import Page

from .boundary import CrossBoundaryQuery, RootProvider, attribute_selector
from .config import HarnessConfig, resolve_config
from .models import HighlightEntity
from .trace import HarnessTrace

log = logging.getLogger(__name__)

SET_FIELD_VALUE_SCRIPT = """
({ fieldId, value }) => {
  const el = document.getElementById(fieldId);
  if (!el) {
    return false;
  }
  if (el instanceof HTMLInputElement || el instanceof HTMLTextAreaElement) {
    el.value = value;
  } else {
    el.textContent = value;
  }
  el.dispatchEvent(new Event('input', { bubbles: true }));
  return true;
}
"""

DISPATCH_INPUT_SCRIPT = """
(fieldId) => {
  const el = document.getElementById(fieldId);
  if (!el) {
    return false;
  }
  el.dispatchEvent(new Event('input', { bubbles: true }));
  return true;
}
"""

READ_FIELD_TEXT_SCRIPT = """
(fieldId) => {
  const el = document.getElementById(fieldId);
  if (!el) {
    return null;
  }
  if (el instanceof HTMLInputElement || el instanceof HTMLTextAreaElement) {
    return el.value;
  }
  return el.textContent ?? '';
}
"""


def highlight_query(highlight: HighlightEntity, config: HarnessConfig) -> CrossBoundaryQuery:
    """Query locating ``highlight``'s node by issue id in any overlay host."""

    selector = attribute_selector(
        config.highlight_selector, config.issue_id_attribute, highlight.issue_id
    )
    return CrossBoundaryQuery(RootProvider.shadow_roots_of(config.host_tag), selector)


async def simulate_activation(
    page: Page,
    highlight: HighlightEntity,
    *,
    double_click: bool = False,
    config: Optional[HarnessConfig] = None,
    trace: Optional[HarnessTrace] = None,
) -> None:
    """Click (or double-click) a highlight through both delivery paths.

    The native mouse click exercises real hit-testing across the shadow
    boundary. The node is then looked up again by issue id and receives a
    directly dispatched event; that second step is a no-op when the node is
    already gone.
    """

    cfg = resolve_config(config)
    x, y = highlight.center_x, highlight.center_y
    click_count = 2 if double_click else 1

    await page.mouse.move(x, y)
    await page.mouse.click(x, y, delay=cfg.click_delay_ms, click_count=click_count)

    event_type = "dblclick" if double_click else "click"
    dispatched = await highlight_query(highlight, cfg).dispatch_mouse_event(page, event_type, x, y)
    if not dispatched:
        log.debug(
            "Highlight %s no longer present; skipped targeted %s", highlight.issue_id, event_type
        )
    if trace is not None:
        trace.log_event(
            operation="activate",
            subject=highlight.issue_id,
            outcome="dispatched" if dispatched else "native-only",
            metadata={"event": event_type, "x": x, "y": y},
        )


async def set_field_value(page: Page, field_id: str, value: str) -> bool:
    """Assign ``value`` directly and fire a bubbling ``input`` event."""

    applied = bool(await page.evaluate(SET_FIELD_VALUE_SCRIPT, {"fieldId": field_id, "value": value}))
    if not applied:
        log.warning("Field %s not found; value was not assigned", field_id)
    return applied


async def dispatch_input_event(page: Page, field_id: str) -> bool:
    return bool(await page.evaluate(DISPATCH_INPUT_SCRIPT, field_id))


async def read_field_text(page: Page, field_id: str) -> Optional[str]:
    return await page.evaluate(READ_FIELD_TEXT_SCRIPT, field_id)


def shortcut_modifier(platform: Optional[str] = None) -> str:
    platform = platform if platform is not None else sys.platform
    return "Meta" if platform == "darwin" else "Control"


async def trigger_proofread_shortcut(page: Page, *, platform: Optional[str] = None) -> None:
    modifier = shortcut_modifier(platform)
    await page.keyboard.down(modifier)
    await page.keyboard.down("Shift")
    await page.keyboard.press("KeyP")
    await page.keyboard.up("Shift")
    await page.keyboard.up(modifier)
