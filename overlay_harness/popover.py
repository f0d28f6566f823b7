"""Observe and operate the extension's correction popover from outside."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Page

from .boundary import CrossBoundaryQuery, RootProvider
from .config import HarnessConfig, resolve_config
from .polling import poll_until

POPOVER_STATE_SCRIPT = """
(tag) => {
  const popover = document.querySelector(tag);
  if (!popover) {
    return { connected: false, open: false };
  }
  let open = false;
  try {
    open = popover.matches(':popover-open');
  } catch (_error) {
    open = false;
  }
  return { connected: popover.isConnected, open };
}
"""


class CorrectionPopover:
    """Thin driver for the popover host and the controls in its shadow root."""

    def __init__(self, page: Page, config: Optional[HarnessConfig] = None) -> None:
        self.page = page
        self.config = resolve_config(config)
        self._root = RootProvider.first_shadow_root_of(self.config.popover_tag)

    def _query(self, selector: str) -> CrossBoundaryQuery:
        return CrossBoundaryQuery(self._root, selector)

    async def _state(self) -> dict:
        return await self.page.evaluate(POPOVER_STATE_SCRIPT, self.config.popover_tag) or {}

    async def is_open(self) -> bool:
        return bool((await self._state()).get("open"))

    async def is_connected(self) -> bool:
        return bool((await self._state()).get("connected"))

    async def _wait(self, predicate, description: str, timeout_ms: Optional[int]) -> None:
        await poll_until(
            self._state,
            predicate,
            timeout_ms=self.config.wait_timeout_ms if timeout_ms is None else timeout_ms,
            interval_ms=self.config.poll_interval_ms,
            subject=self.config.popover_tag,
            description=description,
        )

    async def wait_open(self, timeout_ms: Optional[int] = None) -> None:
        await self._wait(lambda state: bool(state.get("open")), "Popover did not open", timeout_ms)

    async def wait_closed(self, timeout_ms: Optional[int] = 5000) -> None:
        # A popover that was removed from the document counts as closed.
        await self._wait(lambda state: not state.get("open"), "Popover did not close", timeout_ms)

    async def wait_connected(self, timeout_ms: Optional[int] = None) -> None:
        await self._wait(
            lambda state: bool(state.get("connected")), "Popover was not mounted", timeout_ms
        )

    async def wait_removed(self, timeout_ms: Optional[int] = None) -> None:
        await self._wait(
            lambda state: not state.get("connected"), "Popover was not removed", timeout_ms
        )

    async def suggestion(self) -> Optional[str]:
        return await self._query("#suggestion").text(self.page)

    async def apply(self) -> bool:
        return await self._query(".apply-button").click(self.page)

    async def close(self) -> bool:
        return await self._query(".close-button").click(self.page)
