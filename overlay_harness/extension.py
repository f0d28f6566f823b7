"""Privileged access to the extension through its own options page.

Extension pages can call ``chrome.*`` APIs that ordinary pages cannot, so the
badge, storage, and model status are read from a page opened on the
extension's origin.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import BrowserContext, Error as PlaywrightError, Page

from .config import HarnessConfig, resolve_config
from .errors import ModelNotReadyError

log = logging.getLogger(__name__)

OPTIONS_PATH = "src/options/index.html"

BADGE_TEXT_SCRIPT = """
async (url) => {
  if (typeof chrome === 'undefined' || !chrome.action?.getBadgeText) {
    return null;
  }
  const tabs = await chrome.tabs.query({ url });
  const tabId = tabs[0]?.id;
  if (typeof tabId !== 'number') {
    return null;
  }
  return chrome.action.getBadgeText({ tabId });
}
"""

BADGE_SNAPSHOT_SCRIPT = """
async (url) => {
  const tabs = await chrome.tabs.query({ url });
  return Promise.all(
    tabs.map(async (tab) => ({
      id: tab.id ?? null,
      text: typeof tab.id === 'number' ? await chrome.action.getBadgeText({ tabId: tab.id }) : null,
    }))
  );
}
"""

RESET_STORAGE_SCRIPT = """
async () => {
  await Promise.all([chrome.storage.local.clear(), chrome.storage.sync.clear()]);
}
"""

UPDATE_SETTINGS_SCRIPT = """
async (values) => {
  await chrome.storage.sync.set(values);
}
"""

BODY_TEXT_SCRIPT = "() => document.body ? (document.body.textContent || '') : ''"


class ExtensionControl:
    def __init__(
        self,
        context: BrowserContext,
        extension_id: str,
        config: Optional[HarnessConfig] = None,
    ) -> None:
        self.context = context
        self.extension_id = extension_id
        self.config = resolve_config(config)

    @property
    def root_url(self) -> str:
        return f"chrome-extension://{self.extension_id}/"

    @property
    def options_url(self) -> str:
        return f"{self.root_url}{OPTIONS_PATH}"

    async def open_control_page(self, *, timeout_ms: int = 10_000) -> Page:
        """Open a new page on the options page, or the extension root if that fails.

        The page is closed again when neither URL can be loaded.
        """

        page = await self.context.new_page()
        try:
            try:
                await page.goto(self.options_url, wait_until="networkidle", timeout=timeout_ms)
            except PlaywrightError as exc:
                log.warning("Options page unavailable (%s); falling back to extension root", exc)
                await page.goto(self.root_url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightError:
            await page.close()
            raise
        return page

    async def goto_options(self, page: Page) -> None:
        await page.goto(self.options_url, wait_until="networkidle")

    async def get_badge_text(self, target_url: str) -> Optional[str]:
        """Badge text of the first tab matching ``target_url``; ``None`` when unavailable."""

        page = await self.open_control_page()
        try:
            badge = await page.evaluate(BADGE_TEXT_SCRIPT, target_url)
        finally:
            await page.close()
        return badge

    async def badge_snapshot(self, page: Page, target_url: str) -> List[Dict[str, Any]]:
        return list(await page.evaluate(BADGE_SNAPSHOT_SCRIPT, target_url) or [])

    async def reset_storage(self, page: Page) -> None:
        await self.goto_options(page)
        await page.evaluate(RESET_STORAGE_SCRIPT)

    async def update_settings(self, page: Page, **values: Any) -> None:
        """Write sync settings such as ``autofixOnDoubleClick`` or ``autoCorrect``."""

        await self.goto_options(page)
        await page.evaluate(UPDATE_SETTINGS_SCRIPT, values)

    async def ensure_model_ready(self, page: Page) -> None:
        """Reload the options page until it reports the model as ready."""

        cfg = self.config
        await self.goto_options(page)
        for attempt in range(1, cfg.model_ready_retries + 1):
            body_text = await page.evaluate(BODY_TEXT_SCRIPT)
            if cfg.model_ready_text in (body_text or ""):
                log.info("Model is ready")
                return
            log.info(
                "Model not ready yet (attempt %d/%d), refreshing...",
                attempt,
                cfg.model_ready_retries,
            )
            await page.reload(wait_until="networkidle")
            await asyncio.sleep(cfg.model_ready_delay_ms / 1000)
        raise ModelNotReadyError(cfg.model_ready_retries)
