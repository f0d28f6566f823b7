"""Apply every suggestion on a test page through the correction popover.

Attach to a browser that already has the extension loaded::

    python examples/popover_fix_flow.py --extension-id <id> --url http://localhost:8080/test.html
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from playwright.async_api import async_playwright

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from overlay_harness import (  # noqa: E402
    CorrectionPopover,
    ExtensionControl,
    dispatch_input_event,
    extract_highlights,
    load_config,
    open_trace,
    simulate_activation,
    wait_for_highlight_count,
    wait_for_overlay_presence,
)

log = logging.getLogger("popover_fix_flow")


async def fix_all(cdp_url: str, extension_id: str, url: str, field_id: str) -> int:
    config = load_config()
    trace = open_trace(config.trace_path, run_id="popover-fix")
    try:
        async with async_playwright() as pw:
            browser = await pw.chromium.connect_over_cdp(cdp_url)
            context = browser.contexts[0] if browser.contexts else await browser.new_context()
            page = context.pages[0] if context.pages else await context.new_page()

            control = ExtensionControl(context, extension_id, config)
            await control.update_settings(page, autofixOnDoubleClick=False)
            await control.ensure_model_ready(page)

            await page.goto(url, wait_until="networkidle")
            await page.focus(f"#{field_id}")
            await dispatch_input_event(page, field_id)

            remaining = await wait_for_highlight_count(
                page, field_id, lambda c: c > 0, config=config, trace=trace
            )
            popover = CorrectionPopover(page, config)
            await popover.wait_connected()
            fixed = 0
            while remaining > 0:
                highlights = await extract_highlights(page, field_id, config=config)
                if not highlights:
                    break
                target = highlights[0]
                log.info("Fixing %r (%s)", target.original_text, target.issue_id)
                await simulate_activation(page, target, config=config, trace=trace)
                await popover.wait_open()
                await asyncio.sleep(0.3)
                await popover.apply()
                await popover.wait_closed()
                previous = remaining
                remaining = await wait_for_highlight_count(
                    page, field_id, lambda c: c < previous, config=config, trace=trace
                )
                fixed += 1

            await wait_for_overlay_presence(
                page, field_id, present=False, config=config, trace=trace
            )
            badge = await control.get_badge_text(url)
            log.info("Applied %d fixes; badge now %r", fixed, badge)
            return fixed
    finally:
        if trace is not None:
            trace.close()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--extension-id", required=True)
    parser.add_argument("--url", default="http://localhost:8080/test.html")
    parser.add_argument("--field-id", default="test-input")
    parser.add_argument("--cdp-url", default="http://127.0.0.1:9222")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    asyncio.run(fix_all(args.cdp_url, args.extension_id, args.url, args.field_id))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
