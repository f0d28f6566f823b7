"""Retrieve the extension's persisted diagnostic log and write a grouped report.

The report can be produced from a running browser without starting a test::

    python -m overlay_harness.log_report --extension-id <id> --cdp-url http://127.0.0.1:9222
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from playwright.async_api import BrowserContext, Error as PlaywrightError, Page, async_playwright
from pydantic import ValidationError

from .config import HarnessConfig, load_config, resolve_config
from .extension import ExtensionControl
from .models import ExtensionLogEntry, LogQuery

log = logging.getLogger(__name__)

SESSION_RULE = "─" * 50

READ_LOGS_SCRIPT = """
async (storageKey) => {
  const result = await chrome.storage.local.get(storageKey);
  return result[storageKey] ?? [];
}
"""


def parse_log_entries(raw_entries: Iterable[Any]) -> List[ExtensionLogEntry]:
    entries: List[ExtensionLogEntry] = []
    for raw in raw_entries:
        try:
            entries.append(ExtensionLogEntry.model_validate(raw))
        except ValidationError as exc:
            log.debug("Skipping malformed log entry %r: %s", raw, exc)
    return entries


def _context_matches(entry: ExtensionLogEntry, context_type: str) -> bool:
    if context_type == "all" or entry.ctx == context_type:
        return True
    return context_type == "background" and entry.ctx == "service_worker"


def filter_logs(entries: Iterable[ExtensionLogEntry], query: LogQuery) -> List[ExtensionLogEntry]:
    """Apply ``query`` filters, sort by time, and keep the first ``max_entries``."""

    selected = []
    for entry in entries:
        if query.since and entry.epoch_ms < query.since:
            continue
        if query.session_id and entry.sid != query.session_id:
            continue
        if not _context_matches(entry, query.context_type):
            continue
        if query.log_level != "all" and entry.level != query.log_level:
            continue
        selected.append(entry)
    selected.sort(key=lambda entry: entry.epoch_ms)
    return selected[: query.max_entries]


def format_timestamp(entry: ExtensionLogEntry) -> str:
    moment = entry.t.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def format_log_entry(entry: ExtensionLogEntry) -> str:
    return f"[{format_timestamp(entry)}] [{entry.level.upper()}] [{entry.ctx}] {entry.message}"


def format_badge_snapshot(target_url: str, snapshot: Sequence[Dict[str, Any]]) -> str:
    lines = []
    for item in snapshot:
        tab_id = item.get("id")
        text = item.get("text")
        lines.append(
            f"Tab {tab_id if tab_id is not None else 'unknown'} badge: "
            f"{text if text is not None else '<null>'}"
        )
    return f"Badge snapshot for {target_url}:\n" + "\n".join(lines) + "\n\n"


def render_log_report(entries: Sequence[ExtensionLogEntry], *, badge_header: str = "") -> str:
    if not entries:
        return f"{badge_header}No logs captured.\n"

    sessions: Dict[str, List[ExtensionLogEntry]] = {}
    for entry in entries:
        sessions.setdefault(entry.sid, []).append(entry)

    output = ""
    for session_id, session_entries in sessions.items():
        output += f"Session: {session_id}\n"
        output += f"{SESSION_RULE}\n"
        output += "\n".join(format_log_entry(entry) for entry in session_entries)
        output += "\n\n"
    return f"{badge_header}{output}".rstrip() + "\n"


async def write_extension_logs(
    context: BrowserContext,
    extension_id: str,
    *,
    output_path: Optional[Path] = None,
    query: Optional[LogQuery] = None,
    target_url: Optional[str] = None,
    config: Optional[HarnessConfig] = None,
) -> Path:
    """Fetch, filter and write the extension log; returns the report path."""

    cfg = resolve_config(config)
    path = output_path or cfg.log_output_path
    query = query or LogQuery()
    path.parent.mkdir(parents=True, exist_ok=True)

    control = ExtensionControl(context, extension_id, cfg)
    original_page = context.pages[0] if context.pages else None
    page: Optional[Page] = None
    try:
        try:
            page = await control.open_control_page()
            await asyncio.sleep(0.2)
            raw_entries = await page.evaluate(READ_LOGS_SCRIPT, cfg.log_storage_key)
        except PlaywrightError as exc:
            log.warning("Failed to retrieve extension logs: %s", exc)
            path.write_text(f"Failed to retrieve logs: {exc}\n", encoding="utf-8")
            return path

        entries = filter_logs(parse_log_entries(raw_entries or []), query)
        badge_header = ""
        if target_url:
            snapshot = await control.badge_snapshot(page, target_url)
            badge_header = format_badge_snapshot(target_url, snapshot)
        path.write_text(render_log_report(entries, badge_header=badge_header), encoding="utf-8")
        log.info("Wrote %d extension log entries to %s", len(entries), path)
        return path
    finally:
        if page is not None:
            await page.close()
        if original_page is not None:
            await original_page.bring_to_front()


async def _run(args: argparse.Namespace) -> Path:
    config = load_config(args.config)
    query = LogQuery(
        since=args.since,
        session_id=args.session_id,
        max_entries=args.max_entries,
        context_type=args.context_type,
        log_level=args.log_level,
    )
    async with async_playwright() as pw:
        browser = await pw.chromium.connect_over_cdp(args.cdp_url)
        context = browser.contexts[0] if browser.contexts else await browser.new_context()
        return await write_extension_logs(
            context,
            args.extension_id,
            output_path=args.output,
            query=query,
            target_url=args.target_url,
            config=config,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Write the extension's diagnostic log to a file")
    parser.add_argument("--extension-id", required=True, help="ID of the extension under test")
    parser.add_argument(
        "--cdp-url",
        default="http://127.0.0.1:9222",
        help="DevTools endpoint of the running browser (default: %(default)s)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Report path")
    parser.add_argument("--config", type=Path, default=None, help="Optional config.toml")
    parser.add_argument("--since", type=float, default=None, help="Epoch milliseconds lower bound")
    parser.add_argument("--session-id", default=None)
    parser.add_argument("--max-entries", type=int, default=1000)
    parser.add_argument("--context-type", default="all")
    parser.add_argument("--log-level", default="all")
    parser.add_argument("--target-url", default=None, help="Include badge text for this URL")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        path = asyncio.run(_run(args))
    except PlaywrightError as exc:
        log.error("Could not attach to browser at %s: %s", args.cdp_url, exc)
        return 1
    print(path)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
