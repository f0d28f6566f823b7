import asyncio
import importlib.util
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from overlay_harness.trace import HarnessTrace

EXAMPLE = Path(__file__).resolve().parents[1] / "examples" / "popover_fix_flow.py"


def _load_example():
    spec = importlib.util.spec_from_file_location("popover_fix_flow", EXAMPLE)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class UnreachableChromium:
    async def connect_over_cdp(self, url):
        raise PlaywrightError(f"cannot connect to {url}")


class UnreachablePlaywright:
    chromium = UnreachableChromium()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def test_popover_flow_imports_cleanly():
    module = _load_example()

    assert callable(module.fix_all)
    assert callable(module.main)


def test_popover_flow_closes_trace_when_flow_fails(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    module = _load_example()
    trace = HarnessTrace(tmp_path / "trace.jsonl", run_id="popover-fix")
    monkeypatch.setattr(module, "open_trace", lambda path, run_id="": trace)
    monkeypatch.setattr(module, "async_playwright", UnreachablePlaywright)

    with pytest.raises(PlaywrightError):
        asyncio.run(module.fix_all("http://127.0.0.1:1", "ext", "http://x", "test-input"))

    assert trace._events_file.closed
