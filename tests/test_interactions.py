import asyncio

from fakes import FakeField, FakeHost, rect
from overlay_harness.boundary import attribute_selector, css_string
from overlay_harness.config import HarnessConfig
from overlay_harness.interactions import (
    highlight_query,
    set_field_value,
    shortcut_modifier,
    simulate_activation,
    trigger_proofread_shortcut,
)
from overlay_harness.models import HighlightEntity
from overlay_harness.trace import HarnessTrace


def _highlight(issue_id="4:7"):
    return HighlightEntity(issue_id, 4, 7, "bad", 120.5, 44.0)


def _page_with_node(page, issue_id="4:7"):
    page.hosts = [FakeHost(rect(0, 0), nodes=[{"issueId": issue_id, "rect": rect(110, 40)}])]
    return page


def test_activation_moves_clicks_then_dispatches(page):
    _page_with_node(page)

    asyncio.run(simulate_activation(page, _highlight()))

    assert [entry[0] for entry in page.record] == ["move", "click", "dispatch"]
    move, click, dispatch = page.record
    assert move[1:3] == (120.5, 44.0)
    assert click[3] == {"delay": 20, "click_count": 1}
    assert dispatch[1] == "4:7"
    assert dispatch[2] == {"type": "click", "clientX": 120.5, "clientY": 44.0}


def test_double_click_activation(page):
    _page_with_node(page)

    asyncio.run(simulate_activation(page, _highlight(), double_click=True))

    click = page.record[1]
    dispatch = page.record[2]
    assert click[3]["click_count"] == 2
    assert dispatch[2]["type"] == "dblclick"


def test_missing_node_still_sends_native_click(page):
    page.hosts = [FakeHost(rect(0, 0), nodes=[])]

    asyncio.run(simulate_activation(page, _highlight()))

    assert [entry[0] for entry in page.record] == ["move", "click"]


def test_activation_is_traced(page, tmp_path):
    _page_with_node(page)
    trace = HarnessTrace(tmp_path / "events.jsonl")

    asyncio.run(simulate_activation(page, _highlight("9:9"), trace=trace))
    trace.close()

    content = (tmp_path / "events.jsonl").read_text(encoding="utf-8")
    assert '"operation": "activate"' in content
    assert '"outcome": "native-only"' in content


def test_highlight_query_targets_issue_attribute():
    config = HarnessConfig(host_tag="x-overlay", highlight_selector=".mark")

    query = highlight_query(_highlight('1:"2'), config)

    assert query.selector == '.mark[data-issue-id="1:\\"2"]'
    assert query.root_provider.params == {"hostTag": "x-overlay"}


def test_css_string_escapes_quotes_and_backslashes():
    assert css_string('a"b') == '"a\\"b"'
    assert css_string("a\\b") == '"a\\\\b"'
    assert attribute_selector(".u", "data-issue-id", "0:3") == '.u[data-issue-id="0:3"]'


def test_set_field_value(page):
    page.fields["test-input"] = FakeField(rect(0, 0), text="old")

    assert asyncio.run(set_field_value(page, "test-input", "Ths is bad txt")) is True
    assert page.fields["test-input"].text == "Ths is bad txt"
    assert asyncio.run(set_field_value(page, "missing", "x")) is False


def test_shortcut_uses_platform_modifier(page):
    assert shortcut_modifier("darwin") == "Meta"
    assert shortcut_modifier("linux") == "Control"

    asyncio.run(trigger_proofread_shortcut(page, platform="linux"))

    assert page.record == [
        ("down", "Control"),
        ("down", "Shift"),
        ("press", "KeyP"),
        ("up", "Shift"),
        ("up", "Control"),
    ]
