import asyncio

from fakes import FakeField, FakeHost, rect
from overlay_harness.highlights import (
    extract_highlights,
    extract_overlay_state,
    has_mirror_overlay,
    immediate_highlight_count,
    issue_ids,
    parse_issue_id,
    select_highlight_by_word,
)
from overlay_harness.models import HighlightEntity


def _node(issue_id, left=0.0, top=0.0, width=20.0, height=10.0):
    return {"issueId": issue_id, "rect": rect(left, top, width, height)}


def _entity(issue_id, text, start=0, end=0):
    return HighlightEntity(issue_id, start, end, text, 0.0, 0.0)


def _page_with_overlay(page, text, nodes, *, host_offset=0.0):
    page.fields["test-input"] = FakeField(rect(50, 80), text=text)
    page.hosts = [FakeHost(rect(50 + host_offset, 80 + host_offset), nodes=nodes)]
    return page


def test_parse_issue_id():
    assert parse_issue_id("4:9") == (4, 9)
    assert parse_issue_id("12:15:extra") == (12, 15)
    assert parse_issue_id("3px:7x") == (3, 7)


def test_parse_issue_id_malformed():
    assert parse_issue_id("") == (None, None)
    assert parse_issue_id("abc") == (None, None)
    assert parse_issue_id("3:") == (None, None)
    assert parse_issue_id("x:5") == (None, None)


def test_extract_recomputes_text_from_live_field(page):
    _page_with_overlay(
        page,
        "Ths is bad txt",
        [_node("0:3", left=50, top=80, width=30, height=20), _node("11:14", left=130, top=80)],
    )

    highlights = asyncio.run(extract_highlights(page, "test-input"))

    assert [h.issue_id for h in highlights] == ["0:3", "11:14"]
    assert highlights[0].original_text == "Ths"
    assert highlights[1].original_text == "txt"
    assert (highlights[0].center_x, highlights[0].center_y) == (65.0, 90.0)
    assert highlights[0].is_valid


def test_extract_without_field_or_host_is_empty(page):
    assert asyncio.run(extract_highlights(page, "missing")) == []

    page.fields["test-input"] = FakeField(rect(0, 0), text="Ths")
    state = asyncio.run(extract_overlay_state(page, "test-input"))
    assert state.status == "no-host"
    assert state.highlights == []


def test_extract_host_without_shadow_root(page):
    page.fields["f"] = FakeField(rect(0, 0), text="abc")
    page.hosts = [FakeHost(rect(0, 0), nodes=[_node("0:1")], has_root=False)]

    state = asyncio.run(extract_overlay_state(page, "f"))

    assert state.status == "no-host"
    assert not state.host_found


def test_extract_distinguishes_empty_host(page):
    _page_with_overlay(page, "All good here", [])

    state = asyncio.run(extract_overlay_state(page, "test-input"))

    assert state.status == "empty"
    assert state.host_found
    assert state.highlights == []


def test_offsets_stay_within_current_text(page):
    # Node rendered before the user deleted most of the text.
    _page_with_overlay(page, "Ths is", [_node("0:3"), _node("4:20"), _node("30:40"), _node("5:2")])

    highlights = asyncio.run(extract_highlights(page, "test-input"))
    text_length = len("Ths is")

    for detail in highlights:
        assert 0 <= detail.start <= detail.end <= text_length
    assert [h.original_text for h in highlights] == ["Ths", "is", "", ""]


def test_malformed_issue_id_is_kept_without_offsets(page):
    _page_with_overlay(page, "Ths is", [_node("garbage", left=10, top=10)])

    (detail,) = asyncio.run(extract_highlights(page, "test-input"))

    assert detail.issue_id == "garbage"
    assert detail.start is None and detail.end is None
    assert detail.original_text == ""
    assert not detail.is_valid
    assert detail.center_x == 20.0


def test_extraction_is_idempotent_without_mutation(page):
    _page_with_overlay(page, "Ths is bad txt", [_node("0:3"), _node("7:10")], host_offset=2)

    first = asyncio.run(extract_highlights(page, "test-input"))
    second = asyncio.run(extract_highlights(page, "test-input"))

    assert first == second


def test_immediate_count_uses_node_count_only(page):
    _page_with_overlay(page, "Ths is", [_node("0:3"), _node("4:6")])

    assert asyncio.run(immediate_highlight_count(page, "test-input")) == 2
    assert page.evaluations[-1][1]["includeNodes"] is False
    assert asyncio.run(immediate_highlight_count(page, "other")) == 0


def test_select_highlight_by_word_prefers_exact_match():
    highlights = [_entity("a", "typicla example"), _entity("b", " Typicla "), _entity("c", "radnom")]

    assert select_highlight_by_word(highlights, "typicla").issue_id == "b"
    assert select_highlight_by_word(highlights, "EXAMPLE").issue_id == "a"
    assert select_highlight_by_word(highlights, "zzz").issue_id == "a"
    assert select_highlight_by_word(highlights).issue_id == "a"
    assert select_highlight_by_word([], "radnom") is None


def test_has_mirror_overlay(page):
    page.hosts = [FakeHost(rect(0, 0), extra_selectors={"#mirror": {"text": ""}})]

    assert asyncio.run(has_mirror_overlay(page)) is True

    page.hosts = [FakeHost(rect(0, 0))]
    assert asyncio.run(has_mirror_overlay(page)) is False


def test_issue_ids_keep_document_order():
    highlights = [_entity("9:12", "txt", 9, 12), _entity("0:3", "Ths", 0, 3)]

    assert issue_ids(highlights) == ["9:12", "0:3"]
    assert issue_ids([]) == []
