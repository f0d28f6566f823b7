import asyncio

import pytest

from fakes import FakeField, rect
from overlay_harness.config import HarnessConfig
from overlay_harness.contenteditable import count_highlights, count_highlights_by_category
from overlay_harness.errors import CapabilityUnavailableError, MissingTargetError, PollTimeoutError
from overlay_harness.waiters import wait_for_contenteditable_highlight_count


def test_count_sums_scoped_categories(page):
    page.fields["test-contenteditable"] = FakeField(rect(0, 0), kind="contenteditable")
    page.css_highlights = {"spelling": ["test-contenteditable"], "grammar": ["test-contenteditable"]}

    assert asyncio.run(count_highlights(page, "test-contenteditable")) == 2
    by_category = asyncio.run(count_highlights_by_category(page, "test-contenteditable"))
    assert by_category["spelling"] == 1
    assert by_category["grammar"] == 1
    assert by_category["missing-words"] == 0


def test_count_only_includes_ranges_inside_the_field(page):
    page.fields["test-contenteditable"] = FakeField(
        rect(0, 0), kind="contenteditable", descendants=("inner-paragraph",)
    )
    page.fields["other-editable"] = FakeField(rect(0, 60), kind="contenteditable")
    page.css_highlights = {
        "spelling": ["test-contenteditable", "other-editable", "inner-paragraph"],
        "grammar": ["other-editable"],
    }

    primary = asyncio.run(count_highlights_by_category(page, "test-contenteditable"))
    other = asyncio.run(count_highlights_by_category(page, "other-editable"))

    assert primary["spelling"] == 2
    assert primary["grammar"] == 0
    assert other["spelling"] == 1
    assert other["grammar"] == 1
    assert asyncio.run(count_highlights(page, "test-contenteditable")) == 2
    assert asyncio.run(count_highlights(page, "other-editable")) == 2


def test_count_passes_configured_categories(page):
    page.fields["f"] = FakeField(rect(0, 0))
    config = HarnessConfig(error_types=("spelling", "style"))

    asyncio.run(count_highlights(page, "f", config=config))

    _, arg = page.evaluations[-1]
    assert arg == {"fieldId": "f", "errorTypes": ["spelling", "style"]}


def test_missing_field_is_a_hard_failure(page):
    with pytest.raises(MissingTargetError) as excinfo:
        asyncio.run(count_highlights(page, "nope"))

    assert excinfo.value.field_id == "nope"
    assert "nope" in str(excinfo.value)


def test_unsupported_page_is_a_hard_failure(page):
    page.fields["f"] = FakeField(rect(0, 0))
    page.css_highlights = None

    with pytest.raises(CapabilityUnavailableError):
        asyncio.run(count_highlights(page, "f"))


def test_wait_aborts_immediately_when_capability_missing(page):
    page.fields["f"] = FakeField(rect(0, 0))
    page.css_highlights = None

    with pytest.raises(CapabilityUnavailableError):
        asyncio.run(
            wait_for_contenteditable_highlight_count(
                page, "f", lambda count: count > 0, timeout_ms=5000, interval_ms=0
            )
        )

    assert len(page.evaluations) == 1


def test_wait_for_contenteditable_count(page):
    page.fields["f"] = FakeField(rect(0, 0))
    page.css_highlights = {}
    calls = {"n": 0}
    original = page._count_ranges

    def growing(arg):
        calls["n"] += 1
        if calls["n"] >= 3:
            page.css_highlights = {"spelling": ["f", "f"], "grammar": ["f"]}
        return original(arg)

    page._count_ranges = growing

    count = asyncio.run(
        wait_for_contenteditable_highlight_count(page, "f", lambda c: c >= 3, interval_ms=0)
    )

    assert count == 3


def test_wait_for_contenteditable_count_times_out(page):
    page.fields["f"] = FakeField(rect(0, 0))

    with pytest.raises(PollTimeoutError) as excinfo:
        asyncio.run(
            wait_for_contenteditable_highlight_count(
                page, "f", lambda c: c > 0, timeout_ms=30, interval_ms=5
            )
        )

    assert "Contenteditable highlight count" in str(excinfo.value)
    assert excinfo.value.subject == "f"
