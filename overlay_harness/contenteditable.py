"""Count CSS Custom Highlight ranges that belong to one content-editable field.

``CSS.highlights`` is a page-wide registry keyed by issue category, shared by
every field on the page, so each range is attributed to a field by checking
whether its common ancestor lies inside that field.
"""

from __future__ import annotations

from typing import Dict, Optional

from playwright.async_api import Page

from .config import HarnessConfig, resolve_config
from .errors import CapabilityUnavailableError, MissingTargetError

COUNT_RANGES_SCRIPT = """
({ fieldId, errorTypes }) => {
  const element = document.getElementById(fieldId);
  if (!element) {
    return { error: 'missing-target' };
  }
  if (typeof CSS === 'undefined' || !('highlights' in CSS)) {
    return { error: 'unsupported' };
  }
  const counts = {};
  for (const type of errorTypes) {
    let count = 0;
    const highlight = CSS.highlights.get(type);
    if (highlight) {
      for (const range of highlight) {
        const container = range.commonAncestorContainer;
        if (!container) {
          continue;
        }
        const owner =
          container.nodeType === Node.ELEMENT_NODE ? container : container.parentElement;
        if (owner && element.contains(owner)) {
          count += 1;
        }
      }
    }
    counts[type] = count;
  }
  return { counts };
}
"""


async def count_highlights_by_category(
    page: Page,
    field_id: str,
    *,
    config: Optional[HarnessConfig] = None,
) -> Dict[str, int]:
    """Return highlight range counts per category, scoped to ``field_id``.

    Raises :class:`MissingTargetError` when the field does not exist and
    :class:`CapabilityUnavailableError` when the page lacks ``CSS.highlights``.
    """

    cfg = resolve_config(config)
    result = await page.evaluate(
        COUNT_RANGES_SCRIPT,
        {"fieldId": field_id, "errorTypes": list(cfg.error_types)},
    )
    result = result or {}
    error = result.get("error")
    if error == "missing-target":
        raise MissingTargetError(field_id)
    if error == "unsupported":
        raise CapabilityUnavailableError("CSS highlights", field_id=field_id)
    counts = result.get("counts") or {}
    return {category: int(counts.get(category, 0)) for category in cfg.error_types}


async def count_highlights(
    page: Page,
    field_id: str,
    *,
    config: Optional[HarnessConfig] = None,
) -> int:
    counts = await count_highlights_by_category(page, field_id, config=config)
    return sum(counts.values())
