"""Locate the overlay host that decorates a given field.

Overlay hosts are siblings of the page content, not descendants of the field,
so the only association is positional: the host whose top-left corner sits on
the field's top-left corner within a small tolerance. Hosts come and go as
fields gain and lose decoration, so every query re-reads the page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from playwright.async_api import Page

from .config import HarnessConfig, resolve_config
from .models import HostRef, Rect

log = logging.getLogger(__name__)

OVERLAY_SNAPSHOT_SCRIPT = """
({ fieldId, hostTag, highlightSelector, issueAttribute, includeNodes }) => {
  const field = document.getElementById(fieldId);
  if (!(field instanceof HTMLElement)) {
    return { field: null, hosts: [] };
  }
  const toRect = (r) => ({ left: r.left, top: r.top, width: r.width, height: r.height });
  const hosts = Array.from(document.querySelectorAll(hostTag)).map((host) => {
    const root = host.shadowRoot;
    const entry = {
      rect: toRect(host.getBoundingClientRect()),
      hasRoot: Boolean(root),
      nodeCount: 0,
      nodes: [],
    };
    if (root) {
      const nodes = Array.from(root.querySelectorAll(highlightSelector));
      entry.nodeCount = nodes.length;
      if (includeNodes) {
        entry.nodes = nodes.map((node) => ({
          issueId: node.getAttribute(issueAttribute) ?? '',
          rect: toRect(node.getBoundingClientRect()),
        }));
      }
    }
    return entry;
  });
  const isTextControl =
    field instanceof HTMLInputElement || field instanceof HTMLTextAreaElement;
  let text = null;
  if (includeNodes) {
    text = isTextControl ? field.value : (field.textContent ?? '');
  }
  return {
    field: { rect: toRect(field.getBoundingClientRect()), text },
    hosts,
  };
}
"""


@dataclass(slots=True)
class HostSample:
    rect: Rect
    has_root: bool
    node_count: int = 0
    nodes: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class OverlaySnapshot:
    """Raw state of one field and every overlay host, read in one round trip."""

    field_id: str
    field_rect: Optional[Rect]
    text: Optional[str]
    hosts: List[HostSample] = field(default_factory=list)

    @property
    def field_found(self) -> bool:
        return self.field_rect is not None

    def match(self, tolerance: float) -> Optional[int]:
        if self.field_rect is None:
            return None
        return match_host(self.field_rect, [host.rect for host in self.hosts], tolerance)


def match_host(field_rect: Rect, host_rects: Sequence[Rect], tolerance: float) -> Optional[int]:
    """Return the index of the first host coincident with ``field_rect``.

    Hosts are compared in document order; when several fall within tolerance
    the first one wins.
    """

    for index, rect in enumerate(host_rects):
        if (
            abs(rect.left - field_rect.left) <= tolerance
            and abs(rect.top - field_rect.top) <= tolerance
        ):
            return index
    return None


async def read_overlay_snapshot(
    page: Page,
    field_id: str,
    *,
    include_nodes: bool,
    config: Optional[HarnessConfig] = None,
) -> OverlaySnapshot:
    cfg = resolve_config(config)
    raw = await page.evaluate(
        OVERLAY_SNAPSHOT_SCRIPT,
        {
            "fieldId": field_id,
            "hostTag": cfg.host_tag,
            "highlightSelector": cfg.highlight_selector,
            "issueAttribute": cfg.issue_id_attribute,
            "includeNodes": include_nodes,
        },
    )
    raw = raw or {}
    field_data = raw.get("field")
    hosts = [
        HostSample(
            rect=Rect.from_mapping(entry.get("rect")),
            has_root=bool(entry.get("hasRoot")),
            node_count=int(entry.get("nodeCount") or 0),
            nodes=list(entry.get("nodes") or []),
        )
        for entry in raw.get("hosts") or []
    ]
    if not field_data:
        return OverlaySnapshot(field_id=field_id, field_rect=None, text=None, hosts=hosts)
    return OverlaySnapshot(
        field_id=field_id,
        field_rect=Rect.from_mapping(field_data.get("rect")),
        text=field_data.get("text"),
        hosts=hosts,
    )


async def resolve_host(
    page: Page,
    field_id: str,
    *,
    tolerance: Optional[float] = None,
    config: Optional[HarnessConfig] = None,
) -> Optional[HostRef]:
    """Find the overlay host positioned over ``field_id``.

    Returns ``None`` when the field does not exist, is not an HTML element, or
    no host lies within ``tolerance`` of its top-left corner.
    """

    cfg = resolve_config(config)
    tol = cfg.host_tolerance if tolerance is None else tolerance
    snapshot = await read_overlay_snapshot(page, field_id, include_nodes=False, config=cfg)
    if snapshot.field_rect is None:
        log.debug("Field %s not found while resolving overlay host", field_id)
        return None
    index = snapshot.match(tol)
    if index is None:
        return None
    host = snapshot.hosts[index]
    return HostRef(
        field_id=field_id,
        index=index,
        rect=host.rect,
        field_rect=snapshot.field_rect,
        has_root=host.has_root,
        candidate_count=len(snapshot.hosts),
    )


async def has_host(
    page: Page,
    field_id: str,
    *,
    tolerance: Optional[float] = None,
    config: Optional[HarnessConfig] = None,
) -> bool:
    return await resolve_host(page, field_id, tolerance=tolerance, config=config) is not None
