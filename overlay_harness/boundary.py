"""Explicit queries across the overlay's shadow-root isolation boundary.

Document-level selectors cannot see into the overlay's shadow roots. A
``CrossBoundaryQuery`` pairs a :class:`RootProvider` (a page-side function that
returns the roots to search) with a selector evaluated inside those roots, and
is re-evaluated on every call so no node handle outlives a single round trip.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from playwright.async_api import Page

_QUERY_TEMPLATE = """
(args) => {{
  const roots = ({provider})(args.params) || [];
  const nodes = [];
  for (const root of roots) {{
    if (!root) continue;
    nodes.push(...root.querySelectorAll(args.selector));
  }}
  {body}
}}
"""

_COUNT_BODY = "return nodes.length;"

_TEXT_BODY = "return nodes.length ? (nodes[0].textContent ?? null) : null;"

_CLICK_BODY = """
  if (!nodes.length) return false;
  nodes[0].click();
  return true;
"""

_DISPATCH_MOUSE_BODY = """
  if (!nodes.length) return false;
  nodes[0].dispatchEvent(
    new MouseEvent(args.event.type, {
      bubbles: true,
      composed: true,
      cancelable: true,
      clientX: args.event.clientX,
      clientY: args.event.clientY,
    })
  );
  return true;
"""

_ALL_SHADOW_ROOTS = """
(params) => Array.from(document.querySelectorAll(params.hostTag))
  .map((host) => host.shadowRoot)
  .filter(Boolean)
"""

_FIRST_SHADOW_ROOT = """
(params) => {
  const host = document.querySelector(params.hostTag);
  return host && host.shadowRoot ? [host.shadowRoot] : [];
}
"""


def css_string(value: str) -> str:
    """Quote ``value`` for use inside a CSS attribute selector."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def attribute_selector(base: str, attribute: str, value: str) -> str:
    return f"{base}[{attribute}={css_string(value)}]"


@dataclass(frozen=True, slots=True)
class RootProvider:
    """Page-side function returning the roots a query searches."""

    name: str
    script: str
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def shadow_roots_of(cls, host_tag: str) -> "RootProvider":
        return cls("shadow-roots", _ALL_SHADOW_ROOTS, {"hostTag": host_tag})

    @classmethod
    def first_shadow_root_of(cls, host_tag: str) -> "RootProvider":
        return cls("first-shadow-root", _FIRST_SHADOW_ROOT, {"hostTag": host_tag})


@dataclass(frozen=True, slots=True)
class CrossBoundaryQuery:
    root_provider: RootProvider
    selector: str

    def build_script(self, body: str) -> str:
        return _QUERY_TEMPLATE.format(provider=self.root_provider.script.strip(), body=body.strip())

    def _args(self, **extra: Any) -> Dict[str, Any]:
        args: Dict[str, Any] = {"params": dict(self.root_provider.params), "selector": self.selector}
        args.update(extra)
        return args

    async def count(self, page: Page) -> int:
        result = await page.evaluate(self.build_script(_COUNT_BODY), self._args())
        return int(result or 0)

    async def exists(self, page: Page) -> bool:
        return await self.count(page) > 0

    async def text(self, page: Page) -> str | None:
        return await page.evaluate(self.build_script(_TEXT_BODY), self._args())

    async def click(self, page: Page) -> bool:
        """Call ``click()`` on the first match; ``False`` when nothing matched."""

        return bool(await page.evaluate(self.build_script(_CLICK_BODY), self._args()))

    async def dispatch_mouse_event(
        self,
        page: Page,
        event_type: str,
        client_x: float,
        client_y: float,
    ) -> bool:
        """Dispatch a composed mouse event on the first match.

        Returns ``False`` without raising when no node matches, e.g. because a
        re-render already removed it.
        """

        event = {"type": event_type, "clientX": client_x, "clientY": client_y}
        result = await page.evaluate(
            self.build_script(_DISPATCH_MOUSE_BODY), self._args(event=event)
        )
        return bool(result)
