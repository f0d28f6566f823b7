"""Verification helpers for a proofreading overlay rendered in shadow roots."""

from .boundary import CrossBoundaryQuery, RootProvider
from .config import HarnessConfig, load_config
from .contenteditable import count_highlights, count_highlights_by_category
from .control_events import read_control_events, start_control_capture, wait_for_control_event
from .errors import (
    CapabilityUnavailableError,
    HarnessError,
    MissingTargetError,
    PollTimeoutError,
)
from .extension import ExtensionControl
from .highlights import (
    extract_highlights,
    has_mirror_overlay,
    immediate_highlight_count,
    select_highlight_by_word,
)
from .host_resolver import has_host, resolve_host
from .interactions import (
    dispatch_input_event,
    read_field_text,
    set_field_value,
    simulate_activation,
    trigger_proofread_shortcut,
)
from .models import ControlEvent, HighlightEntity, HostRef, Rect
from .polling import poll_until
from .popover import CorrectionPopover
from .trace import HarnessTrace, open_trace
from .waiters import (
    wait_for_contenteditable_highlight_count,
    wait_for_highlight_count,
    wait_for_issue_cleared,
    wait_for_overlay_presence,
)

__all__ = [
    "CapabilityUnavailableError",
    "ControlEvent",
    "CorrectionPopover",
    "CrossBoundaryQuery",
    "ExtensionControl",
    "HarnessConfig",
    "HarnessError",
    "HarnessTrace",
    "HighlightEntity",
    "HostRef",
    "MissingTargetError",
    "PollTimeoutError",
    "Rect",
    "RootProvider",
    "count_highlights",
    "count_highlights_by_category",
    "dispatch_input_event",
    "extract_highlights",
    "has_host",
    "has_mirror_overlay",
    "immediate_highlight_count",
    "load_config",
    "open_trace",
    "poll_until",
    "read_control_events",
    "read_field_text",
    "resolve_host",
    "select_highlight_by_word",
    "set_field_value",
    "simulate_activation",
    "start_control_capture",
    "trigger_proofread_shortcut",
    "wait_for_contenteditable_highlight_count",
    "wait_for_control_event",
    "wait_for_highlight_count",
    "wait_for_issue_cleared",
    "wait_for_overlay_presence",
]
