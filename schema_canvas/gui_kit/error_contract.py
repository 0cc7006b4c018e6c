from __future__ import annotations

import re

__all__ = [
    "CANVAS_CONTEXT",
    "canvas_error",
    "coerce_actionable_message",
    "format_actionable_error",
    "is_actionable_message",
    "split_fix_hint",
]

CANVAS_CONTEXT = "Schema canvas"

# "<Context> / <Location>: <issue>. Fix: <hint>." ; issues may span lines (DDL, tracebacks).
_ACTIONABLE = re.compile(r"^[^:\n]+: .+\. Fix: .+\.$", re.DOTALL)
_FIX_MARKER = " Fix: "


def _part(value: object, default: str) -> str:
    # Parts are joined with ". ", so a caller's trailing period would double up.
    text = str(value).strip().rstrip(".")
    return text or default


def format_actionable_error(context: str, location: str, issue: str, hint: str) -> str:
    head = _part(location, "Unknown")
    if str(context).strip():
        head = f"{str(context).strip()} / {head}"
    return f"{head}: {_part(issue, 'unknown issue')}. Fix: {_part(hint, 'review input and retry')}."


def canvas_error(location: str, issue: str, hint: str) -> str:
    return format_actionable_error(CANVAS_CONTEXT, location, issue, hint)


def is_actionable_message(message: object) -> bool:
    return bool(_ACTIONABLE.match(str(message).strip()))


def split_fix_hint(message: object) -> tuple[str, str | None]:
    """('issue', 'hint') from a "<issue>. Fix: <hint>." message; hint is None when absent."""
    text = str(message).strip()
    issue, marker, hint = text.partition(_FIX_MARKER)
    if not marker:
        return text, None
    return issue.rstrip("."), hint.rstrip(".") or None


def coerce_actionable_message(context: str, raw_message: object, *, location: str, hint: str) -> str:
    text = str(raw_message).strip()
    if is_actionable_message(text):
        return text
    issue, own_hint = split_fix_hint(text)
    return format_actionable_error(context, location, issue, own_hint or hint)
