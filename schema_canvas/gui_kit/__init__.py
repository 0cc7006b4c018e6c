"""Shared helpers for the schema canvas views: actionable errors, their Tk dialog/status delivery, background jobs and UI-thread dispatch."""

from schema_canvas.gui_kit.error_contract import canvas_error, format_actionable_error, is_actionable_message
from schema_canvas.gui_kit.error_surface import ErrorSurface
from schema_canvas.gui_kit.job_lifecycle import JobLifecycleController, JobLifecycleState

__all__ = [
    "ErrorSurface",
    "JobLifecycleController",
    "JobLifecycleState",
    "canvas_error",
    "format_actionable_error",
    "is_actionable_message",
]
