from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable
import tkinter as tk

__all__ = ["UIDispatcher", "safe_dispatch", "thread_runner"]


def _widget_alive(widget: object) -> bool:
    winfo_exists = getattr(widget, "winfo_exists", None)
    if not callable(winfo_exists):
        return False
    try:
        return bool(winfo_exists())
    except tk.TclError:
        return False


def safe_dispatch(
    after: Callable[[int, Callable[[], None]], object],
    callback: Callable[[], None],
    *,
    is_alive: Callable[[], bool] | None = None,
) -> bool:
    if is_alive is not None and not bool(is_alive()):
        return False
    try:
        after(0, callback)
    except tk.TclError:
        return False
    return True


@dataclass(frozen=True)
class UIDispatcher:
    after: Callable[[int, Callable[[], None]], object]
    is_alive: Callable[[], bool]

    @classmethod
    def from_widget(cls, widget: object) -> "UIDispatcher":
        after_cb = getattr(widget, "after", None)
        if not callable(after_cb):
            raise ValueError(
                "UI dispatcher requires widget.after callback support. "
                "Fix: pass a Tk widget with an after() method."
            )
        return cls(after=after_cb, is_alive=lambda: _widget_alive(widget))

    def post(self, callback: Callable[[], None]) -> bool:
        return safe_dispatch(self.after, callback, is_alive=self.is_alive)


def thread_runner(
    dispatcher: UIDispatcher,
) -> Callable[[Callable[[], object], Callable[[object], None], Callable[[Exception], None]], None]:
    """Build a run_async callback: worker on a daemon thread, callbacks back on the Tk thread."""

    def run_async(
        worker: Callable[[], object],
        on_done: Callable[[object], None],
        on_failed: Callable[[Exception], None],
    ) -> None:
        def work() -> None:
            try:
                result = worker()
            except Exception as exc:
                dispatcher.post(lambda error=exc: on_failed(error))
                return
            dispatcher.post(lambda payload=result: on_done(payload))

        threading.Thread(target=work, daemon=True).start()

    return run_async
