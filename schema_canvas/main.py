# To run:
# python -m schema_canvas.main


import logging
import traceback
import tkinter as tk
from tkinter import ttk

from schema_canvas.config import AppConfig
from schema_canvas.generation import SchemaGenerator
from schema_canvas.logging_setup import setup_logging
from schema_canvas.gui_tools import SchemaCanvasToolFrame

logger = logging.getLogger("main")


def main(generate: SchemaGenerator | None = None) -> int:
    """Start the app. `generate` (prompt -> project payload) enables the Generate box."""
    cfg = AppConfig()

    setup_logging(cfg.log_level)
    logger.info("App booting (schema canvas)...")

    try:
        root = tk.Tk()
        root.title("Schema Canvas")
        root.geometry(cfg.window_geometry)
        ttk.Style().theme_use("clam")
        SchemaCanvasToolFrame(root, cfg, generate=generate).pack(fill="both", expand=True)
        root.mainloop()
        return 0
    except Exception as exc:
        logger.error("Unhandled error: %s", exc)
        if cfg.debug:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
