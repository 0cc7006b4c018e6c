import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, str(level).strip().upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Repeated calls (tests, re-entry from main) must not stack handlers.
    for handler in root_logger.handlers:
        if getattr(handler, "_schema_canvas_handler", False):
            handler.setLevel(numeric_level)
            return

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._schema_canvas_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)
