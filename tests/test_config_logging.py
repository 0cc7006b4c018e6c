import logging
import unittest

from schema_canvas.config import AppConfig
from schema_canvas.logging_setup import LOG_FORMAT, setup_logging


class TestAppConfig(unittest.TestCase):
    def test_zoom_defaults(self):
        cfg = AppConfig()
        self.assertEqual((cfg.zoom_min, cfg.zoom_max, cfg.zoom_step), (0.2, 3.0, 0.1))
        self.assertEqual(cfg.wheel_zoom_sensitivity, 0.001)
        self.assertEqual(cfg.zoom_anchor, "origin")
        self.assertIsNone(cfg.palette_seed)


class TestSetupLogging(unittest.TestCase):
    def setUp(self) -> None:
        self.root_logger = logging.getLogger()
        self.saved_level = self.root_logger.level
        self.saved_handlers = list(self.root_logger.handlers)

    def tearDown(self) -> None:
        self.root_logger.handlers = self.saved_handlers
        self.root_logger.setLevel(self.saved_level)

    def _ours(self):
        return [h for h in self.root_logger.handlers if getattr(h, "_schema_canvas_handler", False)]

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging("INFO")
        setup_logging("DEBUG")
        handlers = self._ours()
        self.assertEqual(len(handlers), 1)
        self.assertEqual(handlers[0].level, logging.DEBUG)
        self.assertEqual(handlers[0].formatter._fmt, LOG_FORMAT)

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty")
        self.assertEqual(self.root_logger.level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
