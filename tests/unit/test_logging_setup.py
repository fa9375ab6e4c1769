"""
Unit tests for JSON/text logging setup
"""

import json
import logging
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.logging_setup import JsonFormatter, setup_logging


class TestJsonFormatter:
    """Test cases for JsonFormatter"""

    def _record(self, **kw):
        rec = logging.LogRecord("slider.tiles", logging.INFO, __file__, 1, "tile %d done", (7,), None)
        for k, v in kw.items():
            setattr(rec, k, v)
        return rec

    def test_fields(self):
        out = json.loads(JsonFormatter().format(self._record()))
        assert out["lvl"] == "INFO"
        assert out["name"] == "slider.tiles"
        assert out["msg"] == "tile 7 done"
        assert isinstance(out["t"], int)
        assert "extra" not in out

    def test_extra(self):
        out = json.loads(JsonFormatter().format(self._record(extra={"x": 3, "y": 5})))
        assert out["extra"] == {"x": 3, "y": 5}


class TestSetupLogging:
    """Test cases for setup_logging"""

    def test_force_reconfigures(self):
        root = logging.getLogger()
        saved = (list(root.handlers), root.level, getattr(root, "_satpaper_configured", False))
        try:
            setup_logging("WARNING", "json", force=True)
            assert root.level == logging.WARNING
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            setup_logging("DEBUG", "text")  # already configured: no-op
            assert root.level == logging.WARNING
            setup_logging("DEBUG", "text", force=True)
            assert root.level == logging.DEBUG
            assert not isinstance(root.handlers[0].formatter, JsonFormatter)
            setup_logging("NOPE", force=True)
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
            root._satpaper_configured = saved[2]
