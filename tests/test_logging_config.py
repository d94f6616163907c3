import json
import logging

from terminal_bridge import logging_config


def test_components_share_bridge_parent_handler():
    square = logging_config.get_logger("square")
    checkout = logging_config.get_logger("checkout")
    assert square.name == "bridge.square"
    assert checkout.name == "bridge.checkout"
    root = logging.getLogger("bridge")
    assert len(root.handlers) == 1
    assert not square.handlers and not checkout.handlers


def test_levels_from_env(monkeypatch):
    monkeypatch.setenv("BRIDGE_LOG_LEVEL", "warning")
    monkeypatch.setenv("BRIDGE_REQUEST_LOG_LEVEL", "DEBUG")
    api = logging_config.get_logger("api")
    requests_log = logging_config.get_logger("requests")
    assert api.getEffectiveLevel() == logging.WARNING
    assert requests_log.level == logging.DEBUG
    monkeypatch.setenv("BRIDGE_LOG_LEVEL", "INFO")
    logging_config.get_logger("api")
    assert api.getEffectiveLevel() == logging.INFO


def test_json_line_formatter():
    record = logging.LogRecord("bridge.checkout", logging.WARNING, __file__, 1, "orphaned order order_id=%s", ("o-1",), None)
    line = json.loads(logging_config.JsonLineFormatter().format(record))
    assert line["level"] == "WARNING"
    assert line["logger"] == "bridge.checkout"
    assert line["component"] == "checkout"
    assert line["msg"] == "orphaned order order_id=o-1"
    assert "exc" not in line
