"""Tests for the session Logger."""

from __future__ import annotations

from unittest.mock import MagicMock

from wayfinder.logger import Logger, silent_logger


def test_log_prints_and_appends_to_file(tmp_path, capsys):
    path = tmp_path / "session.log"
    logger = Logger(str(path))
    logger.log("Route found", {"distance_m": 2000})
    logger.close()

    out = capsys.readouterr().out
    assert "Route found" in out
    assert '"distance_m": 2000' in out
    text = path.read_text()
    assert "Wayfinder Log" in text
    assert "Route found" in text


def test_callback_receives_message_and_data():
    callback = MagicMock()
    logger = Logger(callback=callback, echo=False)
    logger.log("Tracking started", {"handle": 1})
    callback.assert_called_once_with("Tracking started", {"handle": 1})


def test_silent_logger_prints_nothing(capsys):
    silent_logger().log("quiet")
    assert capsys.readouterr().out == ""


def test_close_twice_is_safe(tmp_path):
    logger = Logger(str(tmp_path / "x.log"), echo=False)
    logger.close()
    logger.close()
