import logging
from datetime import datetime
from pathlib import Path

import pytest

from report_viewer.logging_setup import LOGGER_NAME, configure_logging


class _BrokenStream:
    def write(self, _message: str) -> None:
        raise OSError("No space left on device")

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_log_file_named_by_start_time(tmp_path: Path) -> None:
    started = datetime(2024, 3, 5, 14, 7, 9)
    log_path = configure_logging(tmp_path / "logs", started_at=started)
    assert log_path == tmp_path / "logs" / "web_2024-03-05_14-07-09.log"

    logging.getLogger("report_viewer.web").info("Served HTML report: appOpenTickets")
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert lines[0].endswith("|| INFO || Web server logging initialized")
    assert lines[1].endswith("|| INFO || Served HTML report: appOpenTickets")


def test_each_start_gets_its_own_file(tmp_path: Path) -> None:
    first = configure_logging(tmp_path, started_at=datetime(2024, 1, 1, 0, 0, 0))
    second = configure_logging(tmp_path, started_at=datetime(2024, 1, 1, 0, 0, 1))
    assert first != second
    assert first.exists() and second.exists()
    assert len(logging.getLogger(LOGGER_NAME).handlers) == 2


def test_unwritable_log_dir_falls_back_to_console(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    assert configure_logging(blocker / "logs") is None
    assert "Failed to initialize logging" in capsys.readouterr().err

    logging.getLogger("report_viewer.resolver").info("still logging")
    assert "still logging" in capsys.readouterr().out


def test_write_failure_does_not_raise(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    log_path = configure_logging(tmp_path)
    file_handler = next(h for h in logging.getLogger(LOGGER_NAME).handlers if isinstance(h, logging.FileHandler))
    file_handler.setStream(_BrokenStream()).close()

    logging.getLogger("report_viewer.web").error("request outcome")
    captured = capsys.readouterr()
    assert "request outcome" in captured.out
    assert f"Failed to write to log file {log_path}" in captured.err
