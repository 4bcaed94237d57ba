import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from specgen.logging_utils import configure_logging


def _specgen_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if (h.get_name() or "").startswith("specgen.")]


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in _specgen_handlers():
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)
    logging.captureWarnings(False)


def test_console_only_by_default() -> None:
    configure_logging()
    handlers = _specgen_handlers()
    assert [h.get_name() for h in handlers] == ["specgen.console"]
    assert handlers[0].level == logging.INFO
    assert logging.getLogger().level == logging.INFO


def test_verbose_lowers_console_level() -> None:
    configure_logging(verbose=True)
    assert _specgen_handlers()[0].level == logging.DEBUG


def test_log_file_receives_debug_records(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "specgen.log"
    configure_logging(log_file=log_file)
    logging.getLogger("specgen.test").debug("debug line")
    for handler in _specgen_handlers():
        handler.flush()
    assert "debug line" in log_file.read_text(encoding="utf-8")
    console = next(h for h in _specgen_handlers() if h.get_name() == "specgen.console")
    assert console.level == logging.INFO


def test_reconfiguring_replaces_previous_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "a.log")
    configure_logging(verbose=True)
    assert [h.get_name() for h in _specgen_handlers()] == ["specgen.console"]
