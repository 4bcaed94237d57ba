from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_HANDLER_PREFIX = "specgen."


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Route log records to stderr and, when ``log_file`` is given, to a rotating file.

    Calling it again replaces the handlers installed by a previous call.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(_HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()

    level = logging.DEBUG if verbose else logging.INFO
    root.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.set_name(f"{_HANDLER_PREFIX}console")
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.set_name(f"{_HANDLER_PREFIX}file")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
        root.addHandler(file_handler)
        # The file records debug lines even when the console does not.
        root.setLevel(logging.DEBUG)

    # librosa and audioread report decoder fallbacks through warnings.
    logging.captureWarnings(True)
    # numba's JIT chatter drowns everything else at DEBUG.
    logging.getLogger("numba").setLevel(logging.WARNING)
