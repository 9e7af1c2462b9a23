import logging
import os
import tempfile

from counselnote.logging_utils import setup_logging


def _drop_handlers(logger, added):
    for handler in list(logger.handlers):
        if handler in added:
            logger.removeHandler(handler)
            handler.close()


def test_setup_logging_writes_to_rotating_file():
    with tempfile.TemporaryDirectory() as tmp:
        before = set(logging.getLogger("counselnote").handlers)
        logger, log_path = setup_logging(log_dir=tmp, level=logging.DEBUG)
        try:
            setup_logging(log_dir=tmp, level=logging.DEBUG)
            logging.getLogger("counselnote.roster").info("hello from roster")
            file_handlers = [
                h for h in logger.handlers if getattr(h, "baseFilename", None) == log_path
            ]
            assert len(file_handlers) == 1
            file_handlers[0].flush()
            with open(log_path, "r", encoding="utf-8") as handle:
                assert "counselnote.roster hello from roster" in handle.read()
        finally:
            _drop_handlers(logger, set(logger.handlers) - before)
    assert os.path.basename(log_path) == "counselnote.log"


def test_console_handler_shows_warnings_only_once():
    with tempfile.TemporaryDirectory() as tmp:
        before = set(logging.getLogger("counselnote").handlers)
        logger, _log_path = setup_logging(log_dir=tmp, console=True)
        try:
            setup_logging(log_dir=tmp, console=True)
            consoles = [h for h in logger.handlers if type(h) is logging.StreamHandler]
            assert len(consoles) == 1
            assert consoles[0].level == logging.WARNING
        finally:
            _drop_handlers(logger, set(logger.handlers) - before)


def test_console_handler_is_opt_in():
    with tempfile.TemporaryDirectory() as tmp:
        before = set(logging.getLogger("counselnote").handlers)
        logger, _log_path = setup_logging(log_dir=tmp)
        try:
            added = set(logger.handlers) - before
            assert not [h for h in added if type(h) is logging.StreamHandler]
        finally:
            _drop_handlers(logger, set(logger.handlers) - before)
