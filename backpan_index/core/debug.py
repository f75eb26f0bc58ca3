import logging
import sys
import threading

PACKAGE_LOGGER = "backpan_index"

_HANDLER_NAME = "backpan_index.debug"

_lock = threading.Lock()
_users = 0
_saved_level = logging.NOTSET


def enable_debug_logging() -> None:
    """
    Send progress and skipped-line messages to stderr.

    Calls are counted; output stays on until disable_debug_logging() has
    been called as many times.
    """
    global _users, _saved_level
    with _lock:
        _users += 1
        if _users > 1:
            return

        logger = logging.getLogger(PACKAGE_LOGGER)
        _saved_level = logger.level
        logger.setLevel(logging.DEBUG)

        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)


def disable_debug_logging() -> None:
    """Undo one enable_debug_logging() call, restoring the logger after the last one."""
    global _users
    with _lock:
        if _users == 0:
            return
        _users -= 1
        if _users:
            return

        logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in [h for h in logger.handlers if h.get_name() == _HANDLER_NAME]:
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(_saved_level)
