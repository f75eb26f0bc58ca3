import threading
from typing import Optional

from backpan_index.data.repository import load_config
from backpan_index.index import BackPANIndex

_index: Optional[BackPANIndex] = None
# Sync endpoints run in a thread pool; only one loader may touch the cache.
_index_lock = threading.Lock()


def get_index() -> BackPANIndex:
    """
    The process-wide index used by the HTTP layer, built on first use from
    BACKPAN_INDEX_CONFIG and the environment.
    """
    global _index
    if _index is None:
        with _index_lock:
            if _index is None:
                _index = BackPANIndex(load_config())
    return _index


def close_index() -> None:
    global _index
    with _index_lock:
        if _index is not None:
            _index.close()
            _index = None
