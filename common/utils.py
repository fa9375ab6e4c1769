from __future__ import annotations

import ctypes
import ctypes.util
import gc
import time


def timer_ms(func):
    """
    Decorator that returns (result, elapsed_ms) for timing pipeline stages.
    """
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        out = func(*args, **kwargs)
        dt_ms = (time.perf_counter() - t0) * 1e3
        return out, dt_ms
    return wrapper


def _load_libc():
    name = ctypes.util.find_library("c")
    if not name:
        return None
    try:
        libc = ctypes.CDLL(name)
    except OSError:
        return None
    return libc if hasattr(libc, "malloc_trim") else None


_LIBC = _load_libc()


def trim_heap() -> bool:
    """
    Collect garbage and hand freed arenas back to the OS.

    The stitched canvas of a 4K run is several hundred MB; without this the
    process keeps that footprint for the whole sleep between cycles.
    Returns True when glibc's malloc_trim released memory.
    """
    gc.collect()
    if _LIBC is None:
        return False
    return bool(_LIBC.malloc_trim(0))
