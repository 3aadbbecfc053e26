"""Memory management helpers."""
from __future__ import annotations

import gc
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from src.utils.logger import get_logger

logger = get_logger("memory", log_name="memory_channel")

_EXECUTOR: ThreadPoolExecutor | None = None
_PENDING: Future | None = None
_lock = threading.Lock()


def malloc_trim() -> None:
    """Try to return free heap pages back to the OS (Linux/glibc)."""
    try:
        import ctypes

        libc = ctypes.CDLL("libc.so.6")
        libc.malloc_trim(0)
    except Exception:
        pass


def reclaim() -> int:
    """Run a full GC pass and trim the heap."""
    collected = gc.collect()
    malloc_trim()
    return collected


def _run_reclaimer(reclaimer: Callable[[], object]) -> None:
    try:
        result = reclaimer()
        logger.debug("reclamation finished: %s", result)
    except Exception:
        logger.exception("reclamation failed")


def _get_executor() -> ThreadPoolExecutor:
    # ต้องถือ _lock อยู่แล้วตอนเรียก
    global _EXECUTOR
    if _EXECUTOR is None:
        _EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reclaimer")
    return _EXECUTOR


def request_reclamation(reclaimer: Callable[[], object] = reclaim) -> Future:
    """ส่งงานคืนหน่วยความจำไปทำใน background โดยไม่รอผล

    Requests arriving while a pass is still queued or running are coalesced
    into that pass; its future is returned instead of a new one.
    """
    global _PENDING
    with _lock:
        if _PENDING is not None and not _PENDING.done():
            logger.debug("reclamation already pending, request coalesced")
            return _PENDING
        _PENDING = _get_executor().submit(_run_reclaimer, reclaimer)
        return _PENDING


def shutdown_reclaimer() -> None:
    global _EXECUTOR, _PENDING
    with _lock:
        _PENDING = None
        if _EXECUTOR is None:
            return
        _EXECUTOR.shutdown(wait=False, cancel_futures=True)
        _EXECUTOR = None
