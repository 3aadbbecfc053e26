"""Page-size detection policy.

The policy is a pure function of a :class:`PlatformDescriptor`, so the live
host query can be swapped for a fixed descriptor in tests.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from src.utils.logger import get_logger

PAGE_SIZE_4KB = 4096
PAGE_SIZE_16KB = 16384
VALID_PAGE_SIZES = frozenset({PAGE_SIZE_4KB, PAGE_SIZE_16KB})
DEFAULT_PAGE_SIZE = PAGE_SIZE_4KB

# platform revision from which 16KB pages are guaranteed
DEFAULT_API_LEVEL_THRESHOLD = 35

logger = get_logger("page_size", log_name="memory_channel")


@dataclass(frozen=True)
class PlatformDescriptor:
    api_level: int | None = None
    native_page_size: int | None = None


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def page_size_for(
    descriptor: PlatformDescriptor,
    threshold: int = DEFAULT_API_LEVEL_THRESHOLD,
) -> int:
    """คืนขนาด page (bytes) จาก descriptor โดยไม่แตะ environment จริง

    A non-integer ``api_level`` raises ``TypeError``; a non-integer native
    page size is ignored.
    """
    if descriptor.api_level is not None:
        if not _is_int(descriptor.api_level):
            raise TypeError(f"api_level must be an int, got {descriptor.api_level!r}")
        if descriptor.api_level >= threshold:
            return PAGE_SIZE_16KB
        return PAGE_SIZE_4KB
    native = descriptor.native_page_size
    if _is_int(native) and native in VALID_PAGE_SIZES:
        return native
    return DEFAULT_PAGE_SIZE


def supports_16kb(page_size: int) -> bool:
    return page_size >= PAGE_SIZE_16KB


def detect_page_size(
    describe: Callable[[], PlatformDescriptor],
    threshold: int = DEFAULT_API_LEVEL_THRESHOLD,
) -> int:
    """Resolve the page size, falling back to 4096 on any failure."""
    try:
        return page_size_for(describe(), threshold)
    except Exception as exc:
        logger.warning(
            "page size detection failed, using %d: %s", DEFAULT_PAGE_SIZE, exc
        )
        return DEFAULT_PAGE_SIZE


def _native_page_size() -> int | None:
    try:
        return os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return None


def describe_host(api_level: int | str | None = None) -> PlatformDescriptor:
    """Build a descriptor for the running host.

    ``api_level`` comes from configuration; when it is not set the
    ``PLATFORM_API_LEVEL`` environment variable is consulted. A value that
    is not an integer raises ``ValueError``.
    """
    if api_level is None or api_level == "":
        api_level = os.getenv("PLATFORM_API_LEVEL") or None
    level = int(api_level) if api_level is not None else None
    return PlatformDescriptor(api_level=level, native_page_size=_native_page_size())
