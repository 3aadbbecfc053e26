"""Capability service answering calls on the memory channel.

Every request is resolved independently; the service keeps no state between
calls. Internal failures never reach the caller: page-size detection falls
back to 4096 and a failed reclamation request is still acknowledged.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from src.packages.page_size import (
    DEFAULT_API_LEVEL_THRESHOLD,
    PlatformDescriptor,
    describe_host,
    detect_page_size,
    supports_16kb,
)
from src.utils.logger import get_logger
from src.utils.memory import request_reclamation

DEFAULT_CHANNEL = "com.pelevo_podcast.app/memory"

logger = get_logger("memory_channel", log_name="memory_channel")


class ChannelMethod(str, Enum):
    GET_PAGE_SIZE = "getPageSize"
    OPTIMIZE_MEMORY = "optimizeMemory"
    IS_16KB_PAGE_SIZE_SUPPORTED = "is16KBPageSizeSupported"

    @classmethod
    def parse(cls, name: Any) -> "ChannelMethod | None":
        try:
            return cls(name)
        except ValueError:
            return None


SUCCESS = "success"
NOT_IMPLEMENTED = "not_implemented"


@dataclass(frozen=True)
class ChannelResult:
    kind: str
    value: Any = None

    @classmethod
    def success(cls, value: Any) -> "ChannelResult":
        return cls(SUCCESS, value)

    @classmethod
    def not_implemented(cls) -> "ChannelResult":
        return cls(NOT_IMPLEMENTED)

    def to_payload(self) -> dict[str, Any]:
        if self.kind == SUCCESS:
            return {"status": SUCCESS, "result": self.value}
        return {"status": self.kind}


class CapabilityService:
    """Dispatch channel calls to the page-size and reclamation helpers."""

    def __init__(
        self,
        describe: Callable[[], PlatformDescriptor] = describe_host,
        reclaim_request: Callable[[], object] = request_reclamation,
        threshold: int = DEFAULT_API_LEVEL_THRESHOLD,
    ) -> None:
        self._describe = describe
        self._reclaim_request = reclaim_request
        self._threshold = threshold
        self._handlers: dict[ChannelMethod, Callable[[], Any]] = {
            ChannelMethod.GET_PAGE_SIZE: self.get_page_size,
            ChannelMethod.OPTIMIZE_MEMORY: self.optimize_memory,
            ChannelMethod.IS_16KB_PAGE_SIZE_SUPPORTED: self.is_16kb_page_size_supported,
        }
        missing = set(ChannelMethod) - set(self._handlers)
        if missing:
            raise RuntimeError(f"no handler for channel methods: {sorted(missing)}")

    def get_page_size(self) -> int:
        return detect_page_size(self._describe, self._threshold)

    def is_16kb_page_size_supported(self) -> bool:
        return supports_16kb(self.get_page_size())

    def optimize_memory(self) -> bool:
        try:
            self._reclaim_request()
        except Exception as exc:
            logger.warning("memory optimization request failed: %s", exc)
        return True

    def handle(self, method: Any) -> ChannelResult:
        call = ChannelMethod.parse(method)
        if call is None:
            logger.info("method not implemented: %r", method)
            return ChannelResult.not_implemented()
        value = self._handlers[call]()
        logger.debug("%s -> %r", call.value, value)
        return ChannelResult.success(value)
