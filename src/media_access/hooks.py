"""
Access filter registry: the ordered decision chain consulted by the gate.

Collaborators register callables (or BaseAccessFilter objects) that receive
the current candidate path plus request context and return the path to
serve, a substitute path, or a falsy value to deny. Every filter runs on
every matching request and the last value wins, so a later filter can
re-grant what an earlier one denied.

Lifecycle: filters are added during startup composition (directly or from
config via load_filters), the registry is frozen before the app serves its
first request, and clear() tears it down.
"""

import importlib
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterable

from media_access.constants import DEFAULT_FILTER_PRIORITY

logger = logging.getLogger("media-access")

FilterResult = str | bool | None
FilterCallable = Callable[[str, str, int], FilterResult]


class BaseAccessFilter(ABC):
    """Abstract base for class-based access filters."""

    @abstractmethod
    def filter(self, candidate_path: str, relative_path: str, attachment_id: int) -> FilterResult:
        """Return the path to serve, a substitute path, or False to deny.

        Args:
            candidate_path: Absolute path produced by the previous filter
                (the resolved upload path for the first filter; may already
                be False/empty if an earlier filter denied).
            relative_path: Path relative to the upload root, as requested.
            attachment_id: Attachment id from the index, 0 when unknown.
        """
        ...


def _filter_name(callback) -> str:
    if isinstance(callback, BaseAccessFilter):
        return type(callback).__name__
    return getattr(callback, "__qualname__", None) or repr(callback)


class AccessFilterRegistry:
    """Ordered, freezable list of access filters."""

    def __init__(self) -> None:
        self._entries: list[tuple[int, int, object]] = []  # (priority, seq, callback)
        self._seq = 0
        self._frozen = False
        self._lock = threading.Lock()

    def add_filter(
        self,
        callback: FilterCallable | BaseAccessFilter,
        priority: int = DEFAULT_FILTER_PRIORITY,
    ) -> None:
        """Register a filter. Lower priority runs first; ties keep registration order."""
        if not (callable(callback) or isinstance(callback, BaseAccessFilter)):
            raise TypeError(f"Access filter must be callable, got {callback!r}")
        with self._lock:
            if self._frozen:
                raise RuntimeError("Access filter registry is frozen; register filters at startup")
            self._entries.append((priority, self._seq, callback))
            self._seq += 1
            self._entries.sort(key=lambda e: (e[0], e[1]))
        logger.debug("Registered access filter %s (priority %s)", _filter_name(callback), priority)

    def remove_filter(self, callback) -> bool:
        """Unregister a filter. Returns False if it was not registered."""
        with self._lock:
            if self._frozen:
                raise RuntimeError("Access filter registry is frozen")
            for i, entry in enumerate(self._entries):
                if entry[2] is callback:
                    del self._entries[i]
                    return True
        return False

    def freeze(self) -> None:
        """Make the chain immutable for request handling."""
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def clear(self) -> None:
        """Teardown: drop all filters and unfreeze."""
        with self._lock:
            self._entries = []
            self._frozen = False

    def filters(self) -> list:
        with self._lock:
            return [e[2] for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def apply(self, candidate: FilterResult, relative_path: str, attachment_id: int) -> FilterResult:
        """Run every filter in order, threading the candidate through.

        A filter that raises is logged and skipped: the candidate it received
        flows on to the next filter unchanged.
        """
        value = candidate
        for callback in self.filters():
            try:
                if isinstance(callback, BaseAccessFilter):
                    value = callback.filter(value, relative_path, attachment_id)
                else:
                    value = callback(value, relative_path, attachment_id)
            except Exception as e:
                logger.exception(
                    "Access filter %s failed for %s, keeping previous value: %s",
                    _filter_name(callback), relative_path, e,
                )
        return value


def import_filter(dotted_path: str):
    """Import "package.module:attr" (or "package.module.attr") and return the attribute.

    A class that subclasses BaseAccessFilter is instantiated with no arguments.
    """
    if ":" in dotted_path:
        module_name, _, attr = dotted_path.partition(":")
    else:
        module_name, _, attr = dotted_path.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"Invalid access filter path: {dotted_path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import access filter module {module_name!r}: {e}") from e
    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise ValueError(f"Module {module_name!r} has no attribute {attr!r}") from e
    if isinstance(target, type) and issubclass(target, BaseAccessFilter):
        target = target()
    return target


def load_filters(registry: AccessFilterRegistry, dotted_paths: Iterable[str]) -> int:
    """Register filters named in config, in order. Returns how many were added."""
    count = 0
    for dotted_path in dotted_paths:
        registry.add_filter(import_filter(dotted_path))
        logger.info("Loaded access filter %s", dotted_path)
        count += 1
    return count


# Process-wide registry for collaborators that register at import time.
access_filters = AccessFilterRegistry()


def add_access_filter(callback, priority: int = DEFAULT_FILTER_PRIORITY):
    """Register on the process-wide registry; usable as a decorator."""
    access_filters.add_filter(callback, priority)
    return callback
