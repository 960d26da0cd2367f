"""A URL router matching methods and path segments against a tree of routes."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

MAX_URL_SEGMENTS = 100
HANDLER_MASK = 0x0FFFFFFF
PRIORITY_MASK = 0xF0000000
NOT_FOUND = 0xFFFFFFFF


class RoutingError(RuntimeError):
    """Raised when a route cannot be registered consistently."""


@dataclass(eq=False)
class _Node:
    name: str
    is_high_priority: bool = False
    children: list[_Node] = field(default_factory=list)
    handlers: list[int] = field(default_factory=list)


def _url_segments(url: str) -> list[str]:
    """Split a URL into segments, each preceded by one skipped character."""
    segments: list[str] = []
    rest = url
    while rest and len(segments) < MAX_URL_SEGMENTS:
        rest = rest[1:]
        slash = rest.find("/")
        if slash < 0:
            slash = len(rest)
        segments.append(rest[:slash])
        rest = rest[slash:]
    return segments


def _lexical_order(name: str) -> int:
    if name.startswith(":"):
        return 1
    if name.startswith("*"):
        return 0
    return 2


Handler = Callable[["HttpRouter"], bool]


class HttpRouter:
    """Routes (method, url) pairs to handlers in priority and specificity order.

    A handler receives the router and returns True when it handled the
    request; returning False lets routing continue to the next match.
    """

    UPPER_CASED_METHODS = ("GET", "POST", "HEAD", "PUT", "DELETE", "CONNECT", "OPTIONS", "TRACE", "PATCH")
    HIGH_PRIORITY = 0xD0000000
    MEDIUM_PRIORITY = 0xE0000000
    LOW_PRIORITY = 0xF0000000

    def __init__(self, user_data: Any = None) -> None:
        self.user_data = user_data
        self._handlers: list[Handler] = []
        self._root = _Node("rootNode")
        self._params: list[str] = []

    def parameters(self) -> tuple[str, ...]:
        """Values captured by ``:name`` segments during the latest route."""
        return tuple(self._params)

    def route(self, method: str, url: str) -> bool:
        """Run matching handlers until one returns True; report whether any did."""
        self._params = []
        segments = _url_segments(url)
        for node in self._root.children:
            if node.name == method:
                return self._execute(node, segments, 0)
        return False

    def add(
        self,
        methods: Iterable[str],
        pattern: str,
        handler: Handler,
        priority: int = MEDIUM_PRIORITY,
    ) -> None:
        """Register ``handler`` for ``pattern`` under every method in ``methods``."""
        methods = list(methods)
        if not methods:
            raise RoutingError("at least one method is required")

        handler_id = priority | len(self._handlers)
        high = priority == self.HIGH_PRIORITY
        for method in methods:
            node = self._get_node(self._root, method, False)
            for segment in _url_segments(pattern):
                node = self._get_node(node, segment, high)
            bisect.insort_right(node.handlers, handler_id)

        self._handlers.append(handler)

        if self._find_handler(methods[0], pattern, priority) != handler_id:
            self._cull_node(None, self._root, handler_id)
            self._handlers.pop()
            raise RoutingError(f"internal routing error adding {pattern!r}")

    def remove(self, method: str, pattern: str, priority: int = MEDIUM_PRIORITY) -> bool:
        """Remove every route sharing the handler found by these parameters.

        Returns False when no such handler exists.
        """
        handler_id = self._find_handler(method, pattern, priority)
        if handler_id == NOT_FOUND:
            return False
        self._cull_node(None, self._root, handler_id)
        del self._handlers[handler_id & HANDLER_MASK]
        return True

    def _run(self, handler_ids: list[int]) -> bool:
        return any(self._handlers[h & HANDLER_MASK](self) for h in tuple(handler_ids))

    def _execute(self, parent: _Node, segments: list[str], index: int) -> bool:
        if index >= len(segments):
            return self._run(parent.handlers)

        segment = segments[index]
        for child in tuple(parent.children):
            if child.name.startswith("*"):
                if self._run(child.handlers):
                    return True
            elif child.name.startswith(":") and segment:
                self._params.append(segment)
                if self._execute(child, segments, index + 1):
                    return True
                self._params.pop()
            elif child.name == segment:
                if self._execute(child, segments, index + 1):
                    return True
        return False

    def _goes_before(self, parent: _Node, new: _Node, existing: _Node) -> bool:
        if new.is_high_priority != existing.is_high_priority:
            return new.is_high_priority
        return (
            bool(existing.name)
            and parent is not self._root
            and _lexical_order(existing.name) < _lexical_order(new.name)
        )

    def _get_node(self, parent: _Node, name: str, high: bool) -> _Node:
        for node in parent.children:
            if node.name == name and node.is_high_priority == high:
                return node
        new = _Node(name, high)
        index = next(
            (i for i, existing in enumerate(parent.children) if self._goes_before(parent, new, existing)),
            len(parent.children),
        )
        parent.children.insert(index, new)
        return new

    def _find_handler(self, method: str, pattern: str, priority: int) -> int:
        node = next((n for n in self._root.children if n.name == method), None)
        if node is None:
            return NOT_FOUND
        high = priority == self.HIGH_PRIORITY
        for segment in _url_segments(pattern):
            node = next(
                (c for c in node.children if c.name == segment and c.is_high_priority == high),
                None,
            )
            if node is None:
                return NOT_FOUND
        return next((h for h in node.handlers if (h & PRIORITY_MASK) == priority), NOT_FOUND)

    def _cull_node(self, parent: _Node | None, node: _Node, handler_id: int) -> bool:
        i = 0
        while i < len(node.children):
            if not self._cull_node(node, node.children[i], handler_id):
                i += 1

        if parent is None:
            return False

        removed_index = handler_id & HANDLER_MASK
        kept: list[int] = []
        for h in node.handlers:
            if (h & HANDLER_MASK) > removed_index:
                kept.append(((h & HANDLER_MASK) - 1) | (h & PRIORITY_MASK))
            elif h != handler_id:
                kept.append(h)
        node.handlers = kept

        if not node.handlers and not node.children:
            parent.children.remove(node)
            return True
        return False