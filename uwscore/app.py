"""An application: HTTP routes, WebSocket routes and app-wide pub/sub."""

from __future__ import annotations

import zlib
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union
from urllib.parse import parse_qs

from .compat import SocketContextOptions, WebSocketBehavior, has_broken_compression
from .loop_data import LoopData
from .router import HttpRouter
from .topictree import IteratorFlags, Subscriber, TopicTree

Data = Union[str, bytes, bytearray, memoryview]

WEBSOCKET_KEY_LENGTH = 24


def _to_bytes(data: Data) -> bytes:
    if isinstance(data, str):
        return data.encode()
    return bytes(data)


@dataclass
class _Request:
    """The request a route handler sees."""

    method: str
    full_url: str
    headers: dict[str, str] = field(default_factory=dict)
    parameters: tuple[str, ...] = ()
    yielded: bool = False

    @property
    def url(self) -> str:
        """The path, without the query string."""
        return self.full_url.split("?", 1)[0]

    @property
    def query(self) -> dict[str, list[str]]:
        """The decoded query string."""
        _, _, raw = self.full_url.partition("?")
        return parse_qs(raw, keep_blank_values=True)

    def get_header(self, name: str) -> str:
        """The header's value, or an empty string when it is absent."""
        return self.headers.get(name.lower(), "")

    def get_parameter(self, index: int) -> str:
        """The ``index``-th captured route parameter, or an empty string."""
        if 0 <= index < len(self.parameters):
            return self.parameters[index]
        return ""


@dataclass
class _Upgrade:
    user_data: Any
    sec_websocket_key: str
    sec_websocket_protocol: str
    sec_websocket_extensions: str
    context: Any


@dataclass
class _Response:
    """What a route handler produced."""

    status: str = "200 OK"
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytearray = field(default_factory=bytearray)
    ended: bool = False
    upgraded: Optional[_Upgrade] = None

    def write_status(self, status: str) -> _Response:
        self.status = status
        return self

    def write_header(self, key: str, value: Any) -> _Response:
        self.headers.append((key, str(value)))
        return self

    def write(self, data: Data) -> bool:
        self.body += _to_bytes(data)
        return True

    def end(self, data: Data = b"") -> None:
        self.write(data)
        self.ended = True

    def upgrade(
        self,
        user_data: Any,
        sec_websocket_key: str,
        sec_websocket_protocol: str,
        sec_websocket_extensions: str,
        context: Any,
    ) -> None:
        self.upgraded = _Upgrade(
            user_data, sec_websocket_key, sec_websocket_protocol, sec_websocket_extensions, context
        )
        self.ended = True


@dataclass(frozen=True)
class _TopicMessage:
    message: Data
    opcode: int
    compress: bool = False


@dataclass(eq=False)
class _WebSocketContext:
    pattern: str
    behavior: WebSocketBehavior
    topic_tree: TopicTree


def _send_batched(subscriber: Subscriber, message: _TopicMessage, flags: IteratorFlags) -> bool:
    # A falsy send result means the message was dropped: stop this batch.
    return not subscriber.user.send(message.message, message.opcode, message.compress)


def _send_big(subscriber: Subscriber, message: _TopicMessage) -> None:
    subscriber.user.send(message.message, message.opcode, message.compress)


RouteHandler = Callable[[_Response, _Request], Any]


class App:
    """Routes requests to handlers and owns the app-wide topic tree.

    Subscribers of the topic tree carry a socket-like ``user`` with a
    ``send(message, opcode, compress)`` method returning True on success.
    """

    def __init__(self, options: Optional[SocketContextOptions] = None) -> None:
        self.options = options or SocketContextOptions()
        self.loop_data = LoopData()
        self.topic_tree: Optional[TopicTree] = None
        self.websocket_contexts: list[_WebSocketContext] = []
        self._router = HttpRouter()
        self._current: Optional[tuple[_Request, _Response]] = None

    def _wrap(self, handler: RouteHandler) -> Callable[[HttpRouter], bool]:
        def run(router: HttpRouter) -> bool:
            assert self._current is not None
            request, response = self._current
            request.parameters = router.parameters()
            request.yielded = False
            handler(response, request)
            return not request.yielded

        return run

    def _on_http(
        self, method: str, pattern: str, handler: Optional[RouteHandler], upgrade: bool = False
    ) -> App:
        if method == "*":
            methods = list(HttpRouter.UPPER_CASED_METHODS)
            priority = HttpRouter.LOW_PRIORITY
        else:
            methods = [method]
            priority = HttpRouter.HIGH_PRIORITY if upgrade else HttpRouter.MEDIUM_PRIORITY
        if handler is None:
            self._router.remove(methods[0], pattern, priority)
        else:
            self._router.add(methods, pattern, self._wrap(handler), priority)
        return self

    def get(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("GET", pattern, handler)

    def post(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("POST", pattern, handler)

    def options(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("OPTIONS", pattern, handler)

    def delete(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("DELETE", pattern, handler)

    def patch(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("PATCH", pattern, handler)

    def put(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("PUT", pattern, handler)

    def head(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("HEAD", pattern, handler)

    def connect(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("CONNECT", pattern, handler)

    def trace(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        return self._on_http("TRACE", pattern, handler)

    def any(self, pattern: str, handler: Optional[RouteHandler]) -> App:
        """Register ``handler`` for every method, below all method-specific routes."""
        return self._on_http("*", pattern, handler)

    def _ensure_topic_tree(self) -> TopicTree:
        if self.topic_tree is None:
            tree: TopicTree = TopicTree(_send_batched)
            self.topic_tree = tree
            self.loop_data.post_handlers[tree] = lambda loop: tree.drain_all()
            self.loop_data.pre_handlers[tree] = lambda loop: tree.drain_all()
        return self.topic_tree

    def ws(self, pattern: str, behavior: WebSocketBehavior) -> App:
        """Serve WebSocket upgrades on ``pattern`` with ``behavior``.

        Raises BehaviorError for timeouts out of range.
        """
        behavior.validate()
        tree = self._ensure_topic_tree()
        context = _WebSocketContext(pattern, behavior, tree)
        self.websocket_contexts.append(context)

        if behavior.compression and self.loop_data.zlib_context is None:
            self.loop_data.zlib_context = zlib
            self.loop_data.inflation_stream = zlib.decompressobj(-zlib.MAX_WBITS)
            self.loop_data.deflation_stream = zlib.compressobj(wbits=-zlib.MAX_WBITS)

        def upgrade_handler(response: _Response, request: _Request) -> None:
            key = request.get_header("sec-websocket-key")
            if len(key) != WEBSOCKET_KEY_LENGTH:
                request.yielded = True
                return
            broken = has_broken_compression(request.get_header("user-agent"))
            if behavior.upgrade is not None:
                if broken and "sec-websocket-extensions" in request.headers:
                    extensions = request.headers["sec-websocket-extensions"]
                    request.headers["sec-websocket-extensions"] = " " * len(extensions)
                behavior.upgrade(response, request, context)
            else:
                protocol = request.get_header("sec-websocket-protocol")
                extensions = "" if broken else request.get_header("sec-websocket-extensions")
                response.upgrade(None, key, protocol, extensions, context)

        return self._on_http("GET", pattern, upgrade_handler, upgrade=True)

    def _serve(self, method: str, url: str, headers: Mapping[str, str]) -> Optional[_Response]:
        request = _Request(method, url, {k.lower(): v for k, v in headers.items()})
        response = _Response()
        previous = self._current
        self._current = (request, response)
        try:
            handled = self._router.route(method, request.url)
        finally:
            self._current = previous
        return response if handled else None

    def dispatch(self, method: str, url: str) -> Optional[_Response]:
        """Route a request; return the response, or None when nothing handled it."""
        return self._serve(method, url, {})

    def publish(self, topic: str, message: Data, opcode: int, compress: bool = False) -> bool:
        """Publish to every subscriber of ``topic``; False when nobody wants it."""
        if self.topic_tree is None:
            return False
        payload = _TopicMessage(message, opcode, compress)
        if len(message) >= LoopData.CORK_BUFFER_SIZE:
            return self.topic_tree.publish_big(None, topic, payload, _send_big)
        return self.topic_tree.publish(None, topic, payload)

    def num_subscribers(self, topic: str) -> int:
        """Number of subscribers of ``topic``, or 0."""
        if self.topic_tree is None:
            return 0
        found = self.topic_tree.lookup_topic(topic)
        return len(found) if found is not None else 0