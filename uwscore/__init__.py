"""URL routing, header parsing, pub/sub topic tree and app wiring for an HTTP and WebSocket server."""

__version__ = "0.1.0"