# uwscore

Building blocks of an event-driven HTTP and WebSocket server, in pure
Python with no dependencies:

- `uwscore.router.HttpRouter` – a tree router with static segments,
  `:parameter` segments, `*` wildcards, handler priorities and route
  removal.
- `uwscore.message_parser.parse_headers` – a parser for header blocks
  ending in an empty line; header names are lower-cased.
- `uwscore.topictree.TopicTree` – topic-based publish/subscribe that
  batches published messages per subscriber and delivers them through a
  drain callback.
- `uwscore.response_data.HttpResponseData` – the state bits
  (`ResponseState`) and event handlers of one in-flight response.
- `uwscore.loop_data.LoopData` and `format_http_date` – per-loop state,
  including the cached value of the HTTP `Date` header.
- `uwscore.compat` – `WebSocketBehavior` settings with `validate()`,
  `SocketContextOptions`, `CompressOptions` and `has_broken_compression`,
  which recognises Safari 15.0–15.3 user agents.
- `uwscore.app.App` – registers HTTP routes and WebSocket upgrade routes,
  dispatches requests to them and publishes to the app-wide topic tree.

## Install

```
pip install .
```

## Routing

```python
from uwscore.router import HttpRouter

router = HttpRouter()

def show_user(r):
    print("user", r.parameters())
    return True  # handled; returning False lets the next match run

router.add(["GET"], "/users/:id", show_user)
router.route("GET", "/users/42")   # True, prints ('42',)
router.route("GET", "/nothing")    # False
router.remove("GET", "/users/:id") # True
```

`add` takes an optional priority: `HttpRouter.HIGH_PRIORITY`,
`MEDIUM_PRIORITY` (the default) or `LOW_PRIORITY`. Within a level,
static segments are tried before `:parameters`, and those before `*`.
`add` raises `RoutingError` when called without any method.

## Parsing headers

```python
from uwscore.message_parser import parse_headers

consumed, headers = parse_headers(b"Host: example.com\r\nAccept: */*\r\n\r\n")
# consumed == 38
# headers == [(b"host", b"example.com"), (b"accept", b"*/*")]
```

At most 10 headers are read. An incomplete block, a line not ended by
CRLF, or more than 10 headers raises `HeaderParseError` (a `ValueError`).

## Publish / subscribe

```python
from uwscore.topictree import TopicTree

def deliver(subscriber, message, flags):
    print(subscriber.user, message, flags)
    return False  # True would stop the rest of this subscriber's batch

tree = TopicTree(deliver)
alice = tree.create_subscriber("alice")
tree.subscribe(alice, "news")
tree.publish(None, "news", "hello")   # True: queued for alice
tree.drain_all()                      # prints: alice hello IteratorFlags.LAST|FIRST
```

`publish_big` hands a message straight to a callback for each subscriber
instead of queuing it. `unsubscribe` returns `(ok, holds_no_topics,
new_count)`. Changing the topics of `tree.iterating_subscriber` raises
`TopicTreeError`.

## Application

```python
from uwscore.app import App
from uwscore.compat import WebSocketBehavior

app = App()

def hello(res, req):
    res.write_status("200 OK").write_header("Content-Type", "text/plain")
    res.end("hello " + req.get_parameter(0))

app.get("/hello/:name", hello)
response = app.dispatch("GET", "/hello/world?x=1")
# response.status == "200 OK", bytes(response.body) == b"hello world"

app.ws("/chat", WebSocketBehavior(idle_timeout=60))
```

Handlers receive a response with `write_status`, `write_header`, `write`,
`end` and `upgrade`, and a request with `method`, `url`, `full_url`,
`query`, `headers`, `get_header` and `get_parameter`. Setting
`req.yielded = True` passes the request on to the next matching route.
`dispatch` returns `None` when no route handled the request. Passing
`None` as a handler removes the route. `ws` raises `BehaviorError` for an
`idle_timeout` between 1 and 7 or above 960, or a `max_lifetime` above 240.

`App.publish` delivers through the topic tree created by the first `ws`
call; subscribers' `user` objects must have a
`send(message, opcode, compress)` method returning a true value on
success. `App.num_subscribers` counts a topic's subscribers.

## Dates

```python
from uwscore.loop_data import format_http_date
format_http_date(0)  # "Thu, 01 Jan 1970 00:00:00 GMT"
```

## What this package does not do

It opens no sockets and runs no event loop: there is no listening, no
TLS, no HTTP wire parsing beyond header blocks and no WebSocket framing.
Requests are fed to `App.dispatch` by the caller, and published messages
are delivered only when the caller drains the topic tree.

## Running the tests

```
pip install .[test]
pytest
```