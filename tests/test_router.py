import pytest

from uwscore.router import HttpRouter, RoutingError


def recorder(log, name, result=True):
    def handler(router):
        log.append((name, router.parameters()))
        return result

    return handler


def test_static_route_matches_only_its_method_and_path():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/hello", recorder(log, "hello"))
    assert router.route("GET", "/hello") is True
    assert router.route("GET", "/other") is False
    assert router.route("POST", "/hello") is False
    assert log == [("hello", ())]


def test_parameter_is_captured():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/user/:id", recorder(log, "user"))
    assert router.route("GET", "/user/42") is True
    assert log == [("user", ("42",))]
    assert router.parameters() == ("42",)


def test_parameter_requires_non_empty_segment():
    router = HttpRouter()
    router.add(["GET"], "/user/:id", recorder([], "user"))
    assert router.route("GET", "/user/") is False


def test_wildcard_matches_deeper_paths():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/files/*", recorder(log, "files"))
    assert router.route("GET", "/files/a/b/c") is True
    assert log[0][0] == "files"


def test_root_route():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/", recorder(log, "root"))
    assert router.route("GET", "/") is True
    assert router.route("GET", "/x") is False
    assert [name for name, _ in log] == ["root"]


def test_static_is_tried_before_parameter_and_yield_falls_through():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/user/:id", recorder(log, "param"))
    router.add(["GET"], "/user/me", recorder(log, "static", result=False))
    assert router.route("GET", "/user/me") is True
    assert log == [("static", ()), ("param", ("me",))]


def test_parameter_is_tried_before_wildcard():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/a/*", recorder(log, "wild"))
    router.add(["GET"], "/a/:x", recorder(log, "param", result=False))
    assert router.route("GET", "/a/b") is True
    assert [name for name, _ in log] == ["param", "wild"]


def test_medium_priority_runs_before_low_on_same_pattern():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/x", recorder(log, "low"), HttpRouter.LOW_PRIORITY)
    router.add(["GET"], "/x", recorder(log, "medium"), HttpRouter.MEDIUM_PRIORITY)
    assert router.route("GET", "/x") is True
    assert [name for name, _ in log] == ["medium"]


def test_high_priority_runs_first():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/x", recorder(log, "medium", result=False))
    router.add(["GET"], "/x", recorder(log, "high", result=False), HttpRouter.HIGH_PRIORITY)
    assert router.route("GET", "/x") is False
    assert [name for name, _ in log] == ["high", "medium"]


def test_handler_sees_user_data():
    router = HttpRouter(user_data={"hits": 0})

    def handler(r):
        r.user_data["hits"] += 1
        return True

    router.add(["GET"], "/count", handler)
    router.route("GET", "/count")
    router.route("GET", "/count")
    assert router.user_data["hits"] == 2


def test_remove_route_and_shift_remaining_handlers():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/a", recorder(log, "a"))
    router.add(["GET"], "/b", recorder(log, "b"))
    assert router.remove("GET", "/a") is True
    assert router.route("GET", "/a") is False
    assert router.route("GET", "/b") is True
    assert [name for name, _ in log] == ["b"]
    assert router.remove("GET", "/a") is False


def test_removing_one_method_removes_all_methods_of_handler():
    router = HttpRouter()
    router.add(["GET", "POST"], "/m", recorder([], "m"))
    assert router.route("POST", "/m") is True
    assert router.remove("POST", "/m") is True
    assert router.route("GET", "/m") is False
    assert router.route("POST", "/m") is False


def test_remove_requires_matching_priority():
    router = HttpRouter()
    router.add(["GET"], "/p", recorder([], "p"), HttpRouter.LOW_PRIORITY)
    assert router.remove("GET", "/p", HttpRouter.MEDIUM_PRIORITY) is False
    assert router.route("GET", "/p") is True
    assert router.remove("GET", "/p", HttpRouter.LOW_PRIORITY) is True
    assert router.route("GET", "/p") is False


def test_duplicate_route_raises_and_keeps_original():
    log = []
    router = HttpRouter()
    router.add(["GET"], "/dup", recorder(log, "first"))
    with pytest.raises(RoutingError):
        router.add(["GET"], "/dup", recorder(log, "second"))
    assert router.route("GET", "/dup") is True
    assert [name for name, _ in log] == ["first"]
    router.add(["GET"], "/other", recorder(log, "other"))
    assert router.route("GET", "/other") is True
    assert log[-1][0] == "other"


def test_empty_methods_raise():
    router = HttpRouter()
    with pytest.raises(RoutingError):
        router.add([], "/x", recorder([], "x"))
    assert router.route("GET", "/x") is False


def test_parameters_reset_between_routes():
    router = HttpRouter()
    router.add(["GET"], "/u/:id", recorder([], "u"))
    router.add(["GET"], "/static", recorder([], "s"))
    router.route("GET", "/u/7")
    assert router.parameters() == ("7",)
    router.route("GET", "/static")
    assert router.parameters() == ()