"""
Unit tests for the method/path router.
"""

import io
import json

import pytest

from routedhttp.http.router import Router, RouteTarget, select_target
from routedhttp.http.request import (
    HTTPRequest,
    MalformedPathError,
    Method,
    Resource,
    Version,
    parse_request,
)


def make_request(method: Method, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, version=Version.V1_1, resource=Resource(path))


def make_router(handlers: dict) -> Router:
    return Router(
        web_service=handlers["web_service"],
        static_page=handlers["static_page"],
        not_found=handlers["not_found"],
    )


class FailingSink:
    """A sink that refuses every write."""

    def __init__(self):
        self.attempts = 0

    def write(self, data: bytes):
        self.attempts += 1
        raise ConnectionResetError("reset by peer")


class TestSelectTarget:
    """Tests for the pure dispatch decision."""

    @pytest.mark.parametrize("path", ["/api/users", "/api", "/api/", "/api/shipping/orders"])
    def test_api_paths_go_to_web_service(self, path: str):
        assert select_target(make_request(Method.GET, path)) is RouteTarget.WEB_SERVICE

    @pytest.mark.parametrize("path", ["/", "/about", "/apis", "/API/users", "//api", "/docs/api"])
    def test_other_paths_go_to_static_page(self, path: str):
        assert select_target(make_request(Method.GET, path)) is RouteTarget.STATIC_PAGE

    @pytest.mark.parametrize("method", [Method.POST, Method.UNKNOWN])
    @pytest.mark.parametrize("path", ["/api/users", "/", "", "*"])
    def test_non_get_goes_to_not_found(self, method: Method, path: str):
        """Method is checked before the path, so even malformed paths land here."""
        assert select_target(make_request(method, path)) is RouteTarget.NOT_FOUND

    @pytest.mark.parametrize("path", ["", "*", "index.html"])
    def test_path_without_slash_is_malformed(self, path: str):
        with pytest.raises(MalformedPathError) as exc_info:
            select_target(make_request(Method.GET, path))

        assert exc_info.value.status_code == 400

    def test_select_is_pure(self):
        request = make_request(Method.GET, "/api/users")

        assert select_target(request) is select_target(request)


class TestRouter:
    """Tests for Router dispatch and response writing."""

    def test_web_service_scenario(self, recording_handlers: dict):
        router = make_router(recording_handlers)
        request = make_request(Method.GET, "/api/users")

        response = router.dispatch(request)

        assert response.body == b"web_service"
        assert recording_handlers["web_service"].calls == [request]
        assert recording_handlers["static_page"].calls == []
        assert recording_handlers["not_found"].calls == []

    def test_static_page_scenario(self, recording_handlers: dict):
        router = make_router(recording_handlers)

        assert router.dispatch(make_request(Method.GET, "/")).body == b"static_page"
        assert router.dispatch(make_request(Method.GET, "/about")).body == b"static_page"
        assert len(recording_handlers["static_page"].calls) == 2

    def test_post_scenario(self, recording_handlers: dict):
        router = make_router(recording_handlers)

        response = router.dispatch(make_request(Method.POST, "/api/users"))

        assert response.body == b"not_found"
        assert recording_handlers["web_service"].calls == []

    def test_unknown_method_scenario(self, recording_handlers: dict):
        router = make_router(recording_handlers)

        assert router.dispatch(make_request(Method.UNKNOWN, "/anything")).body == b"not_found"

    def test_handler_for(self, recording_handlers: dict):
        router = make_router(recording_handlers)

        assert router.handler_for(RouteTarget.STATIC_PAGE) is recording_handlers["static_page"]

    def test_route_writes_one_response(self, recording_handlers: dict, sample_get_request: str):
        router = make_router(recording_handlers)
        sink = io.BytesIO()

        router.route(parse_request(sample_get_request), sink)

        output = sink.getvalue()
        assert output.startswith(b"HTTP/1.1 200 OK\r\n")
        assert output.count(b"HTTP/1.1 ") == 1
        assert output.endswith(b"\r\n\r\nweb_service")

    def test_route_uses_server_name(self, recording_handlers: dict):
        router = Router(
            recording_handlers["web_service"],
            recording_handlers["static_page"],
            recording_handlers["not_found"],
            server_name="unit/0.1",
        )
        sink = io.BytesIO()

        router.route(make_request(Method.GET, "/"), sink)

        assert b"Server: unit/0.1\r\n" in sink.getvalue()

    def test_route_malformed_path_answers_400(self, recording_handlers: dict):
        router = make_router(recording_handlers)
        sink = io.BytesIO()

        router.route(make_request(Method.GET, ""), sink)

        head, _, body = sink.getvalue().partition(b"\r\n\r\n")
        assert head.startswith(b"HTTP/1.1 400 Bad Request")
        assert "Malformed path" in json.loads(body)["error"]
        assert all(not h.calls for h in recording_handlers.values())

    def test_route_ignores_sink_failure(self, recording_handlers: dict):
        router = make_router(recording_handlers)
        sink = FailingSink()

        router.route(make_request(Method.GET, "/about"), sink)

        assert sink.attempts == 1
        assert len(recording_handlers["static_page"].calls) == 1

    def test_route_ignores_closed_sink(self, recording_handlers: dict):
        """A closed file-like sink raises ValueError, which is swallowed too."""
        router = make_router(recording_handlers)
        sink = io.BytesIO()
        sink.close()

        router.route(make_request(Method.GET, "/about"), sink)

        assert len(recording_handlers["static_page"].calls) == 1

    def test_router_is_reusable(self, recording_handlers: dict):
        router = make_router(recording_handlers)

        for _ in range(3):
            router.route(make_request(Method.GET, "/api/x"), io.BytesIO())

        assert len(recording_handlers["web_service"].calls) == 3
