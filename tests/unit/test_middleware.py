"""Unit tests for middleware."""
import pytest
from unittest.mock import Mock

from app.middleware.logging import LoggingMiddleware


def _mock_request(headers=None, path="/api/v1/events"):
    request = Mock()
    request.state = Mock()
    request.method = "GET"
    request.url = Mock()
    request.url.path = path
    request.client = Mock()
    request.client.host = "127.0.0.1"
    request.query_params = {}
    request.headers = headers or {}
    return request


def _mock_response(status_code=200):
    response = Mock()
    response.headers = {}
    response.status_code = status_code
    return response


@pytest.mark.unit
class TestLoggingMiddleware:
    """Test logging middleware."""

    @pytest.mark.asyncio
    async def test_request_id_added_to_state_and_headers(self):
        request = _mock_request()
        response = _mock_response()

        async def call_next(req):
            # request_id must be available to handlers
            assert isinstance(req.state.request_id, str)
            return response

        middleware = LoggingMiddleware(Mock())
        result = await middleware.dispatch(request, call_next)

        assert result.headers["X-Request-ID"] == request.state.request_id
        assert len(request.state.request_id) > 0

    @pytest.mark.asyncio
    async def test_incoming_request_id_is_reused(self):
        request = _mock_request(headers={"X-Request-ID": "abc-123"})

        async def call_next(req):
            return _mock_response()

        middleware = LoggingMiddleware(Mock())
        result = await middleware.dispatch(request, call_next)

        assert result.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_unique_request_ids(self):
        middleware = LoggingMiddleware(Mock())
        ids = set()

        for _ in range(5):
            request = _mock_request()

            async def call_next(req):
                return _mock_response()

            await middleware.dispatch(request, call_next)
            ids.add(request.state.request_id)

        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_exception_is_reraised(self):
        request = _mock_request()

        async def call_next(req):
            raise RuntimeError("boom")

        middleware = LoggingMiddleware(Mock())

        with pytest.raises(RuntimeError, match="boom"):
            await middleware.dispatch(request, call_next)
