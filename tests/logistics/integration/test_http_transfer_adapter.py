"""Integration tests for the HTTP inventory transfer adapter."""

import httpx
import pytest
from logistics.transfer.http_adapter import HttpTransferService


def _service(handler, **kwargs):
    return HttpTransferService(
        base_url="http://inventory.local",
        token="secret",
        backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestHttpTransferService:
    def test_successful_movement(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"transfer_id": "mv-77"})

        result = _service(handler).move_stock("60835", "24471", "SKU-A", 2)

        assert result["transfer_id"] == "mv-77"
        assert "error" not in result
        assert seen[0].url.path == "/inventory/movement"
        assert seen[0].headers["Authorization"] == "Bearer secret"

    def test_connection_errors_are_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"transfer_id": "mv-1"})

        result = _service(handler).move_stock("60835", "24471", "SKU-A", 1)
        assert len(attempts) == 3
        assert result["transfer_id"] == "mv-1"

    def test_gives_up_after_max_attempts(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        result = _service(handler, max_attempts=2).move_stock("60835", "24471", "SKU-A", 1)
        assert len(attempts) == 2
        assert result["error"].startswith("Inventory service unreachable")

    def test_server_errors_are_not_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(500, text="boom")

        result = _service(handler).move_stock("60835", "24471", "SKU-A", 1)
        assert len(attempts) == 1
        assert result["error"] == "Inventory service returned HTTP 500"

    def test_rejection_message_is_reported(self):
        def handler(request):
            return httpx.Response(422, json={"error": "Sin stock en 60835"})

        assert _service(handler).move_stock("60835", "24471", "SKU-A", 1)["error"] == "Sin stock en 60835"

    @pytest.mark.parametrize("exc", [httpx.ReadTimeout, httpx.WriteTimeout])
    def test_timeouts(self, exc):
        def handler(request):
            raise exc("too slow", request=request)

        result = _service(handler).move_stock("60835", "24471", "SKU-A", 1)
        assert result["error"] == "Inventory service timed out"
