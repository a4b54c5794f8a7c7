"""
Tests for the Supabase key-value backend.

Requests go through httpx.MockTransport, so these tests check the PostgREST
requests that are sent and how each response is classified.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from adapters.supabase.backend import SupabaseBackend, classify_response, escape_like
from carestore.config import StoreConfig
from carestore.domain.errors import StoreError, StoreErrorKind, StoreUnavailable
from carestore.services.status import StatusProbe
from carestore.services.store import KeyValueStore

Handler = Callable[[httpx.Request], httpx.Response]


def make_backend(handler: Handler, requests: list[httpx.Request] | None = None) -> SupabaseBackend:
    def record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    config = StoreConfig(
        backend="supabase", url="https://demo.supabase.co", api_key="service-key"
    )
    return SupabaseBackend.from_config(config, transport=httpx.MockTransport(record))


class TestRequests:
    async def test_get_returns_value_of_first_row(self) -> None:
        requests: list[httpx.Request] = []
        backend = make_backend(
            lambda r: httpx.Response(200, json=[{"value": {"id": "1"}}]), requests
        )

        assert await backend.get("user_1") == {"id": "1"}

        request = requests[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/kv_store"
        assert request.url.params["key"] == "eq.user_1"
        assert request.url.params["select"] == "value"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"

    async def test_get_absent_key(self) -> None:
        backend = make_backend(lambda r: httpx.Response(200, json=[]))
        assert await backend.get("user_missing") is None

    async def test_set_is_an_upsert(self) -> None:
        requests: list[httpx.Request] = []
        backend = make_backend(lambda r: httpx.Response(201), requests)

        await backend.set("patient_1", {"id": "1", "age": 45})

        request = requests[0]
        assert request.method == "POST"
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        assert json.loads(request.content) == {"key": "patient_1", "value": {"id": "1", "age": 45}}

    async def test_scan_escapes_like_wildcards(self) -> None:
        requests: list[httpx.Request] = []
        backend = make_backend(
            lambda r: httpx.Response(200, json=[{"value": {"id": "1"}}, {"value": {"id": "2"}}]),
            requests,
        )

        values = await backend.scan_by_prefix("therapy_session_")

        assert values == [{"id": "1"}, {"id": "2"}]
        assert requests[0].url.params["key"] == "like.therapy\\_session\\_*"

    async def test_scan_reads_every_page(self) -> None:
        rows = [{"value": {"id": str(n)}} for n in range(5)]
        requests: list[httpx.Request] = []

        def page(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            offset = int(request.url.params["offset"])
            limit = int(request.url.params["limit"])
            return httpx.Response(200, json=rows[offset : offset + limit])

        backend = SupabaseBackend(
            url="https://demo.supabase.co",
            api_key="service-key",
            transport=httpx.MockTransport(page),
            scan_page_size=2,
        )

        values = await backend.scan_by_prefix("progress_")

        assert [v["id"] for v in values] == ["0", "1", "2", "3", "4"]
        assert [r.url.params["offset"] for r in requests] == ["0", "2", "4"]
        assert all(r.url.params["order"] == "key" for r in requests)

    async def test_scan_stops_after_a_full_final_page(self) -> None:
        requests: list[httpx.Request] = []

        def page(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.params["offset"] == "0":
                return httpx.Response(200, json=[{"value": 1}, {"value": 2}])
            return httpx.Response(200, json=[])

        backend = SupabaseBackend(
            url="https://demo.supabase.co",
            api_key="service-key",
            transport=httpx.MockTransport(page),
            scan_page_size=2,
        )

        assert await backend.scan_by_prefix("user_") == [1, 2]
        assert len(requests) == 2

    async def test_delete(self) -> None:
        requests: list[httpx.Request] = []
        backend = make_backend(lambda r: httpx.Response(204), requests)

        await backend.delete("doctor_3")

        assert requests[0].method == "DELETE"
        assert requests[0].url.params["key"] == "eq.doctor_3"


def test_escape_like() -> None:
    assert escape_like("user_") == "user\\_"
    assert escape_like("100%") == "100\\%"


class TestErrorClassification:
    @pytest.mark.parametrize(
        ("response", "kind"),
        [
            (httpx.Response(503, text="upstream down"), StoreErrorKind.UNAVAILABLE),
            (httpx.Response(404, json={"message": "not found"}), StoreErrorKind.TABLE_MISSING),
            (
                httpx.Response(400, json={"code": "PGRST205", "message": "no table"}),
                StoreErrorKind.TABLE_MISSING,
            ),
            (
                httpx.Response(400, json={"code": "42P01", "message": "relation missing"}),
                StoreErrorKind.TABLE_MISSING,
            ),
            (httpx.Response(401, json={"message": "bad key"}), StoreErrorKind.PERMISSION_DENIED),
            (
                httpx.Response(400, json={"code": "42501", "message": "denied"}),
                StoreErrorKind.PERMISSION_DENIED,
            ),
            (httpx.Response(422, json={"message": "bad json"}), StoreErrorKind.REJECTED),
        ],
    )
    def test_classify_response(self, response: httpx.Response, kind: StoreErrorKind) -> None:
        assert classify_response(response).kind == kind

    async def test_http_error_raises_classified_store_error(self) -> None:
        backend = make_backend(
            lambda r: httpx.Response(404, json={"code": "PGRST205", "message": "no table"})
        )
        with pytest.raises(StoreError) as excinfo:
            await backend.get("therapy_types")
        assert excinfo.value.kind == StoreErrorKind.TABLE_MISSING
        assert "PGRST205" in str(excinfo.value)

    async def test_transport_error_is_unavailable(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = make_backend(refuse)
        with pytest.raises(StoreUnavailable) as excinfo:
            await backend.scan_by_prefix("user_")
        assert isinstance(excinfo.value.original_error, httpx.ConnectError)

    async def test_timeout_is_unavailable(self) -> None:
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        backend = make_backend(stall)
        with pytest.raises(StoreUnavailable):
            await backend.set("user_1", {})


class TestStatusProbeOverHttp:
    async def test_missing_table_reported_as_reachable(self) -> None:
        backend = make_backend(
            lambda r: httpx.Response(404, json={"code": "PGRST205", "message": "no table"})
        )
        status = await StatusProbe(KeyValueStore(backend)).test_connection()
        await backend.aclose()

        assert status.reachable
        assert not status.table_present

    async def test_unreachable_host(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = make_backend(refuse)
        status = await StatusProbe(KeyValueStore(backend)).test_connection()
        await backend.aclose()

        assert not status.reachable


def test_from_config_requires_credentials() -> None:
    with pytest.raises(ValueError):
        SupabaseBackend.from_config(StoreConfig())
