from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from autocompleted.main import create_app
from autocompleted.services.autocomplete_service import AutocompleteService
from autocompleted.services.errors import BadInput, ServerError
from autocompleted.services.result_cache import MemoryResultCache
from autocompleted.services.tag_store import TagStore

PARAM = "search[name_matches]"


def make_client(service, **kwargs):
    return TestClient(create_app(service=service), **kwargs)


def test_success_response_is_publicly_cacheable():
    service = MagicMock(spec=AutocompleteService)
    service.resolve.return_value = '[{"id":1,"name":"cat_ears","post_count":5,"category":0,"antecedent_name":null}]'
    client = make_client(service)

    resp = client.get("/", params={PARAM: "cat"})

    assert resp.status_code == 200
    assert resp.text == service.resolve.return_value
    assert resp.headers["content-type"] == "application/json; charset=utf-8"
    assert resp.headers["cache-control"] == "public, max-age=604800"
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-headers"] == "Authorization"
    service.resolve.assert_called_once_with("cat")


def test_bad_input_is_private_400():
    service = MagicMock(spec=AutocompleteService)
    service.resolve.side_effect = BadInput("query shorter than 3 characters")
    client = make_client(service)

    resp = client.get("/", params={PARAM: "ab"})

    assert resp.status_code == 400
    assert resp.text == '{"error":"bad request"}'
    assert resp.headers["cache-control"] == "private; max-age=0"


def test_missing_parameter_is_bad_request():
    client = make_client(MagicMock(spec=AutocompleteService))

    resp = client.get("/")

    assert resp.status_code == 400
    assert resp.json() == {"error": "bad request"}


def test_server_error_hides_details():
    service = MagicMock(spec=AutocompleteService)
    service.resolve.side_effect = ServerError("store lookup failed")
    client = make_client(service)

    resp = client.get("/", params={PARAM: "cat"})

    assert resp.status_code == 500
    assert resp.text == '{"error":"internal error"}'
    assert "store" not in resp.text
    assert resp.headers["cache-control"] == "private; max-age=0"


def test_unexpected_error_is_generic_500():
    service = MagicMock(spec=AutocompleteService)
    service.resolve.side_effect = RuntimeError("boom")
    client = make_client(service, raise_server_exceptions=False)

    resp = client.get("/", params={PARAM: "cat"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "internal error"}
    assert resp.headers["cache-control"] == "private; max-age=0"
    # Default headers survive the catch-all handler
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-headers"] == "Authorization"


def test_empty_result_end_to_end_is_cached():
    store = MagicMock(spec=TagStore)
    store.lookup.return_value = []
    pool = MagicMock()
    cache = MemoryResultCache(max_entries=10, ttl_seconds=60)
    client = make_client(AutocompleteService(pool, cache, store=store))

    first = client.get("/", params={PARAM: "nothing_here"})
    second = client.get("/", params={PARAM: "Nothing_Here"})

    assert first.status_code == 200
    assert first.text == "[]"
    assert first.headers["cache-control"] == "public, max-age=604800"
    assert second.text == first.text
    assert cache.get("nothing_here") == "[]"
    assert store.lookup.call_count == 1


def test_health_check():
    client = make_client(MagicMock(spec=AutocompleteService))

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
