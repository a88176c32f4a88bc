import time

import httpx
from fastapi.testclient import TestClient

from eidadoi.models import DOIRecord
from eidadoi.services.cache import DOICache
from eidadoi.settings import Settings
from eidadoi.web.app import create_app


def _client(cache: DOICache | None = None, **overrides) -> TestClient:
    settings = Settings(**overrides)
    return TestClient(create_app(settings, cache=cache, harvest=False))


def _filled_cache() -> DOICache:
    cache = DOICache()
    cache.replace(
        [
            DOIRecord(network="GE", doi="10.14470/TR560404"),
            DOIRecord(network="NL", doi="10.21944/e970fd34-23b9-3411-b366-e4f72877d2c5"),
            DOIRecord(network="GR", doi="10.25928/mbx6-hr74"),
        ]
    )
    return cache


def test_empty_cache_returns_empty_list() -> None:
    response = _client().get("/")
    assert response.status_code == 200
    assert response.json() == []


def test_unfiltered_query_returns_everything() -> None:
    response = _client(_filled_cache()).get("/")
    assert response.status_code == 200
    assert [entry["network"] for entry in response.json()] == ["GE", "NL", "GR"]


def test_network_filter_with_wildcards() -> None:
    response = _client(_filled_cache()).get("/", params={"network": "g?,xx"})
    assert response.status_code == 200
    assert response.json() == [
        {"network": "GE", "doi": "10.14470/TR560404"},
        {"network": "GR", "doi": "10.25928/mbx6-hr74"},
    ]


def test_repeated_network_keys_are_combined() -> None:
    response = _client(_filled_cache()).get("/?network=GE&network=NL")
    assert response.status_code == 200
    assert [entry["network"] for entry in response.json()] == ["GE", "NL"]


def test_unsupported_parameter_is_rejected() -> None:
    response = _client().get("/", params={"station": "HGN"})
    assert response.status_code == 400
    assert response.text == "Key station is not supported."


def test_invalid_network_value_is_rejected() -> None:
    response = _client().get("/", params={"network": "TOOLONGCODE"})
    assert response.status_code == 400
    assert response.text == "Key network is not valid."


def test_debug_mode_returns_traceback() -> None:
    response = _client(debug=True).get("/", params={"network": "G-E"})
    assert response.status_code == 400
    assert "Traceback" in response.text


def test_unknown_path_is_not_found() -> None:
    assert _client().get("/networks").status_code == 404


def test_cors_headers_when_enabled() -> None:
    response = _client(cors=True).get("/", headers={"Origin": "http://example.org"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_access_log_written_to_file(tmp_path) -> None:
    log_file = tmp_path / "logs" / "service.log"
    client = _client(_filled_cache(), log_file=log_file)
    client.get("/", params={"network": "NL"}, headers={"User-Agent": "pytest"})

    content = log_file.read_text()
    assert "request.completed" in content
    assert '"n_dois": 1' in content
    assert '"agent": "pytest"' in content


def test_lifespan_harvests_in_background() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text="GE,10.14470/TR560404\r\n")
    )
    settings = Settings(upstream_url="http://upstream.test/")
    app = create_app(settings, transport=transport)

    with TestClient(app) as client:
        payload = []
        deadline = time.monotonic() + 5
        while not payload and time.monotonic() < deadline:
            payload = client.get("/").json()
            time.sleep(0.01)

    assert payload == [{"network": "GE", "doi": "10.14470/TR560404"}]
