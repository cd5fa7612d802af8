import pytest

from country_api.config import settings
from country_api.errors import UpstreamUnavailable

COUNTRIES = [
    {"name": "Nigeria", "capital": "Abuja", "region": "Africa", "population": 206139589,
     "flag": "https://flagcdn.com/ng.svg", "currencies": [{"code": "NGN"}]},
    {"name": "Ghana", "capital": "Accra", "region": "Africa", "population": 31072940,
     "flag": "https://flagcdn.com/gh.svg", "currencies": [{"code": "GHS"}]},
    {"name": "Germany", "capital": "Berlin", "region": "Europe", "population": 83240525,
     "currencies": [{"code": "EUR"}]},
    {"name": "Antarctica", "region": "Polar", "population": 1000},
    {"name": "Oddland", "region": "Europe", "population": 10, "currencies": [{"code": "ODD"}]},
]
RATES = {"NGN": 1600.0, "GHS": 15.3, "EUR": 0.92}


@pytest.fixture
def refreshed(client, gateway):
    gateway.countries = COUNTRIES
    gateway.rates = RATES
    r = client.post("/countries/refresh")
    assert r.status_code == 200
    return r.json()


def test_root_ok(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "message" in r.json()


def test_refresh_success(refreshed):
    assert refreshed == {"message": "Countries data refreshed successfully", "count": 5}


def test_refresh_failure_503_error_shape(client, gateway):
    gateway.rates_error = UpstreamUnavailable("Exchange Rate API", "timeout")
    r = client.post("/countries/refresh")
    assert r.status_code == 503
    assert r.json() == {
        "error": "External data source unavailable",
        "details": "Could not fetch data from Exchange Rate API",
    }
    assert client.get("/status").json()["total_countries"] == 0


def test_refresh_image_failure_500(client, gateway, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setattr(settings, "CACHE_DIR", blocker)
    gateway.countries = COUNTRIES

    r = client.post("/countries/refresh")

    assert r.status_code == 500
    assert r.json()["error"] == "Summary image generation failed"
    assert client.get("/status").json()["total_countries"] == 5


def test_list_filters_and_sorts(client, refreshed):
    r = client.get("/countries", params={"region": "Africa"})
    assert r.status_code == 200
    assert {c["name"] for c in r.json()} == {"Nigeria", "Ghana"}

    r = client.get("/countries", params={"currency": "EUR"})
    assert [c["name"] for c in r.json()] == ["Germany"]

    r = client.get("/countries", params={"sort": "gdp_desc"})
    body = r.json()
    gdps = [c["estimated_gdp"] for c in body]
    assert gdps[-1] is None
    assert body[-1]["name"] == "Oddland"
    known = [g for g in gdps if g is not None]
    assert known == sorted(known, reverse=True)

    r = client.get("/countries", params={"sort": "population_asc"})
    assert [c["name"] for c in r.json()][:2] == ["Oddland", "Antarctica"]


def test_unknown_sort_uses_default_order(client, refreshed):
    r = client.get("/countries", params={"sort": "shoe_size_desc"})
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == [c["name"] for c in COUNTRIES]


def test_country_fields(client, refreshed):
    r = client.get("/countries/nigeria")
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Nigeria"
    assert body["currency_code"] == "NGN"
    assert body["exchange_rate"] == 1600.0
    assert body["flag_url"] == "https://flagcdn.com/ng.svg"
    assert body["last_refreshed_at"] is not None

    antarctica = client.get("/countries/ANTARCTICA").json()
    assert antarctica["estimated_gdp"] == 0
    assert antarctica["currency_code"] is None


def test_country_not_found_error_shape(client):
    r = client.get("/countries/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Country not found"}


def test_blank_name_is_validation_error(client):
    r = client.get("/countries/%20%20")
    assert r.status_code == 400
    assert r.json() == {"error": "Validation failed", "details": {"name": "is required"}}


def test_delete_country(client, refreshed):
    r = client.delete("/countries/Ghana")
    assert r.status_code == 200
    assert r.json() == {"message": "Country deleted successfully"}

    assert client.get("/countries/GHANA").status_code == 404
    r = client.delete("/countries/ghana")
    assert r.status_code == 404
    assert r.json() == {"error": "Country not found"}


def test_status(client, refreshed):
    body = client.get("/status").json()
    assert body["total_countries"] == 5
    assert body["last_refreshed_at"] is not None


def test_status_empty(client):
    assert client.get("/status").json() == {"total_countries": 0, "last_refreshed_at": None}


def test_countries_image_404_json(client):
    r = client.get("/countries/image")
    assert r.status_code == 404
    assert r.headers.get("content-type", "").startswith("application/json")
    assert r.json() == {"error": "Summary image not found"}


def test_countries_image_after_refresh(client, refreshed):
    r = client.get("/countries/image")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content.startswith(b"\x89PNG")


def test_unknown_route(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}


def test_unhandled_error_is_generic(client, gateway):
    gateway.countries_error = RuntimeError("db password is hunter2")
    r = client.post("/countries/refresh")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
