import pytest
from conftest import FakeScheduler
from fastapi.testclient import TestClient

import nextferry.services.engine as engine_mod
import nextferry.services.refresh_scheduler as refresher_mod
from nextferry.domain.models import Direction
from nextferry.main import app
from nextferry.services.engine import ScheduleEngine
from nextferry.services.refresh_scheduler import REFRESH_JOB, TICK_JOB, FerryRefresher


@pytest.fixture
def engine(fake_client, resolver, monkeypatch):
    eng = ScheduleEngine(fake_client, resolver, retry_attempts=1, retry_delay=0)
    monkeypatch.setattr(engine_mod, "_SINGLETON", eng)
    return eng


@pytest.fixture
def refresher(engine, monkeypatch):
    r = FerryRefresher(engine, FakeScheduler(), tick_seconds=30, refresh_seconds=60)
    r.start()
    monkeypatch.setattr(refresher_mod, "_SINGLETON", r)
    return r


@pytest.fixture
def api(refresher):
    return TestClient(app)


def test_health(api):
    assert api.get("/_health").json() == {"ok": True}


def test_state_while_loading(api):
    body = api.get("/api/state").json()
    assert body["loading"] is True
    assert body["next_ferries"] == []
    assert body["error"] is None


def test_next_ferries(api, engine):
    engine.initialize()
    body = api.get("/api/next-ferries").json()

    assert body["loading"] is False
    assert body["error"] is None
    first, second = body["items"]
    assert first["direction"] == "Central to Mui Wo"
    assert first["from"] == "Central"
    assert first["departure_time"] == "09:30"
    assert first["time_until"] == "15m"
    assert first["is_today"] is True
    assert second["to"] == "Central"


def test_state_reports_source_errors(api, engine, fake_client):
    fake_client.fail.add("schedule")
    engine.initialize()
    body = api.get("/api/state").json()
    assert body["error"] == "Failed to load ferry schedule"
    assert "schedule" in body["source_errors"]
    assert body["schedule_entries"] == 0
    assert body["holidays"] == 2


def test_live_arrivals_empty_without_feeds(api, engine):
    engine.initialize()
    assert api.get("/api/live-arrivals").json() == {"items": []}


def test_schedule_filters(api, engine):
    engine.initialize()
    assert len(api.get("/api/schedule").json()["items"]) == 7

    items = api.get(
        "/api/schedule", params={"direction": "Mui Wo -> Central", "day_type": "weekday"}
    ).json()["items"]
    assert [i["departure_time"] for i in items] == ["07:00", "12:00"]

    assert api.get("/api/schedule", params={"direction": "Peng Chau"}).status_code == 422
    assert api.get("/api/schedule", params={"day_type": "someday"}).status_code == 422


def test_day_type_and_holiday(api, engine):
    engine.initialize()

    body = api.get("/api/day-type", params={"date": "2025-01-29"}).json()
    assert body == {
        "date": "2025-01-29",
        "day_type": "SUNDAY_OR_HOLIDAY",
        "label": "Sundays and public holidays",
    }
    assert api.get("/api/day-type").json()["date"] == "2025-01-20"
    assert api.get("/api/day-type", params={"date": "2025-13-01"}).status_code == 422

    assert api.get("/api/holiday", params={"date": "2025-01-01"}).json()["is_public_holiday"]
    assert not api.get("/api/holiday").json()["is_public_holiday"]


def test_visibility_toggles_polling(api, refresher):
    body = api.post("/api/visibility", json={"visible": False}).json()
    assert body == {"ok": True, "visible": False, "changed": True}
    assert refresher.scheduler.paused == {TICK_JOB, REFRESH_JOB}

    body = api.post("/api/visibility", json={"visible": False}).json()
    assert body["changed"] is False

    assert api.post("/api/visibility", json={}).status_code == 422


def test_manual_refresh(api, fake_client):
    body = api.post("/api/refresh").json()
    assert body["ok"] is True
    assert body["loading"] is False
    assert len(body["next_ferries"]) == 2
    assert fake_client.calls["schedule"] == 1


def test_debug_events(api, engine):
    engine.initialize()
    events = api.get("/_debug/events", params={"limit": 2}).json()["events"]
    assert len(events) == 2
    assert events[-1]["stage"] == "resolved"


def test_raw_eta_unknown_direction(api):
    assert api.get("/_debug/raw-eta/peng_chau").status_code == 404


def test_raw_eta_without_configured_feed(api):
    resp = api.get("/_debug/raw-eta/central_to_mui_wo")
    assert resp.status_code == 404
    assert "No ETA feed" in resp.json()["detail"]


def test_raw_eta_passthrough(api, fake_client):
    fake_client.eta = {Direction.MUI_WO_TO_CENTRAL: [{"eta": "10:05"}]}
    resp = api.get("/_debug/raw-eta/mui_wo_to_central")
    assert resp.status_code == 200
    assert resp.json() == {"data": [{"eta": "10:05"}]}
