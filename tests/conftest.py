from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

import main

# Fixed date so seasonal output is stable (October is post-monsoon)
TODAY = date(2026, 10, 19)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sessions():
    now = datetime.now(timezone.utc)
    collection = MagicMock()
    collection.find_one.side_effect = lambda query: {
        "tok-f1": {"_id": "s1", "farmer_id": "F1", "token": "tok-f1",
                   "created_at": now, "expires_at": now + timedelta(days=1)},
        "tok-old": {"_id": "s2", "farmer_id": "F1", "token": "tok-old",
                    "created_at": now - timedelta(days=8), "expires_at": now - timedelta(days=1)},
    }.get(query["token"])
    return collection


@pytest.fixture
def fake_db(monkeypatch, sessions):
    store = {"session": sessions, "farmsetup": MagicMock()}
    monkeypatch.setattr(main, "db", store)
    return store


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer tok-f1"}
