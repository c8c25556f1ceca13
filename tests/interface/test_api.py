"""REST API tests (FastAPI TestClient)."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from database import StorageManager
from interface.web.api import create_app, parse_id
from tests.factories import client_payload, meeting_payload, property_payload


def _iso(dt: datetime) -> str:
    return dt.isoformat()


class TestParseId:
    """Path id parsing."""

    @pytest.mark.parametrize("raw, expected", [
        ("1", 1), ("42", 42), ("abc", None), ("1.5", None), ("-3", None), ("", None),
    ])
    def test_parse_id(self, raw, expected):
        """Only plain non-negative integers parse; anything else is None."""
        assert parse_id(raw) == expected


class TestClientsApi:
    """Client endpoints."""

    def test_create_returns_201_with_defaults(self, api):
        """Creation returns 201 with id, defaults and createdAt."""
        resp = api.post("/api/clients", json=client_payload())
        assert resp.status_code == 201
        body = resp.json()
        assert body["id"] == 1
        assert body["status"] == "active"
        assert body["phone"] is None
        assert "createdAt" in body

    def test_list_newest_first(self, api):
        """Clients are listed newest first."""
        for suffix in ("a", "b", "c"):
            api.post("/api/clients", json=client_payload(suffix))
        ids = [c["id"] for c in api.get("/api/clients").json()]
        assert ids == [3, 2, 1]

    def test_get_by_id(self, api):
        """A created client can be fetched by id."""
        created = api.post("/api/clients", json=client_payload()).json()
        resp = api.get(f"/api/clients/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    def test_get_missing_and_malformed_id(self, api):
        """Missing and malformed ids both give 404."""
        assert api.get("/api/clients/999").status_code == 404
        resp = api.get("/api/clients/abc")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Client not found"}

    def test_invalid_body_returns_400_with_errors(self, api):
        """Invalid bodies give 400 with field errors and store nothing."""
        resp = api.post("/api/clients", json={"name": "", "email": "nope"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Invalid client data"
        assert {e["field"] for e in body["errors"]} == {"name", "email"}
        assert api.get("/api/clients").json() == []

    def test_malformed_json_returns_400(self, api):
        """Unparseable JSON is reported against the body field."""
        resp = api.post(
            "/api/clients", content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "body"

    def test_duplicate_email_returns_409(self, api):
        """A duplicate email gives 409 and stores nothing."""
        api.post("/api/clients", json=client_payload("a", email="dup@example.com"))
        resp = api.post("/api/clients", json=client_payload("b", email="dup@example.com"))
        assert resp.status_code == 409
        assert resp.json()["message"] == "Client with this email already exists"
        assert len(api.get("/api/clients").json()) == 1

    def test_duplicate_email_allowed_when_not_enforced(self, db_permissive):
        """Duplicates are accepted when uniqueness is off."""
        with TestClient(create_app(db_permissive)) as api:
            api.post("/api/clients", json=client_payload("a", email="dup@example.com"))
            resp = api.post("/api/clients", json=client_payload("b", email="dup@example.com"))
            assert resp.status_code == 201

    def test_partial_update(self, api):
        """Only supplied fields change; createdAt is kept."""
        created = api.post("/api/clients", json=client_payload(company="Acme")).json()
        resp = api.put(f"/api/clients/{created['id']}", json={"phone": "+971 50 000 0000"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["phone"] == "+971 50 000 0000"
        assert body["company"] == "Acme"
        assert body["createdAt"] == created["createdAt"]

    def test_update_missing_returns_404_and_changes_nothing(self, api):
        """Updating a missing id gives 404 and leaves data untouched."""
        api.post("/api/clients", json=client_payload())
        before = api.get("/api/clients").json()
        resp = api.put("/api/clients/999", json={"name": "X"})
        assert resp.status_code == 404
        assert api.get("/api/clients").json() == before

    def test_update_invalid_body_checked_before_existence(self, api):
        """Body validation runs before the existence check."""
        resp = api.put("/api/clients/999", json={"email": "broken"})
        assert resp.status_code == 400

    def test_update_null_on_required_field(self, api):
        """Null on a required field is rejected."""
        created = api.post("/api/clients", json=client_payload()).json()
        resp = api.put(f"/api/clients/{created['id']}", json={"name": None})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["type"] == "null_not_allowed"

    def test_delete(self, api):
        """Delete gives 204 once, then 404."""
        created = api.post("/api/clients", json=client_payload()).json()
        resp = api.delete(f"/api/clients/{created['id']}")
        assert resp.status_code == 204
        assert resp.content == b""
        assert api.delete(f"/api/clients/{created['id']}").status_code == 404
        assert api.get(f"/api/clients/{created['id']}").status_code == 404

    def test_client_relationships(self, api):
        """Relationship reads filter by client; bad ids give []."""
        client = api.post("/api/clients", json=client_payload()).json()
        api.post("/api/properties", json=property_payload("Mine", clientId=client["id"]))
        api.post("/api/properties", json=property_payload("Other"))
        api.post("/api/meetings", json=meeting_payload(clientId=client["id"]))

        props = api.get(f"/api/clients/{client['id']}/properties").json()
        assert [p["title"] for p in props] == ["Mine"]
        assert len(api.get(f"/api/clients/{client['id']}/meetings").json()) == 1
        assert api.get("/api/clients/999/properties").json() == []
        assert api.get("/api/clients/abc/meetings").json() == []


class TestPropertiesApi:
    """Property endpoints."""

    def test_price_normalized(self, api):
        """Numeric prices are stored as two-decimal strings."""
        resp = api.post("/api/properties", json=property_payload(price=750000))
        assert resp.status_code == 201
        assert resp.json()["price"] == "750000.00"
        assert resp.json()["status"] == "listed"

    def test_invalid_price(self, api):
        """Non-numeric prices give 400."""
        resp = api.post("/api/properties", json=property_payload(price="cheap"))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid property data"

    def test_crud_cycle(self, api):
        """Create, update and delete a property."""
        created = api.post("/api/properties", json=property_payload()).json()
        updated = api.put(f"/api/properties/{created['id']}", json={"status": "sold"}).json()
        assert updated["status"] == "sold"
        assert updated["title"] == created["title"]
        assert api.delete(f"/api/properties/{created['id']}").status_code == 204
        assert api.get("/api/properties").json() == []

    def test_deleting_client_keeps_property(self, api):
        """Deleting a client leaves its properties and their clientId."""
        client = api.post("/api/clients", json=client_payload()).json()
        prop = api.post("/api/properties", json=property_payload(clientId=client["id"])).json()
        api.delete(f"/api/clients/{client['id']}")
        assert api.get(f"/api/properties/{prop['id']}").json()["clientId"] == client["id"]


class TestMeetingsApi:
    """Meeting endpoints."""

    def test_create_defaults(self, api):
        """Meetings default duration, type and status."""
        body = api.post("/api/meetings", json=meeting_payload()).json()
        assert body["duration"] == 60
        assert body["type"] == "property_viewing"
        assert body["status"] == "scheduled"

    def test_list_ascending(self, api):
        """Meetings are listed soonest first."""
        api.post("/api/meetings", json=meeting_payload("Late", "2025-06-20T10:00:00Z"))
        api.post("/api/meetings", json=meeting_payload("Early", "2025-06-02T10:00:00Z"))
        assert [m["title"] for m in api.get("/api/meetings").json()] == ["Early", "Late"]

    def test_date_range_filter(self, api):
        """Both bounds filter meetings inclusively."""
        api.post("/api/meetings", json=meeting_payload("June", "2025-06-15T10:00:00Z"))
        api.post("/api/meetings", json=meeting_payload("July", "2025-07-15T10:00:00Z"))
        resp = api.get("/api/meetings", params={
            "startDate": "2025-06-01T00:00:00Z", "endDate": "2025-06-30T23:59:59Z",
        })
        assert [m["title"] for m in resp.json()] == ["June"]

    def test_date_range_requires_both_bounds(self, api):
        """A single bound is ignored."""
        api.post("/api/meetings", json=meeting_payload("June", "2025-06-15T10:00:00Z"))
        api.post("/api/meetings", json=meeting_payload("July", "2025-07-15T10:00:00Z"))
        resp = api.get("/api/meetings", params={"startDate": "2025-07-01"})
        assert len(resp.json()) == 2

    def test_malformed_date_range_is_empty(self, api):
        """Unparseable bounds give an empty list."""
        api.post("/api/meetings", json=meeting_payload())
        resp = api.get("/api/meetings", params={"startDate": "soon", "endDate": "later"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_numeric_date_range_is_empty(self, api):
        """Bare numbers are not accepted as epoch bounds."""
        api.post("/api/meetings", json=meeting_payload())
        resp = api.get("/api/meetings", params={"startDate": "0", "endDate": "9999999999"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_get_update_delete(self, api):
        """Get, update and delete a meeting."""
        created = api.post("/api/meetings", json=meeting_payload()).json()
        assert api.get(f"/api/meetings/{created['id']}").status_code == 200
        resp = api.put(f"/api/meetings/{created['id']}", json={"status": "completed"})
        assert resp.json()["status"] == "completed"
        assert api.delete(f"/api/meetings/{created['id']}").status_code == 204


class TestAnalyticsApi:
    """Analytics endpoint."""

    def test_villa_scenario(self, api):
        """Analytics reflect a single listed villa."""
        api.post("/api/clients", json=client_payload())
        villa = api.post("/api/properties", json=property_payload("Villa", price="500000")).json()
        assert villa["id"] == 1
        assert villa["status"] == "listed"
        assert villa["bedrooms"] is None
        body = api.get("/api/analytics").json()
        assert body["totalClients"] == 1
        assert body["totalProperties"] == 1
        assert body["portfolioValue"] == 500000
        assert body["activeListings"] == 1
        assert body["propertyTypeDistribution"]["residential"] == 1

    def test_past_meeting_not_upcoming(self, api):
        """Past meetings are not upcoming."""
        yesterday = datetime.now(timezone.utc) - timedelta(days=1)
        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
        api.post("/api/meetings", json=meeting_payload("Past", _iso(yesterday)))
        api.post("/api/meetings", json=meeting_payload("Next", _iso(tomorrow)))
        upcoming = api.get("/api/analytics").json()["upcomingMeetings"]
        assert [m["title"] for m in upcoming] == ["Next"]

    def test_upcoming_meetings_carry_client_name(self, api):
        """Upcoming meetings include the resolved client display name."""
        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
        later = tomorrow + timedelta(hours=2)
        client = api.post("/api/clients", json=client_payload(name="Sarah")).json()
        api.post("/api/meetings", json=meeting_payload("Own", _iso(tomorrow), clientId=client["id"]))
        api.post("/api/meetings", json=meeting_payload("Guest", _iso(later)))
        upcoming = api.get("/api/analytics").json()["upcomingMeetings"]
        assert [m["clientName"] for m in upcoming] == ["Sarah", "External Client"]


class TestPortfolioApi:
    """Portfolio endpoint."""

    def test_portfolio_rows(self, api):
        """Portfolio rows carry count and value; search filters clients."""
        owner = api.post("/api/clients", json=client_payload("a", name="Alice")).json()
        api.post("/api/clients", json=client_payload("b", name="Bob"))
        api.post("/api/properties", json=property_payload("A", price="100", clientId=owner["id"]))
        api.post("/api/properties", json=property_payload("B", price="200", clientId=owner["id"]))

        rows = api.get("/api/portfolio").json()
        assert len(rows) == 1
        assert rows[0]["client"]["name"] == "Alice"
        assert rows[0]["propertyCount"] == 2
        assert rows[0]["totalValue"] == 300
        assert api.get("/api/portfolio", params={"search": "bob"}).json() == []

    def test_portfolio_status_badges(self, api):
        """Clients and properties in portfolio rows carry a statusBadge."""
        owner = api.post("/api/clients", json=client_payload(status="prospect")).json()
        api.post("/api/properties", json=property_payload("A", clientId=owner["id"]))
        api.post("/api/properties", json=property_payload("B", status="sold", clientId=owner["id"]))

        row = api.get("/api/portfolio").json()[0]
        assert row["client"]["statusBadge"] == "yellow"
        badges = {p["title"]: p["statusBadge"] for p in row["properties"]}
        assert badges == {"A": "green", "B": "blue"}


class TestCustomFieldsApi:
    """Custom field endpoints."""

    def _create(self, api, **overrides):
        payload = {"name": "area", "label": "Area", "type": "select",
                   "options": ["Marina", "Downtown"], "entityType": "client"}
        payload.update(overrides)
        return api.post("/api/custom-fields", json=payload)

    def test_create_and_list_by_entity_type(self, api):
        """Fields are listed per entity type; unknown types give []."""
        assert self._create(api).status_code == 201
        self._create(api, name="size", label="Size", type="number", options=None,
                     entityType="property")
        fields = api.get("/api/custom-fields/client").json()
        assert [f["name"] for f in fields] == ["area"]
        assert fields[0]["options"] == ["Marina", "Downtown"]
        assert api.get("/api/custom-fields/spaceship").json() == []

    def test_select_without_options_rejected(self, api):
        """A select field without options gives 400."""
        resp = self._create(api, options=None)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid custom field data"

    def test_update_and_delete(self, api):
        """Update and delete a field definition."""
        created = self._create(api).json()
        resp = api.put(f"/api/custom-fields/{created['id']}", json={"required": True})
        assert resp.json()["required"] is True
        assert api.put("/api/custom-fields/999", json={"label": "X"}).status_code == 404
        assert api.delete(f"/api/custom-fields/{created['id']}").status_code == 204
        assert api.get("/api/custom-fields/client").json() == []

    def test_empty_options_on_text_field_stored_as_null(self, api):
        """An empty options list on a non-select field is stored as null."""
        created = self._create(api, name="note", label="Note", type="text", options=[]).json()
        assert created["options"] is None
        resp = api.put(f"/api/custom-fields/{created['id']}", json={"options": []})
        assert resp.status_code == 200
        assert resp.json()["options"] is None

    def test_validate_values(self, api):
        """Values are checked against the entity's definitions."""
        self._create(api, required=True)
        ok = api.post("/api/custom-fields/client/validate", json={"area": "Marina"}).json()
        assert ok == {"valid": True, "errors": []}
        bad = api.post("/api/custom-fields/client/validate", json={"area": "Deira"}).json()
        assert bad["valid"] is False
        assert bad["errors"][0]["field"] == "area"

    def test_validate_requires_object(self, api):
        """The validate body must be a JSON object."""
        resp = api.post("/api/custom-fields/client/validate", json=["Marina"])
        assert resp.status_code == 400


class TestAppWiring:
    """Application wiring."""

    def test_health(self, api):
        """Health reports status and table counts."""
        api.post("/api/clients", json=client_payload())
        body = api.get("/health").json()
        assert body["status"] == "ok"
        assert body["counts"]["clients"] == 1

    def test_app_state_holds_storage(self, db):
        """The storage manager is attached to app.state."""
        app = create_app(db)
        assert app.state.db is db

    def test_cors_preflight(self):
        """Configured origins pass the CORS preflight."""
        app = create_app(StorageManager(), cors_origins=["http://localhost:5173"])
        with TestClient(app) as client:
            resp = client.options("/api/clients", headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            })
            assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_internal_error_returns_500(self, db):
        """Unexpected storage failures give 500 with a message."""
        app = create_app(db)
        db.close()
        with TestClient(app) as client:
            resp = client.get("/api/clients")
            assert resp.status_code == 500
            assert resp.json() == {"message": "Failed to fetch clients"}
