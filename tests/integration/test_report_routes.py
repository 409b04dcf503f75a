"""Integration tests for listing reports."""
from uuid import uuid4

import pytest


def _report(client, headers, listing_id, reason="Fake photos"):
    return client.post(
        "/api/reports",
        json={"pgId": str(listing_id), "reason": reason, "description": "Rooms look different"},
        headers=headers,
    )


@pytest.mark.integration
def test_report_listing(client, make_listing, renter, renter_headers):
    listing = make_listing("Royal Boys PG")

    response = _report(client, renter_headers, listing.id)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["reportedBy"] == str(renter.id)
    assert data["listingId"] == str(listing.id)


@pytest.mark.integration
def test_report_missing_listing(client, renter_headers):
    assert _report(client, renter_headers, uuid4()).status_code == 404


@pytest.mark.integration
def test_report_requires_login(client, make_listing):
    listing = make_listing("Royal Boys PG")

    assert _report(client, {}, listing.id).status_code == 401


@pytest.mark.integration
def test_admin_reviews_reports(client, make_listing, renter_headers, admin_headers):
    listing = make_listing("Royal Boys PG")
    first = _report(client, renter_headers, listing.id, reason="Fake photos").json()["data"]["id"]
    _report(client, renter_headers, listing.id, reason="Wrong price")

    assert client.get("/api/reports", headers=renter_headers).status_code == 403
    assert len(client.get("/api/reports", headers=admin_headers).json()["data"]) == 2

    response = client.put(
        f"/api/reports/{first}/status",
        json={"status": "resolved"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "resolved"

    resolved = client.get("/api/reports?status=resolved", headers=admin_headers).json()["data"]
    assert [item["id"] for item in resolved] == [first]

    invalid = client.put(f"/api/reports/{first}/status", json={"status": "closed"}, headers=admin_headers)
    assert invalid.status_code == 422
    missing = client.put(f"/api/reports/{uuid4()}/status", json={"status": "reviewed"}, headers=admin_headers)
    assert missing.status_code == 404
