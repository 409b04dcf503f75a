"""Integration tests for the listing routes."""
from urllib.parse import quote
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from pgfinder.lib.store import store_read
from pgfinder.models.listings import ListingType
from pgfinder.models.reviews import Review, ReviewReply
from pgfinder.models.users import UserRole
from pgfinder.services.listing_resolver import ListingResolver, ResolutionStrategy
from pgfinder.services.listing_service import ListingCreate, ListingService
from pgfinder.services.listing_store import ListingStore


# Resolution

@pytest.mark.integration
def test_resolve_by_id_slug_name_and_substring(client, make_listing):
    listing = make_listing("Royal Boys PG", address="Gate 2, CU Road")

    for identifier in (
        str(listing.id),
        listing.id.hex,
        "royal-boys-pg",
        "Royal Boys PG",
        "royal-boys pg",
        "ROYAL BOYS PG",
        "Gate 2",
    ):
        response = client.get(f"/api/pg/{quote(identifier)}")
        assert response.status_code == 200, identifier
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == str(listing.id)


@pytest.mark.integration
def test_resolution_strategy_order(db_session, make_listing):
    listing = make_listing("Royal Boys PG", address="Gate 2, CU Road")
    resolver = ListingResolver(ListingStore(db_session))

    assert resolver.resolve(str(listing.id)).strategy == ResolutionStrategy.ID
    assert resolver.resolve("royal-boys-pg").strategy == ResolutionStrategy.SLUG
    assert resolver.resolve("Royal Boys PG").strategy == ResolutionStrategy.NAME
    assert resolver.resolve("Royal-Boys-PG").strategy == ResolutionStrategy.NAME
    assert resolver.resolve("boys").strategy == ResolutionStrategy.SUBSTRING


@pytest.mark.integration
def test_name_match_is_anchored(db_session, make_listing):
    make_listing("Royal Boys PG Annex")
    resolver = ListingResolver(ListingStore(db_session))

    # Not a full-name match, so only the substring strategy finds it
    assert resolver.resolve("Royal Boys PG").strategy == ResolutionStrategy.SUBSTRING


@pytest.mark.integration
def test_substring_returns_earliest_listing(client, make_listing):
    first = make_listing("Green View PG", city="Mohali")
    make_listing("Blue View PG", city="Mohali")

    response = client.get("/api/pg/mohali")

    assert response.json()["data"]["id"] == str(first.id)


@pytest.mark.integration
def test_unknown_id_is_not_found(client, make_listing):
    make_listing("Royal Boys PG")
    missing = str(uuid4())

    response = client.get(f"/api/pg/{missing}")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert missing in body["message"]
    assert len(body["details"]["sample_ids"]) == 1


@pytest.mark.integration
@pytest.mark.parametrize("identifier", ["undefined", "null", "%20"])
def test_placeholder_identifier_is_bad_request(client, identifier):
    response = client.get(f"/api/pg/{identifier}")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid listing identifier"


@pytest.mark.integration
def test_unpublished_listing_resolvable_by_id(client, make_listing):
    listing = make_listing("Draft PG", published=False)

    response = client.get(f"/api/pg/{listing.id}")

    assert response.status_code == 200
    assert response.json()["data"]["published"] is False


@pytest.mark.integration
def test_unpublished_listing_hidden_from_name_and_term_lookups(client, make_listing, admin_headers):
    draft = make_listing("Secret Draft PG", published=False)

    for identifier in ("secret", "Secret Draft PG"):
        response = client.get(f"/api/pg/{quote(identifier)}")
        assert response.status_code == 404, identifier
        assert response.json()["details"]["sample_ids"] == []

    as_admin = client.get("/api/pg/secret", headers=admin_headers)
    assert as_admin.status_code == 200
    assert as_admin.json()["data"]["id"] == str(draft.id)


@pytest.mark.integration
def test_response_shape(client, make_listing):
    make_listing(
        "Royal Boys PG",
        location={"type": "Point", "coordinates": [76.57, 30.77]},
        room_types=["single", "double"],
    )

    data = client.get("/api/pg/royal-boys-pg").json()["data"]

    assert data["location"] == {"type": "Point", "coordinates": [76.57, 30.77]}
    assert data["roomTypes"] == ["single", "double"]
    assert data["reviewCount"] == 0
    assert data["city"] == "Chandigarh"
    assert "longitude" not in data


# Listing collection

@pytest.mark.integration
def test_default_listing_excludes_unpublished(client, make_listing):
    make_listing("Live PG")
    make_listing("Draft PG", published=False)

    body = client.get("/api/pg").json()

    assert [item["name"] for item in body["data"]] == ["Live PG"]
    assert body["pagination"]["totalItems"] == 1


@pytest.mark.integration
def test_admin_listing_requires_credentials(client, make_listing, renter_headers):
    make_listing("Draft PG", published=False)

    assert client.get("/api/pg?admin=true").status_code == 401
    assert client.get("/api/pg?admin=true", headers=renter_headers).status_code == 403


@pytest.mark.integration
def test_admin_listing_includes_unpublished(client, make_listing, admin_headers):
    make_listing("Live PG")
    make_listing("Draft PG", published=False)

    body = client.get("/api/pg?admin=true", headers=admin_headers).json()
    assert {item["name"] for item in body["data"]} == {"Live PG", "Draft PG"}

    drafts = client.get("/api/pg?admin=true&published=false", headers=admin_headers).json()
    assert [item["name"] for item in drafts["data"]] == ["Draft PG"]


@pytest.mark.integration
def test_price_range(client, make_listing):
    make_listing("Budget PG", price=5000)
    make_listing("Mid PG", price=8000)
    make_listing("Premium PG", price=12000)

    body = client.get("/api/pg?minPrice=6000&maxPrice=10000").json()
    assert [item["price"] for item in body["data"]] == [8000]

    body = client.get("/api/pg?minPrice=5000&maxPrice=8000&sortBy=price&sortOrder=asc").json()
    assert [item["price"] for item in body["data"]] == [5000, 8000]


@pytest.mark.integration
def test_non_numeric_price_is_bad_request(client):
    response = client.get("/api/pg?minPrice=abc")

    assert response.status_code == 400
    assert response.json()["message"] == "minPrice must be a number"


@pytest.mark.integration
def test_type_city_and_search_filters(client, make_listing):
    make_listing("Royal Boys PG", type=ListingType.BOYS, city="Chandigarh")
    make_listing("Sunshine Girls PG", type=ListingType.GIRLS, city="Mohali")
    make_listing("Student Hub", type=ListingType.CO_ED, description="near the royal gardens")

    def names(query):
        return sorted(item["name"] for item in client.get(f"/api/pg?{query}").json()["data"])

    assert names("type=girls") == ["Sunshine Girls PG"]
    assert names("type=all") == ["Royal Boys PG", "Student Hub", "Sunshine Girls PG"]
    assert names("city=moha") == ["Sunshine Girls PG"]
    assert names("search=ROYAL") == ["Royal Boys PG", "Student Hub"]
    assert names("search=royal&type=boys") == ["Royal Boys PG"]


@pytest.mark.integration
def test_pagination_is_complete_and_disjoint(client, make_listing):
    for index in range(25):
        make_listing(f"PG {index:02d}", price=5000 + (index % 3) * 1000)

    seen = []
    for page in (1, 2, 3):
        body = client.get(f"/api/pg?page={page}&limit=10&sortBy=price").json()
        pagination = body["pagination"]
        assert pagination["totalItems"] == 25
        assert pagination["totalPages"] == 3
        assert pagination["currentPage"] == page
        assert pagination["hasPrevPage"] is (page > 1)
        assert pagination["hasNextPage"] is (page < 3)
        seen.extend(item["id"] for item in body["data"])

    assert len(seen) == 25
    assert len(set(seen)) == 25


@pytest.mark.integration
def test_page_past_the_end_is_empty(client, make_listing):
    make_listing("Only PG")

    body = client.get("/api/pg?page=5&limit=10").json()

    assert body["data"] == []
    assert body["pagination"]["totalItems"] == 1
    assert body["pagination"]["hasNextPage"] is False


@pytest.mark.integration
def test_store_unavailable_returns_503_with_empty_page(client, monkeypatch):
    @store_read
    def broken_find_page(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(ListingStore, "find_page", broken_find_page)

    response = client.get("/api/pg?limit=10")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["data"] == []
    assert body["pagination"]["totalItems"] == 0
    assert body["pagination"]["itemsPerPage"] == 10


@pytest.mark.integration
def test_resolver_store_unavailable_is_not_a_404(client, monkeypatch):
    @store_read
    def broken_find_by_slug(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(ListingStore, "find_by_slug", broken_find_by_slug)

    response = client.get("/api/pg/royal-boys-pg")

    assert response.status_code == 503
    assert response.json()["message"] == "Database unavailable"


@pytest.mark.integration
def test_quick_search(client, make_listing):
    make_listing("Royal Boys PG", address="Gate 2, CU Road", city="Chandigarh")
    make_listing("Royal Girls PG", address="Phase 7", city="Mohali", type=ListingType.GIRLS)
    make_listing("Royal Draft PG", published=False)

    def names(query):
        return sorted(item["name"] for item in client.get(f"/api/pg/search?{query}").json()["data"])

    assert names("q=royal") == ["Royal Boys PG", "Royal Girls PG"]
    assert names("q=boys&location=phase") == ["Royal Boys PG", "Royal Girls PG"]
    assert names("location=gate") == ["Royal Boys PG"]
    assert names("q=royal&type=boys") == ["Royal Boys PG"]


@pytest.mark.integration
def test_quick_search_matches_term_or_location(client, make_listing):
    make_listing("Royal Boys PG", city="Chandigarh")
    make_listing("Lake View Hostel", city="Mohali")
    make_listing("Hill Top PG", city="Panchkula")

    data = client.get("/api/pg/search?q=royal&location=mohali").json()["data"]

    assert sorted(item["name"] for item in data) == ["Lake View Hostel", "Royal Boys PG"]


# Mutations

@pytest.mark.integration
def test_owner_creates_unpublished_listing(client, owner, owner_headers):
    response = client.post(
        "/api/pg",
        json={"name": "Owner PG", "price": 7000, "published": True, "featured": True},
        headers=owner_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["slug"] == "owner-pg"
    assert data["published"] is False
    assert data["featured"] is False
    assert data["ownerId"] == str(owner.id)
    assert data["ownerName"] == owner.name
    assert data["rating"] == 0
    assert data["city"] == "Chandigarh"


@pytest.mark.integration
def test_admin_creates_published_listing(client, admin_headers):
    response = client.post(
        "/api/pg",
        json={"name": "Admin PG", "price": 7000, "published": True, "city": "Mohali"},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert data["published"] is True
    assert data["city"] == "Mohali"


@pytest.mark.integration
def test_renter_cannot_create_listing(client, renter_headers):
    response = client.post("/api/pg", json={"name": "PG", "price": 1}, headers=renter_headers)

    assert response.status_code == 403


@pytest.mark.integration
def test_create_requires_token(client):
    response = client.post("/api/pg", json={"name": "PG", "price": 1})

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, no token"


@pytest.mark.integration
def test_create_validation_error(client, admin_headers):
    response = client.post("/api/pg", json={"name": "PG", "price": -5}, headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.integration
def test_slug_collisions_get_suffix(client, make_listing, admin_headers):
    make_listing("Royal Boys PG")

    second = client.post("/api/pg", json={"name": "Royal Boys PG", "price": 1}, headers=admin_headers)
    third = client.post("/api/pg", json={"name": "Royal  Boys  PG!", "price": 1}, headers=admin_headers)

    assert second.json()["data"]["slug"] == "royal-boys-pg-2"
    assert third.json()["data"]["slug"] == "royal-boys-pg-3"


@pytest.mark.integration
def test_update_listing(client, make_listing, admin_headers):
    listing = make_listing("Royal Boys PG", price=9000)

    response = client.put(
        f"/api/pg/{listing.id}",
        json={"price": "9500", "name": "Royal Boys PG Deluxe", "location": {"coordinates": [76.5, 30.7]}},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["price"] == 9500
    assert data["slug"] == "royal-boys-pg-deluxe"
    assert data["location"]["coordinates"] == [76.5, 30.7]


@pytest.mark.integration
def test_update_rejects_null(client, make_listing, admin_headers):
    listing = make_listing("Royal Boys PG")

    response = client.put(f"/api/pg/{listing.id}", json={"name": None}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["details"] == {"fields": ["name"]}


@pytest.mark.integration
def test_update_ignores_derived_fields(client, make_listing, admin_headers):
    listing = make_listing("Royal Boys PG")

    response = client.put(
        f"/api/pg/{listing.id}",
        json={"rating": 5, "reviewCount": 99, "description": "Renovated"},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert data["description"] == "Renovated"
    assert data["rating"] == 0
    assert data["reviewCount"] == 0


@pytest.mark.integration
def test_owner_edits_only_own_listing(
    client, db_session, owner, owner_headers, make_user, make_listing, headers_for
):
    own = ListingService(ListingStore(db_session)).create(ListingCreate(name="Owned PG", price=1), owner)
    other = make_listing("Someone Else PG")

    assert client.put(f"/api/pg/{own.id}", json={"price": 2}, headers=owner_headers).status_code == 200
    assert client.put(f"/api/pg/{other.id}", json={"price": 2}, headers=owner_headers).status_code == 403
    assert client.put(f"/api/pg/{own.id}", json={"published": True}, headers=owner_headers).status_code == 403

    another_owner = headers_for(make_user(UserRole.OWNER))
    assert client.put(f"/api/pg/{own.id}", json={"price": 3}, headers=another_owner).status_code == 403


@pytest.mark.integration
def test_toggle_status(client, make_listing, admin_headers):
    listing = make_listing("Royal Boys PG")

    response = client.patch(
        f"/api/pg/{listing.id}/toggle-status",
        json={"field": "featured"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["featured"] is True
    assert response.json()["message"] == "featured enabled"

    response = client.patch(
        f"/api/pg/{listing.id}/toggle-status",
        json={"field": "rating"},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.integration
def test_delete_listing(client, make_listing, admin_headers, renter_headers):
    listing = make_listing("Royal Boys PG")
    client.post(
        "/api/reviews",
        json={"pgId": str(listing.id), "rating": 4, "title": "Nice", "comment": "Clean rooms"},
        headers=renter_headers,
    )

    assert client.delete(f"/api/pg/{listing.id}", headers=renter_headers).status_code == 403

    response = client.delete(f"/api/pg/{listing.id}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/pg/{listing.id}").status_code == 404


@pytest.mark.integration
def test_delete_listing_removes_review_replies(client, db_session, make_listing, admin_headers, renter_headers):
    listing = make_listing("Royal Boys PG")
    review = client.post(
        "/api/reviews",
        json={"pgId": str(listing.id), "rating": 4, "title": "Nice", "comment": "Clean rooms"},
        headers=renter_headers,
    ).json()["data"]
    client.post(f"/api/reviews/{review['id']}/reply", json={"comment": "Thanks!"}, headers=admin_headers)
    assert db_session.scalar(select(func.count()).select_from(ReviewReply)) == 1

    client.delete(f"/api/pg/{listing.id}", headers=admin_headers)

    assert db_session.scalar(select(func.count()).select_from(ReviewReply)) == 0
    assert db_session.scalar(select(func.count()).select_from(Review)) == 0


@pytest.mark.integration
@pytest.mark.parametrize("identifier", ["pg", "mohali", "royal-boys-pg", "Royal Boys PG"])
def test_changes_require_a_listing_id(client, make_listing, admin_headers, identifier):
    royal = make_listing("Royal Boys PG", price=9000, city="Chandigarh")
    lake = make_listing("Lake View PG", price=7000, city="Mohali")
    path = f"/api/pg/{quote(identifier)}"

    assert client.delete(path, headers=admin_headers).status_code == 422
    assert client.put(path, json={"price": 1}, headers=admin_headers).status_code == 422
    toggled = client.patch(f"{path}/toggle-status", json={"field": "featured"}, headers=admin_headers)
    assert toggled.status_code == 422

    listings = client.get("/api/pg").json()["data"]
    assert sorted((item["name"], item["price"], item["featured"]) for item in listings) == [
        ("Lake View PG", 7000, False),
        ("Royal Boys PG", 9000, False),
    ]
    assert {royal.id, lake.id} == {UUID(item["id"]) for item in listings}


@pytest.mark.integration
def test_change_unknown_listing_id_is_not_found(client, make_listing, admin_headers):
    make_listing("Royal Boys PG")
    missing = uuid4()

    assert client.delete(f"/api/pg/{missing}", headers=admin_headers).status_code == 404
    assert client.put(f"/api/pg/{missing}", json={"price": 1}, headers=admin_headers).status_code == 404
    assert client.get("/api/pg").json()["pagination"]["totalItems"] == 1


@pytest.mark.integration
def test_stats(client, make_listing, admin_headers):
    make_listing("A", type=ListingType.BOYS, featured=True)
    make_listing("B", type=ListingType.GIRLS, published=False)
    make_listing("C", type=ListingType.CO_ED, verified=True)

    data = client.get("/api/pg/stats", headers=admin_headers).json()["data"]

    assert data == {
        "total": 3,
        "published": 2,
        "draft": 1,
        "featured": 1,
        "verified": 1,
        "boys": 1,
        "girls": 1,
        "coed": 1,
        "family": 0,
    }


@pytest.mark.integration
def test_sample_data(client, admin_headers):
    response = client.post("/api/pg/sample-data", headers=admin_headers)

    assert response.status_code == 201
    slugs = [item["slug"] for item in response.json()["data"]]
    assert slugs == ["royal-boys-pg", "sunshine-girls-pg", "student-hub-co-ed-pg"]
    assert client.get("/api/pg/Royal Boys PG").status_code == 200
