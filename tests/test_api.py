"""
HTTP-level tests for the LinkShrink API.
"""
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from linkshrink.services.link_service import LinkService


class TestCreateUrl:

    def test_create_short_url(self, client: TestClient):
        response = client.post("/api/urls", json={"originalUrl": "https://example.com"})
        assert response.status_code == 201

        data = response.json()
        assert data["originalUrl"] == "https://example.com"
        assert len(data["shortCode"]) == 6
        assert data["clicks"] == 0
        assert data["expiresAt"] is None
        assert data["shortUrl"].endswith("/" + data["shortCode"])
        assert data["createdAt"].endswith("+00:00")

    def test_custom_code(self, client: TestClient, create_link):
        data = create_link("https://example.org", customCode="my_link-1")
        assert data["shortCode"] == "my_link-1"

    def test_custom_code_taken(self, client: TestClient, create_link):
        create_link(customCode="taken")

        response = client.post("/api/urls", json={"originalUrl": "https://b.com", "customCode": "taken"})

        assert response.status_code == 400
        assert response.json() == {"error": "This custom code is already taken"}

    def test_invalid_url(self, client: TestClient):
        response = client.post("/api/urls", json={"originalUrl": "not-a-valid-url"})

        assert response.status_code == 400
        assert response.json()["error"] == "Please enter a valid URL"

    def test_custom_code_too_short(self, client: TestClient):
        response = client.post("/api/urls", json={"originalUrl": "https://a.com", "customCode": "ab"})

        assert response.status_code == 400
        assert response.json()["error"] == "Custom code must be at least 3 characters"

    def test_custom_code_bad_characters(self, client: TestClient):
        response = client.post("/api/urls", json={"originalUrl": "https://a.com", "customCode": "no spaces!"})

        assert response.status_code == 400
        assert "letters, numbers" in response.json()["error"]

    def test_malformed_expiry(self, client: TestClient):
        response = client.post("/api/urls", json={"originalUrl": "https://a.com", "expiresAt": "tomorrow"})
        assert response.status_code == 400

    def test_expiry_normalized_to_utc(self, client: TestClient, create_link):
        data = create_link(expiresAt="2030-06-01T12:00:00+02:00")
        assert data["expiresAt"] == "2030-06-01T10:00:00+00:00"


class TestBulkCreate:

    def test_bulk_create(self, client: TestClient):
        urls = [{"originalUrl": f"https://site{i}.com"} for i in range(3)]
        urls.append({"originalUrl": "https://custom.com", "customCode": "bulk-custom"})

        response = client.post("/api/urls/bulk", json={"urls": urls})

        assert response.status_code == 201
        data = response.json()
        assert len(data) == 4
        assert data[3]["shortCode"] == "bulk-custom"

    def test_51_urls_rejected(self, client: TestClient):
        urls = [{"originalUrl": f"https://site{i}.com"} for i in range(51)]

        response = client.post("/api/urls/bulk", json={"urls": urls})

        assert response.status_code == 400
        assert response.json()["error"] == "Maximum 50 URLs at once"
        assert client.get("/api/urls").json() == []

    def test_empty_batch_rejected(self, client: TestClient):
        response = client.post("/api/urls/bulk", json={"urls": []})

        assert response.status_code == 400
        assert response.json()["error"] == "At least one URL is required"

    def test_taken_code_rejects_batch(self, client: TestClient, create_link):
        create_link(customCode="mine")
        urls = [{"originalUrl": "https://a.com"}, {"originalUrl": "https://b.com", "customCode": "mine"}]

        response = client.post("/api/urls/bulk", json={"urls": urls})

        assert response.status_code == 400
        assert response.json() == {"error": 'Custom code "mine" is already taken'}
        assert len(client.get("/api/urls").json()) == 1


class TestReadDelete:

    def test_list_newest_first(self, client: TestClient, create_link):
        first = create_link("https://first.com")
        second = create_link("https://second.com")

        data = client.get("/api/urls").json()

        assert [u["id"] for u in data] == [second["id"], first["id"]]

    def test_get_by_id(self, client: TestClient, create_link):
        created = create_link("https://example.com")

        response = client.get(f"/api/urls/{created['id']}")

        assert response.status_code == 200
        assert response.json()["shortCode"] == created["shortCode"]

    def test_get_unknown_id(self, client: TestClient):
        response = client.get("/api/urls/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "URL not found"}

    def test_delete(self, client: TestClient, create_link):
        created = create_link("https://example.com")

        assert client.delete(f"/api/urls/{created['id']}").status_code == 204
        assert client.get(f"/api/urls/{created['id']}").status_code == 404
        assert client.get(f"/{created['shortCode']}", follow_redirects=False).status_code == 404
        assert client.delete(f"/api/urls/{created['id']}").status_code == 404


class TestRedirect:

    def test_redirect_is_permanent(self, client: TestClient, create_link):
        created = create_link("https://www.github.com/")

        response = client.get(f"/{created['shortCode']}", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "https://www.github.com/"

    def test_unknown_code(self, client: TestClient):
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404

    def test_malformed_code_falls_through(self, client: TestClient):
        assert client.get("/ab", follow_redirects=False).status_code == 404
        assert client.get("/" + "a" * 21, follow_redirects=False).status_code == 404
        assert client.get("/bad.code", follow_redirects=False).status_code == 404

    def test_expired_link(self, client: TestClient, create_link):
        created = create_link(expiresAt="2020-01-01T00:00:00Z")

        response = client.get(f"/{created['shortCode']}", follow_redirects=False)

        assert response.status_code == 404
        # Still visible through the management API
        assert client.get(f"/api/urls/{created['id']}").status_code == 200

    def test_three_clicks_end_to_end(self, client: TestClient, create_link):
        created = create_link("https://example.com")

        for _ in range(3):
            response = client.get(
                f"/{created['shortCode']}",
                headers={"Referer": "https://twitter.com"},
                follow_redirects=False
            )
            assert response.status_code == 301

        assert client.get(f"/api/urls/{created['id']}").json()["clicks"] == 3

        analytics = client.get(f"/api/urls/{created['id']}/analytics").json()
        assert len(analytics["clicksByHour"]) == 24
        assert sum(h["count"] for h in analytics["clicksByHour"]) == 3
        assert len(analytics["clicksByDay"]) == 1
        assert analytics["topReferrers"] == [{"referrer": "https://twitter.com", "count": 3}]
        assert analytics["topCountries"] == [{"country": "Unknown", "count": 3}]
        assert len(analytics["recentClicks"]) == 3
        assert "userAgent" not in analytics["recentClicks"][0]
        assert analytics["url"]["clicks"] == 3

    def test_analytics_unknown_id(self, client: TestClient):
        assert client.get("/api/urls/nope/analytics").status_code == 404


class TestUtilityEndpoints:

    def test_stats(self, client: TestClient, create_link):
        a = create_link("https://a.com")
        create_link("https://b.com")
        client.get(f"/{a['shortCode']}", follow_redirects=False)

        data = client.get("/api/stats").json()

        assert data["totalUrls"] == 2
        assert data["totalClicks"] == 1
        assert data["mostPopularUrl"] == {
            "shortCode": a["shortCode"],
            "originalUrl": "https://a.com",
            "clicks": 1,
        }

    def test_stats_empty(self, client: TestClient):
        data = client.get("/api/stats").json()
        assert data == {"totalUrls": 0, "totalClicks": 0, "mostPopularUrl": None}

    def test_check_code(self, client: TestClient, create_link):
        create_link(customCode="used")

        assert client.get("/api/check-code/used").json() == {"available": False}
        assert client.get("/api/check-code/free").json() == {"available": True}

    def test_cleanup(self, client: TestClient, create_link):
        create_link(expiresAt="2020-01-01T00:00:00Z")
        create_link("https://keep.com")

        assert client.post("/api/cleanup").json() == {"cleaned": 1}
        assert client.post("/api/cleanup").json() == {"cleaned": 0}
        assert len(client.get("/api/urls").json()) == 1

    def test_health(self, client: TestClient):
        assert client.get("/health").json()["status"] == "healthy"


class TestFailures:
    """Storage/runtime errors never leak details to the caller"""

    def test_redirect_storage_error_is_not_found(self, client: TestClient, create_link, monkeypatch):
        created = create_link("https://example.com")

        def broken_record_click(self, *args, **kwargs):
            raise OperationalError("UPDATE urls", {}, Exception("database is locked"))

        monkeypatch.setattr(LinkService, "record_click", broken_record_click)

        response = client.get(f"/{created['shortCode']}", follow_redirects=False)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_redirect_lookup_error_is_not_found(self, client: TestClient, monkeypatch):
        async def broken_resolve(self, *args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(LinkService, "resolve_redirect", broken_resolve)

        response = client.get("/abc123", follow_redirects=False)

        assert response.status_code == 404
        assert "connection reset" not in response.text

    def test_unhandled_error_is_generic_500(self, unguarded_client: TestClient, monkeypatch):
        async def broken_list(self):
            raise RuntimeError("secret detail")

        monkeypatch.setattr(LinkService, "list_links", broken_list)

        response = unguarded_client.get("/api/urls")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert "secret detail" not in response.text
        assert "Traceback" not in response.text
