"""
Tests for notification inbox endpoints:
- GET /api/v1/notifications
- GET /api/v1/notifications/stats
- GET /api/v1/notifications/{id}
- PATCH /api/v1/notifications/{id}/read
- PATCH /api/v1/notifications/{id}/hide
- POST /api/v1/notifications/bulk-read
- GET /api/v1/notifications/negotiate
"""

from uuid import uuid4

from httpx import AsyncClient

from inbox_api.config import settings

BASE = "/api/v1/notifications"


class TestIdentity:
    """Identity resolution and the access gate."""

    async def test_list_requires_identity(self, async_client: AsyncClient):
        """No bearer token and no X-User-Id returns 401."""
        response = await async_client.get(BASE)
        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "UNAUTHORIZED"

    async def test_bearer_token_identifies_user(
        self, async_client: AsyncClient, test_user: dict, bearer_headers, make_notification
    ):
        await make_notification(test_user["id"], title="Hello")
        response = await async_client.get(BASE, headers=bearer_headers(test_user["user_id"]))
        assert response.status_code == 200
        assert [item["title"] for item in response.json()["items"]] == ["Hello"]

    async def test_invalid_bearer_token(self, async_client: AsyncClient):
        response = await async_client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_malformed_user_id_header(self, async_client: AsyncClient):
        response = await async_client.get(BASE, headers={"X-User-Id": "bob"})
        assert response.status_code == 401

    async def test_user_id_header_can_be_disabled(
        self, async_client: AsyncClient, test_user: dict, auth_headers, monkeypatch
    ):
        """With the trusted header off, only bearer tokens identify callers."""
        monkeypatch.setattr(settings, "allow_user_id_header", False)
        response = await async_client.get(BASE, headers=auth_headers(test_user["user_id"]))
        assert response.status_code == 401

    async def test_unknown_user_is_forbidden(self, async_client: AsyncClient, auth_headers):
        response = await async_client.get(BASE, headers=auth_headers(str(uuid4())))
        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "FORBIDDEN"
        assert "request_id" in error

    async def test_forbidden_before_not_found(self, async_client: AsyncClient, auth_headers):
        """The access gate runs before any lookup."""
        response = await async_client.get(
            f"{BASE}/{uuid4()}", headers=auth_headers(str(uuid4()))
        )
        assert response.status_code == 403

    async def test_forbidden_before_validation(self, async_client: AsyncClient, auth_headers):
        response = await async_client.get(
            BASE, params={"limit": 0}, headers=auth_headers(str(uuid4()))
        )
        assert response.status_code == 403

    async def test_every_inbox_route_is_gated(self, async_client: AsyncClient, auth_headers):
        headers = auth_headers(str(uuid4()))
        notification_id = uuid4()

        responses = [
            await async_client.get(f"{BASE}/stats", headers=headers),
            await async_client.patch(
                f"{BASE}/{notification_id}/read", json={"is_read": True}, headers=headers
            ),
            await async_client.patch(f"{BASE}/{notification_id}/hide", headers=headers),
            await async_client.post(
                f"{BASE}/bulk-read", json={"all_unread": True}, headers=headers
            ),
        ]
        assert [r.status_code for r in responses] == [403, 403, 403, 403]


class TestListNotifications:
    """GET /api/v1/notifications tests."""

    async def test_list_shape(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        """Items, next_cursor and stats are returned together."""
        await make_notification(
            test_user["id"],
            title="Invoice overdue",
            category="billing",
            severity="warning",
            source_entity_type="invoice",
            source_entity_id=uuid4(),
            payload={"amount": 10},
        )

        response = await async_client.get(BASE, headers=auth_headers(test_user["user_id"]))

        assert response.status_code == 200
        data = response.json()
        assert data["next_cursor"] is not None
        assert data["stats"] == {
            "unread_total": 1,
            "by_category": {"billing": 1},
            "by_severity": {"warning": 1},
        }
        item = data["items"][0]
        assert "user_notification_id" not in item
        assert item["title"] == "Invoice overdue"
        assert item["severity"] == "warning"
        assert item["is_read"] is False
        assert item["source"]["type"] == "invoice"
        assert item["payload"] == {"amount": 10}

    async def test_cursor_walk(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        for minutes, title in [(1, "A"), (2, "B"), (3, "C")]:
            await make_notification(test_user["id"], minutes=minutes, title=title)
        headers = auth_headers(test_user["user_id"])

        first = (await async_client.get(BASE, params={"limit": 2}, headers=headers)).json()
        assert [item["title"] for item in first["items"]] == ["C", "B"]

        second = (
            await async_client.get(
                BASE, params={"limit": 2, "cursor": first["next_cursor"]}, headers=headers
            )
        ).json()
        assert [item["title"] for item in second["items"]] == ["A"]

        third = (
            await async_client.get(
                BASE, params={"limit": 2, "cursor": second["next_cursor"]}, headers=headers
            )
        ).json()
        assert third["items"] == []
        assert third["next_cursor"] is None

    async def test_query_filters(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        await make_notification(test_user["id"], minutes=0, severity="critical", title="early")
        await make_notification(test_user["id"], minutes=30, severity="critical", title="late")
        await make_notification(test_user["id"], minutes=31, severity="info", title="info")

        response = await async_client.get(
            BASE,
            params={
                "severity": "CRITICAL",
                "from": "2026-01-01T12:10:00Z",
                "sort": "created_at_asc",
            },
            headers=auth_headers(test_user["user_id"]),
        )

        assert response.status_code == 200
        assert [item["title"] for item in response.json()["items"]] == ["late"]

    async def test_limit_out_of_range(self, async_client: AsyncClient, test_user: dict, auth_headers):
        response = await async_client.get(
            BASE, params={"limit": 101}, headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"] == {"limit": ["Limit must be between 1 and 100."]}

    async def test_invalid_severity(self, async_client: AsyncClient, test_user: dict, auth_headers):
        response = await async_client.get(
            BASE, params={"severity": "urgent"}, headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422
        assert list(response.json()["error"]["details"]) == ["severity"]

    async def test_invalid_cursor_reported_first(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.get(
            BASE,
            params={"cursor": "abc", "limit": 0, "sort": "newest"},
            headers=auth_headers(test_user["user_id"]),
        )
        assert response.status_code == 422
        assert response.json()["error"]["details"] == {"cursor": ["Cursor must be a valid UUID."]}

    async def test_invalid_sort(self, async_client: AsyncClient, test_user: dict, auth_headers):
        response = await async_client.get(
            BASE, params={"sort": "newest"}, headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422
        assert list(response.json()["error"]["details"]) == ["sort"]

    async def test_non_integer_limit(self, async_client: AsyncClient, test_user: dict, auth_headers):
        response = await async_client.get(
            BASE, params={"limit": "ten"}, headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_response_has_request_id(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.get(BASE, headers=auth_headers(test_user["user_id"]))
        assert response.headers.get("X-Request-ID")


class TestGetNotification:
    """GET /api/v1/notifications/{id} tests."""

    async def test_get_returns_detail(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        notification, _ = await make_notification(test_user["id"], title="Hello", open_url="/x")
        response = await async_client.get(
            f"{BASE}/{notification.id}", headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(notification.id)
        assert data["title"] == "Hello"
        assert data["open_url"] == "/x"
        assert data["source"] is None

    async def test_get_unknown_returns_404(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.get(
            f"{BASE}/{uuid4()}", headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "NOT_FOUND"

    async def test_get_malformed_id_returns_422(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.get(
            f"{BASE}/not-a-uuid", headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422


class TestMarkRead:
    """PATCH /api/v1/notifications/{id}/read tests."""

    async def test_mark_read_then_unread(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        notification, _ = await make_notification(test_user["id"])
        headers = auth_headers(test_user["user_id"])
        url = f"{BASE}/{notification.id}"

        response = await async_client.patch(f"{url}/read", json={"is_read": True}, headers=headers)
        assert response.status_code == 204
        assert (await async_client.get(url, headers=headers)).json()["is_read"] is True

        response = await async_client.patch(f"{url}/read", json={"is_read": False}, headers=headers)
        assert response.status_code == 204
        assert (await async_client.get(url, headers=headers)).json()["is_read"] is False

    async def test_mark_read_unknown_returns_404(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.patch(
            f"{BASE}/{uuid4()}/read",
            json={"is_read": True},
            headers=auth_headers(test_user["user_id"]),
        )
        assert response.status_code == 404

    async def test_mark_read_requires_body(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        notification, _ = await make_notification(test_user["id"])
        response = await async_client.patch(
            f"{BASE}/{notification.id}/read", json={}, headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422


class TestHide:
    """PATCH /api/v1/notifications/{id}/hide tests."""

    async def test_hide_then_gone(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        notification, _ = await make_notification(test_user["id"])
        headers = auth_headers(test_user["user_id"])
        url = f"{BASE}/{notification.id}"

        assert (await async_client.patch(f"{url}/hide", headers=headers)).status_code == 204
        assert (await async_client.get(url, headers=headers)).status_code == 404
        assert (await async_client.patch(f"{url}/hide", headers=headers)).status_code == 404

        listing = (await async_client.get(BASE, headers=headers)).json()
        assert listing["items"] == []
        assert listing["stats"]["unread_total"] == 0


class TestBulkRead:
    """POST /api/v1/notifications/bulk-read tests."""

    async def test_bulk_read_ids(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        first, _ = await make_notification(test_user["id"], minutes=1)
        second, _ = await make_notification(test_user["id"], minutes=2, is_read=True)

        response = await async_client.post(
            f"{BASE}/bulk-read",
            json={"ids": [str(first.id), str(second.id), str(first.id)]},
            headers=auth_headers(test_user["user_id"]),
        )

        assert response.status_code == 200
        assert response.json() == {"updated": 1}

    async def test_bulk_read_all_unread_with_filters(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        await make_notification(test_user["id"], minutes=1, category="billing")
        await make_notification(test_user["id"], minutes=2, category="deploys")
        headers = auth_headers(test_user["user_id"])

        response = await async_client.post(
            f"{BASE}/bulk-read",
            json={"all_unread": True, "filters": {"category": "billing"}},
            headers=headers,
        )

        assert response.json() == {"updated": 1}
        stats = (await async_client.get(f"{BASE}/stats", headers=headers)).json()
        assert stats["by_category"] == {"deploys": 1}

    async def test_bulk_read_empty_body(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.post(
            f"{BASE}/bulk-read", json={}, headers=auth_headers(test_user["user_id"])
        )
        assert response.status_code == 422
        assert response.json()["error"]["details"] == {
            "ids": ["Provide at least one notification id or set all_unread to true."]
        }

    async def test_bulk_read_bad_filter_severity(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.post(
            f"{BASE}/bulk-read",
            json={"all_unread": True, "filters": {"severity": "loud"}},
            headers=auth_headers(test_user["user_id"]),
        )
        assert response.status_code == 422
        assert list(response.json()["error"]["details"]) == ["filters.severity"]

    async def test_bulk_read_malformed_id(
        self, async_client: AsyncClient, test_user: dict, auth_headers
    ):
        response = await async_client.post(
            f"{BASE}/bulk-read",
            json={"ids": ["nope"]},
            headers=auth_headers(test_user["user_id"]),
        )
        assert response.status_code == 422


class TestStats:
    """GET /api/v1/notifications/stats tests."""

    async def test_stats(
        self, async_client: AsyncClient, test_user: dict, auth_headers, make_notification
    ):
        await make_notification(test_user["id"], minutes=1, category="billing", severity="critical")
        await make_notification(test_user["id"], minutes=2, category="billing", severity="info")
        await make_notification(test_user["id"], minutes=3, category="billing", is_read=True)

        response = await async_client.get(
            f"{BASE}/stats", headers=auth_headers(test_user["user_id"])
        )

        assert response.status_code == 200
        assert response.json() == {
            "unread_total": 2,
            "by_category": {"billing": 2},
            "by_severity": {"critical": 1, "info": 1},
        }


class TestNegotiate:
    """GET /api/v1/notifications/negotiate tests."""

    async def test_negotiate_is_anonymous(self, async_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "realtime_url", "wss://realtime.example.test/hub")
        monkeypatch.setattr(settings, "realtime_access_token", "token-123")

        response = await async_client.get(f"{BASE}/negotiate")

        assert response.status_code == 200
        assert response.json() == {
            "url": "wss://realtime.example.test/hub",
            "access_token": "token-123",
            "expires_in": 3600,
        }

    async def test_negotiate_is_rate_limited(self, async_client: AsyncClient):
        statuses = [
            (await async_client.get(f"{BASE}/negotiate")).status_code for _ in range(61)
        ]
        assert statuses[:60] == [200] * 60
        assert statuses[60] == 429
