"""
Integration tests for admin quote endpoints.

Tests cover:
- GET /api/admin/quotes (filters, pagination, ordering)
- POST /api/admin/quotes/approve
- GET /api/admin/recent-actions
- GET /api/admin/notifications
- Authentication and permission gating on all of them
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from carquote.models import Quote
from carquote.repositories.quote import QuoteRepository


BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def history_entry(action: str, when: datetime, customer_initiated: bool = True, reason=None):
    return {
        "action": action,
        "reason": reason,
        "note": "",
        "timestamp": when.isoformat(),
        "customerInitiated": customer_initiated,
    }


def customer_actions(*entries):
    return {"canCancel": True, "canReschedule": False, "actionHistory": list(entries)}


class TestAccessControl:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/quotes"),
            ("POST", "/api/admin/quotes/approve"),
            ("GET", "/api/admin/recent-actions"),
            ("GET", "/api/admin/notifications"),
        ],
    )
    async def test_requires_token(self, client, method, path):
        response = await client.request(method, path, json={"quoteId": "x"})

        assert response.status_code == 401
        assert response.json() == {"error": "No token provided"}

    async def test_invalid_token_is_401(self, client, bearer):
        response = await client.get("/api/admin/quotes", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication failed"}

    async def test_expired_token_is_401_not_403(self, client, seed_admin, admin_token, bearer):
        admin = await seed_admin(email="agent@example.com", permissions=[])
        token = admin_token(admin, expires_in=timedelta(seconds=-5))

        response = await client.get("/api/admin/quotes", headers=bearer(token))

        assert response.status_code == 401

    async def test_missing_permission_is_403(self, client, seed_admin, admin_token, bearer):
        admin = await seed_admin(
            email="driver@example.com",
            role="driver",
            permissions=["pickups"],
        )

        response = await client.get("/api/admin/quotes", headers=bearer(admin_token(admin)))

        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions"}

    async def test_super_admin_needs_no_permissions(self, client, seed_admin, admin_token, bearer):
        admin = await seed_admin(email="root@example.com", role="super_admin", permissions=[])

        response = await client.get("/api/admin/quotes", headers=bearer(admin_token(admin)))

        assert response.status_code == 200

    async def test_deactivated_admin_token_is_401(self, client, seed_admin, admin_token, bearer):
        admin = await seed_admin(email="gone@example.com", is_active=False)

        response = await client.get("/api/admin/quotes", headers=bearer(admin_token(admin)))

        assert response.status_code == 401


class TestListQuotes:
    async def test_newest_first_with_pagination(self, client, admin_headers, seed_quote):
        # Arrange
        for i in range(5):
            await seed_quote(quote_id=f"Q{i}", created_at=BASE_TIME + timedelta(minutes=i))

        # Act
        response = await client.get(
            "/api/admin/quotes",
            params={"limit": 2, "page": 2},
            headers=admin_headers,
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert [q["quoteId"] for q in data["quotes"]] == ["Q2", "Q1"]
        assert data["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalQuotes": 5,
            "hasNext": True,
            "hasPrev": True,
        }

    async def test_quote_fields_are_camel_case(self, client, admin_headers, seed_quote):
        await seed_quote(quote_id="ABC123", vin="1HGCM82633A004352")

        response = await client.get("/api/admin/quotes", headers=admin_headers)

        quote = response.json()["quotes"][0]
        assert quote["quoteId"] == "ABC123"
        assert quote["vehicleName"] == "2015 Honda Civic EX"
        assert quote["vin"] == "1HGCM82633A004352"
        assert quote["customerActions"]["canCancel"] is True
        assert "accessToken" in quote
        assert "createdAt" in quote

    async def test_status_filter(self, client, admin_headers, seed_quote):
        await seed_quote(quote_id="P1", status="pending")
        await seed_quote(quote_id="A1", status="accepted")
        await seed_quote(quote_id="A2", status="accepted")

        response = await client.get(
            "/api/admin/quotes",
            params={"status": "accepted"},
            headers=admin_headers,
        )

        data = response.json()
        assert sorted(q["quoteId"] for q in data["quotes"]) == ["A1", "A2"]
        assert data["pagination"]["totalQuotes"] == 2

    async def test_status_all_means_no_filter(self, client, admin_headers, seed_quote):
        await seed_quote(quote_id="P1", status="pending")
        await seed_quote(quote_id="C1", status="cancelled")

        response = await client.get(
            "/api/admin/quotes",
            params={"status": "all"},
            headers=admin_headers,
        )

        assert response.json()["pagination"]["totalQuotes"] == 2

    async def test_defaults_and_empty_result(self, client, admin_headers):
        response = await client.get("/api/admin/quotes", headers=admin_headers)

        assert response.json() == {
            "quotes": [],
            "pagination": {
                "currentPage": 1,
                "totalPages": 0,
                "totalQuotes": 0,
                "hasNext": False,
                "hasPrev": False,
            },
        }

    async def test_non_positive_params_fall_back_to_defaults(self, client, admin_headers, seed_quote):
        await seed_quote(quote_id="Q1")

        response = await client.get(
            "/api/admin/quotes",
            params={"limit": 0, "page": -3},
            headers=admin_headers,
        )

        data = response.json()
        assert data["pagination"]["currentPage"] == 1
        assert data["pagination"]["totalPages"] == 1
        assert len(data["quotes"]) == 1

    async def test_database_failure_is_500(self, client, admin_headers, monkeypatch):
        async def broken_list(self, **kwargs):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(QuoteRepository, "list_quotes", broken_list)

        response = await client.get("/api/admin/quotes", headers=admin_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch quotes"}


class TestApproveQuote:
    async def test_approve_pending_quote(self, client, database, quotes_admin, admin_headers, seed_quote):
        # Arrange
        quote = await seed_quote(quote_id="PEND01", status="pending")

        # Act
        response = await client.post(
            "/api/admin/quotes/approve",
            json={"quoteId": quote.id},
            headers=admin_headers,
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Quote approved successfully"
        assert data["quote"]["status"] == "accepted"
        assert data["quote"]["customerActions"]["canReschedule"] is True

        async with database.session() as session:
            stored = await session.get(Quote, quote.id)
            assert stored.status == "accepted"
            assert stored.last_action_at is not None
            entry = stored.action_history[-1]
            assert entry["action"] == "accepted"
            assert entry["reason"] == "admin_approved_quote"
            assert entry["adminUserId"] == quotes_admin.id
            assert entry["customerInitiated"] is False

    async def test_approve_by_public_quote_id(self, client, admin_headers, seed_quote):
        await seed_quote(quote_id="PUB123", status="pending")

        response = await client.post(
            "/api/admin/quotes/approve",
            json={"quoteId": "PUB123"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["quote"]["quoteId"] == "PUB123"

    async def test_approve_unknown_quote(self, client, admin_headers):
        response = await client.post(
            "/api/admin/quotes/approve",
            json={"quoteId": "does-not-exist"},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Quote not found"}

    async def test_approve_non_pending_quote(self, client, admin_headers, seed_quote):
        quote = await seed_quote(quote_id="DONE01", status="completed")

        response = await client.post(
            "/api/admin/quotes/approve",
            json={"quoteId": quote.id},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Quote cannot be approved in current status"}

    async def test_approve_without_quote_id(self, client, admin_headers):
        response = await client.post(
            "/api/admin/quotes/approve",
            json={},
            headers=admin_headers,
        )

        assert response.status_code == 422


class TestActivityFeeds:
    async def test_recent_actions_only_customer_initiated_newest_first(
        self, client, admin_headers, seed_quote
    ):
        # Arrange
        await seed_quote(
            quote_id="Q1",
            customer={"name": "Ann"},
            customer_actions=customer_actions(
                history_entry("cancelled", BASE_TIME, reason="found_better_offer"),
                history_entry("accepted", BASE_TIME + timedelta(hours=1), customer_initiated=False),
            ),
            last_action_at=BASE_TIME + timedelta(hours=1),
        )
        await seed_quote(
            quote_id="Q2",
            customer={"name": "Bob"},
            customer_actions=customer_actions(
                history_entry("rescheduled", BASE_TIME + timedelta(hours=2)),
            ),
            last_action_at=BASE_TIME + timedelta(hours=2),
        )
        await seed_quote(quote_id="Q3")

        # Act
        response = await client.get("/api/admin/recent-actions", headers=admin_headers)

        # Assert
        assert response.status_code == 200
        actions = response.json()["actions"]
        assert [(a["quoteId"], a["action"]) for a in actions] == [
            ("Q2", "rescheduled"),
            ("Q1", "cancelled"),
        ]
        assert actions[0]["customerName"] == "Bob"
        assert actions[1]["reason"] == "found_better_offer"
        assert actions[1]["vehicleName"] == "2015 Honda Civic EX"

    async def test_recent_actions_capped_at_ten(self, client, admin_headers, seed_quote):
        entries = [
            history_entry("modified", BASE_TIME + timedelta(minutes=i)) for i in range(15)
        ]
        await seed_quote(
            quote_id="BUSY",
            customer_actions=customer_actions(*entries),
            last_action_at=BASE_TIME + timedelta(minutes=14),
        )

        response = await client.get("/api/admin/recent-actions", headers=admin_headers)

        actions = response.json()["actions"]
        assert len(actions) == 10
        assert actions[0]["timestamp"].startswith("2026-01-01T12:14:00")

    async def test_notifications_cover_last_seven_days(self, client, admin_headers, seed_quote):
        now = datetime.now(timezone.utc)
        await seed_quote(
            quote_id="RECENT",
            customer={"name": "Cara"},
            customer_actions=customer_actions(
                history_entry("cancelled", now - timedelta(days=10)),
                history_entry("rescheduled", now - timedelta(days=1)),
            ),
            last_action_at=now - timedelta(days=1),
        )
        await seed_quote(
            quote_id="STALE",
            customer_actions=customer_actions(
                history_entry("cancelled", now - timedelta(days=30)),
            ),
            last_action_at=now - timedelta(days=30),
        )

        response = await client.get("/api/admin/notifications", headers=admin_headers)

        assert response.status_code == 200
        notifications = response.json()["notifications"]
        assert len(notifications) == 1
        assert notifications[0]["type"] == "rescheduled"
        assert notifications[0]["quoteId"] == "RECENT"
        assert notifications[0]["customerName"] == "Cara"

    async def test_notifications_scan_thirty_quotes(self, client, admin_headers, seed_quote):
        now = datetime.now(timezone.utc)
        for i in range(22):
            when = now - timedelta(minutes=i)
            await seed_quote(
                quote_id=f"ADMIN{i:02d}",
                customer_actions=customer_actions(
                    history_entry("accepted", when, customer_initiated=False),
                ),
                last_action_at=when,
            )
        for i in range(3):
            when = now - timedelta(hours=1, minutes=i)
            await seed_quote(
                quote_id=f"CUST{i:02d}",
                customer_actions=customer_actions(history_entry("cancelled", when)),
                last_action_at=when,
            )

        response = await client.get("/api/admin/notifications", headers=admin_headers)

        quote_ids = [n["quoteId"] for n in response.json()["notifications"]]
        assert quote_ids == ["CUST00", "CUST01", "CUST02"]

    async def test_notifications_capped_at_twenty(self, client, admin_headers, seed_quote):
        now = datetime.now(timezone.utc)
        entries = [history_entry("modified", now - timedelta(minutes=i)) for i in range(25)]
        await seed_quote(
            quote_id="BUSY",
            customer_actions=customer_actions(*entries),
            last_action_at=now,
        )

        response = await client.get("/api/admin/notifications", headers=admin_headers)

        assert len(response.json()["notifications"]) == 20

    async def test_feed_failures_are_500(self, client, admin_headers, monkeypatch):
        async def broken(self, **kwargs):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(QuoteRepository, "recently_active", broken)

        actions = await client.get("/api/admin/recent-actions", headers=admin_headers)
        notifications = await client.get("/api/admin/notifications", headers=admin_headers)

        assert actions.status_code == 500
        assert actions.json() == {"error": "Failed to fetch actions"}
        assert notifications.status_code == 500
        assert notifications.json() == {"error": "Failed to fetch notifications"}
