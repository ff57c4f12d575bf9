"""HTTP tests for the /notifications routes."""

import pytest

from taskhub.models import Notification, NotificationCategory


@pytest.fixture
def alice_feed(make_notification, admin, alice):
    """Twelve notifications for alice, oldest first"""
    return [
        make_notification(alice, admin, message=f"Notification {i}")
        for i in range(12)
    ]


def grant(client, auth_headers, owner, watcher, types=None):
    body = {"watchers": [{"userId": watcher.id, "allowedTypes": types}]}
    response = client.put("/watchlist/update", json=body, headers=auth_headers(owner))
    assert response.status_code == 200


class TestOwnFeed:
    def test_requires_authentication(self, client):
        assert client.get("/notifications").status_code == 401

    def test_first_page_newest_first(self, client, auth_headers, alice, alice_feed):
        response = client.get("/notifications", params={"page": 1, "limit": 5}, headers=auth_headers(alice))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 12
        assert body["page"] == 1
        assert body["hasMore"] is True
        assert [n["id"] for n in body["notifications"]] == [n.id for n in reversed(alice_feed)][:5]

    def test_last_page(self, client, auth_headers, alice, alice_feed):
        body = client.get("/notifications", params={"page": 3, "limit": 5}, headers=auth_headers(alice)).json()

        assert [n["message"] for n in body["notifications"]] == ["Notification 1", "Notification 0"]
        assert body["hasMore"] is False

    def test_page_beyond_range_is_empty(self, client, auth_headers, alice, alice_feed):
        body = client.get("/notifications", params={"page": 9, "limit": 5}, headers=auth_headers(alice)).json()

        assert body["notifications"] == []
        assert body["hasMore"] is False
        assert body["total"] == 12

    def test_huge_page_number_is_an_empty_page(self, client, auth_headers, alice, alice_feed):
        response = client.get(
            "/notifications", params={"page": "1000000000000000000", "limit": 100}, headers=auth_headers(alice),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["notifications"] == []
        assert body["hasMore"] is False
        assert body["total"] == 12
        assert body["page"] == 1000000000000000000

    def test_page_just_past_the_end(self, client, auth_headers, alice, alice_feed):
        body = client.get("/notifications", params={"page": 4, "limit": 4}, headers=auth_headers(alice)).json()

        assert body["notifications"] == []
        assert body["hasMore"] is False

    def test_malformed_paging_falls_back_to_defaults(self, client, auth_headers, alice, alice_feed):
        body = client.get(
            "/notifications", params={"page": "abc", "limit": "-3"}, headers=auth_headers(alice),
        ).json()

        assert body["page"] == 1
        assert len(body["notifications"]) == 10
        assert body["hasMore"] is True

    def test_oversized_limit_is_capped(self, client, auth_headers, alice, alice_feed):
        body = client.get("/notifications", params={"limit": 5000}, headers=auth_headers(alice)).json()

        assert len(body["notifications"]) == 12
        assert body["hasMore"] is False

    def test_wire_format(self, client, auth_headers, admin, alice, make_notification, task):
        make_notification(
            alice, admin, NotificationCategory.TASK_EDIT, "Edited", task_id=task.id, meta={"teamName": "Platform"},
        )

        [notification] = client.get("/notifications", headers=auth_headers(alice)).json()["notifications"]
        assert notification["recipientId"] == alice.id
        assert notification["senderId"] == admin.id
        assert notification["taskId"] == task.id
        assert notification["type"] == "task_edit"
        assert notification["category"] == "task_edit"
        assert notification["priority"] == "primary"
        assert notification["metadata"] == {"teamName": "Platform"}
        assert notification["isRead"] is False
        assert notification["readAt"] is None
        assert "createdAt" in notification

    def test_type_filter(self, client, auth_headers, admin, alice, make_notification):
        make_notification(alice, admin, NotificationCategory.CHAT, "Chat")
        make_notification(alice, admin, NotificationCategory.ASSIGNMENT, "Assigned")

        body = client.get("/notifications", params={"type": "chat"}, headers=auth_headers(alice)).json()
        assert [n["message"] for n in body["notifications"]] == ["Chat"]
        assert body["total"] == 1

        body = client.get("/notifications", params={"type": "all"}, headers=auth_headers(alice)).json()
        assert body["total"] == 2

    def test_unknown_type_matches_nothing(self, client, auth_headers, admin, alice, make_notification):
        make_notification(alice, admin)

        body = client.get("/notifications", params={"type": "bogus"}, headers=auth_headers(alice)).json()
        assert body["notifications"] == []
        assert body["total"] == 0

    def test_own_user_id_is_the_own_feed(self, client, auth_headers, alice, alice_feed):
        body = client.get("/notifications", params={"userId": alice.id}, headers=auth_headers(alice)).json()

        assert body["total"] == 12
        assert "hasMore" in body

    def test_never_shows_other_users_rows(self, client, auth_headers, admin, alice, bob, make_notification):
        make_notification(bob, admin, message="For bob")

        body = client.get("/notifications", headers=auth_headers(alice)).json()
        assert body["notifications"] == []


class TestWatchedFeed:
    def test_denied_without_grant(self, client, auth_headers, alice, bob, alice_feed):
        response = client.get("/notifications", params={"userId": alice.id}, headers=auth_headers(bob))

        assert response.status_code == 403
        assert response.json()["detail"] == "You don't have permission to view this user's notifications"

    def test_non_numeric_user_id_is_denied(self, client, auth_headers, bob):
        response = client.get("/notifications", params={"userId": "someone"}, headers=auth_headers(bob))

        assert response.status_code == 403

    def test_all_grant_is_unpaged(self, client, auth_headers, alice, bob, alice_feed):
        grant(client, auth_headers, alice, bob, ["all"])

        response = client.get(
            "/notifications", params={"userId": alice.id, "page": 2, "limit": 3}, headers=auth_headers(bob),
        )

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"notifications"}
        assert len(body["notifications"]) == 12
        assert body["notifications"][0]["message"] == "Notification 11"

    def test_restricted_grant_filters_categories(self, client, auth_headers, admin, alice, bob, make_notification):
        make_notification(alice, admin, NotificationCategory.CHAT, "Chat")
        make_notification(alice, admin, NotificationCategory.ASSIGNMENT, "Assigned")
        grant(client, auth_headers, alice, bob, ["assignment"])

        body = client.get("/notifications", params={"userId": alice.id}, headers=auth_headers(bob)).json()
        assert [n["message"] for n in body["notifications"]] == ["Assigned"]

    def test_requested_type_outside_grant_is_empty(self, client, auth_headers, admin, alice, bob, make_notification):
        make_notification(alice, admin, NotificationCategory.CHAT, "Chat")
        grant(client, auth_headers, alice, bob, ["assignment"])

        response = client.get(
            "/notifications", params={"userId": alice.id, "type": "chat"}, headers=auth_headers(bob),
        )

        assert response.status_code == 200
        assert response.json() == {"notifications": []}

    def test_capped_at_fifty(self, client, auth_headers, admin, alice, bob, make_notification):
        for i in range(55):
            make_notification(alice, admin, message=f"n{i}")
        grant(client, auth_headers, alice, bob)

        body = client.get("/notifications", params={"userId": alice.id}, headers=auth_headers(bob)).json()
        assert len(body["notifications"]) == 50
        assert body["notifications"][0]["message"] == "n54"


class TestReadState:
    def test_mark_read_then_unread(self, client, auth_headers, db, admin, alice, make_notification):
        notification = make_notification(alice, admin)

        response = client.put(f"/notifications/{notification.id}/read", headers=auth_headers(alice))
        assert response.status_code == 200
        assert response.json() == {"success": True}
        db.refresh(notification)
        assert notification.is_read is True
        assert notification.read_at is not None

        client.put(f"/notifications/{notification.id}/unread", headers=auth_headers(alice))
        db.refresh(notification)
        assert notification.is_read is False
        assert notification.read_at is None

    def test_marking_read_twice_keeps_first_timestamp(self, client, auth_headers, db, admin, alice, make_notification):
        notification = make_notification(alice, admin)

        client.put(f"/notifications/{notification.id}/read", headers=auth_headers(alice))
        db.refresh(notification)
        first_read_at = notification.read_at
        client.put(f"/notifications/{notification.id}/read", headers=auth_headers(alice))
        db.refresh(notification)

        assert notification.read_at == first_read_at

    def test_cannot_touch_another_users_notification(self, client, auth_headers, db, admin, alice, bob, make_notification):
        notification = make_notification(alice, admin)

        response = client.put(f"/notifications/{notification.id}/read", headers=auth_headers(bob))

        assert response.status_code == 404
        assert response.json()["detail"] == "Notification not found"
        db.refresh(notification)
        assert notification.is_read is False

    def test_unknown_notification(self, client, auth_headers, alice):
        assert client.put("/notifications/9999/unread", headers=auth_headers(alice)).status_code == 404

    def test_read_all_only_touches_callers_rows(self, client, auth_headers, db, admin, alice, bob, make_notification):
        for _ in range(3):
            make_notification(alice, admin)
        bobs = make_notification(bob, admin)

        response = client.put("/notifications/read-all", headers=auth_headers(alice))

        assert response.status_code == 200
        assert response.json() == {"success": True}
        rows = db.query(Notification).filter(Notification.recipient_id == alice.id).all()
        for row in rows:
            db.refresh(row)
            assert row.is_read is True
            assert row.read_at is not None
        db.refresh(bobs)
        assert bobs.is_read is False

    def test_unread_count(self, client, auth_headers, admin, alice, bob, make_notification):
        first = make_notification(alice, admin)
        make_notification(alice, admin)
        make_notification(bob, admin)

        assert client.get("/notifications/unread-count", headers=auth_headers(alice)).json() == {"unread": 2}

        client.put(f"/notifications/{first.id}/read", headers=auth_headers(alice))
        assert client.get("/notifications/unread-count", headers=auth_headers(alice)).json() == {"unread": 1}

        client.put("/notifications/read-all", headers=auth_headers(alice))
        assert client.get("/notifications/unread-count", headers=auth_headers(alice)).json() == {"unread": 0}
