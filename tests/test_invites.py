"""Tests for invites (events), listing, details and RSVPs."""
from datetime import datetime, timedelta, timezone

from app.config import settings
from app.models.invite import RSVP, RSVPStatus
from tests.conftest import (
    auth_headers,
    create_invite_link,
    create_test_circle,
    create_test_invite,
    create_test_user,
    join_circle,
)


class TestInviteCRUD:

    def test_create_open_invite(self, client):
        sender = create_test_user(client, name="Sender")
        invite_id = create_test_invite(client, sender["user_id"], title="Picnic")
        assert invite_id.startswith("invite-")

        resp = client.get(f"/api/invites/{invite_id}", headers=auth_headers(sender["user_id"]))
        assert resp.status_code == 200
        data = resp.json()
        assert data["invite"]["title"] == "Picnic"
        assert data["invite"]["circle_id"] is None
        assert data["sender"]["user_id"] == sender["user_id"]
        assert data["circle"] is None
        assert data["rsvps"] == []
        assert data["feed_items"] == []
        assert data["media_items"] == []

    def test_create_requires_title_and_date(self, client):
        sender = create_test_user(client)
        resp = client.post("/api/invites/", headers=auth_headers(sender["user_id"]), json={
            "event_date": datetime.now(timezone.utc).isoformat(),
        })
        assert resp.status_code == 400
        resp = client.post("/api/invites/", headers=auth_headers(sender["user_id"]), json={"title": "No date"})
        assert resp.status_code == 400

    def test_create_for_unknown_circle(self, client):
        sender = create_test_user(client)
        resp = client.post("/api/invites/", headers=auth_headers(sender["user_id"]), json={
            "title": "Lost",
            "event_date": datetime.now(timezone.utc).isoformat(),
            "circle_id": "circle-doesnotexist",
        })
        assert resp.status_code == 404

    def test_details_not_found(self, client):
        user = create_test_user(client)
        resp = client.get("/api/invites/invite-nope", headers=auth_headers(user["user_id"]))
        assert resp.status_code == 404

    def test_details_include_circle_roster(self, client):
        owner = create_test_user(client, name="Owner")
        applicant = create_test_user(client, name="Applicant")
        circle = create_test_circle(client, owner["user_id"], name="Runners")
        join_circle(client, applicant["user_id"], circle["invite_code"])
        invite_id = create_test_invite(client, owner["user_id"], circle_id=circle["circle_id"])

        resp = client.get(f"/api/invites/{invite_id}", headers=auth_headers(owner["user_id"]))
        circle_out = resp.json()["circle"]
        assert circle_out["name"] == "Runners"
        assert [m["user_id"] for m in circle_out["members"]] == [owner["user_id"]]

    def test_delete_by_sender(self, client, db):
        sender = create_test_user(client, name="Sender")
        invite_id = create_test_invite(client, sender["user_id"])
        client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(sender["user_id"]), json={"status": "YES"})

        resp = client.delete(f"/api/invites/{invite_id}", headers=auth_headers(sender["user_id"]))
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert db.query(RSVP).count() == 0
        resp = client.get(f"/api/invites/{invite_id}", headers=auth_headers(sender["user_id"]))
        assert resp.status_code == 404

    def test_delete_by_other_forbidden(self, client):
        sender = create_test_user(client, name="Sender")
        other = create_test_user(client, name="Other")
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.delete(f"/api/invites/{invite_id}", headers=auth_headers(other["user_id"]))
        assert resp.status_code == 403


class TestInviteListing:

    def test_lists_sent_and_circle_invites_by_date(self, client):
        owner = create_test_user(client, name="Owner")
        guest = create_test_user(client, name="Guest")
        outsider = create_test_user(client, name="Outsider")
        circle = create_test_circle(client, owner["user_id"], name="Supper Club")
        link = create_invite_link(client, owner["user_id"], circle["circle_id"])
        join_circle(client, guest["user_id"], link["code"])

        later = create_test_invite(client, owner["user_id"], title="Later", circle_id=circle["circle_id"], days_ahead=10)
        sooner = create_test_invite(client, owner["user_id"], title="Sooner", circle_id=circle["circle_id"], days_ahead=2)
        own = create_test_invite(client, guest["user_id"], title="Own", days_ahead=5)
        create_test_invite(client, outsider["user_id"], title="Elsewhere", days_ahead=1)

        resp = client.get("/api/invites/", headers=auth_headers(guest["user_id"]))
        assert resp.status_code == 200
        items = resp.json()
        assert [i["invite"]["invite_id"] for i in items] == [sooner, own, later]
        assert items[0]["circle"] == {"circle_id": circle["circle_id"], "name": "Supper Club"}
        assert items[1]["circle"] is None
        assert items[0]["sender"]["user_id"] == owner["user_id"]

    def test_listing_includes_rsvp_counts(self, client):
        sender = create_test_user(client, name="Sender")
        friend = create_test_user(client, name="Friend")
        invite_id = create_test_invite(client, sender["user_id"])
        client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(sender["user_id"]), json={"status": "YES"})
        client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(friend["user_id"]), json={"status": "NO"})

        items = client.get("/api/invites/", headers=auth_headers(sender["user_id"])).json()
        assert len(items) == 1
        assert items[0]["rsvp_count"] == 2


class TestRSVP:

    def test_rsvp_upsert_keeps_one_row(self, client, db):
        sender = create_test_user(client, name="Sender")
        guest = create_test_user(client, name="Guest")
        invite_id = create_test_invite(client, sender["user_id"])

        first = client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(guest["user_id"]), json={
            "status": "MAYBE", "guest_count": 1,
        })
        assert first.status_code == 200
        assert first.json()["status"] == "MAYBE"

        second = client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(guest["user_id"]), json={
            "status": "YES", "guest_count": 3, "dietary": "vegetarian",
        })
        assert second.status_code == 200
        assert second.json()["status"] == "YES"
        assert second.json()["guest_count"] == 3
        assert second.json()["user"]["user_id"] == guest["user_id"]

        rows = db.query(RSVP).filter(RSVP.invite_id == invite_id).all()
        assert len(rows) == 1
        assert rows[0].status == RSVPStatus.yes
        assert rows[0].guest_count == 3
        assert rows[0].dietary == "vegetarian"

    def test_status_is_case_insensitive(self, client):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(sender["user_id"]), json={
            "status": "maybe",
        })
        assert resp.status_code == 200
        assert resp.json()["status"] == "MAYBE"

    def test_invalid_status(self, client):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(sender["user_id"]), json={
            "status": "PERHAPS",
        })
        assert resp.status_code == 400

    def test_missing_status(self, client):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(sender["user_id"]), json={})
        assert resp.status_code == 400

    def test_guest_count_floor(self, client):
        sender = create_test_user(client)
        invite_id = create_test_invite(client, sender["user_id"])
        resp = client.post(f"/api/invites/{invite_id}/rsvp", headers=auth_headers(sender["user_id"]), json={
            "status": "YES", "guest_count": 0,
        })
        assert resp.json()["guest_count"] == 1

    def test_rsvp_unknown_invite(self, client):
        user = create_test_user(client)
        resp = client.post("/api/invites/invite-nope/rsvp", headers=auth_headers(user["user_id"]), json={
            "status": "YES",
        })
        assert resp.status_code == 404


class TestCircleMembershipEnforcement:

    def test_open_by_default(self, client):
        owner = create_test_user(client, name="Owner")
        stranger = create_test_user(client, name="Stranger")
        circle = create_test_circle(client, owner["user_id"])
        invite_id = create_test_invite(client, owner["user_id"], circle_id=circle["circle_id"])
        resp = client.get(f"/api/invites/{invite_id}", headers=auth_headers(stranger["user_id"]))
        assert resp.status_code == 200

    def test_enforced_when_enabled(self, client, monkeypatch):
        owner = create_test_user(client, name="Owner")
        stranger = create_test_user(client, name="Stranger")
        circle = create_test_circle(client, owner["user_id"])
        invite_id = create_test_invite(client, owner["user_id"], circle_id=circle["circle_id"])
        monkeypatch.setattr(settings, "ENFORCE_CIRCLE_MEMBERSHIP", True)

        resp = client.get(f"/api/invites/{invite_id}", headers=auth_headers(stranger["user_id"]))
        assert resp.status_code == 401
        resp = client.post("/api/invites/", headers=auth_headers(stranger["user_id"]), json={
            "title": "Crash the party",
            "event_date": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
            "circle_id": circle["circle_id"],
        })
        assert resp.status_code == 401
        resp = client.get(f"/api/invites/{invite_id}", headers=auth_headers(owner["user_id"]))
        assert resp.status_code == 200
