"""Tests for the contact inbox."""

from conftest import CONTACT_BODY
from studio.models import Customer


class TestContacts:
    def test_submit_stores_inquiry_and_customer(self, client, db):
        response = client.post("/contacts", json=CONTACT_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "new"
        assert body["email"] == "ana@example.com"
        assert db.query(Customer).filter(Customer.email == "ana@example.com").count() == 1

    def test_repeat_contact_reuses_customer(self, client, db):
        client.post("/contacts", json=CONTACT_BODY)
        client.post("/contacts", json={**CONTACT_BODY, "message": "Following up"})
        assert db.query(Customer).count() == 1

    def test_message_required(self, client):
        response = client.post("/contacts", json={**CONTACT_BODY, "message": "   "})
        assert response.status_code == 422

    def test_admin_inbox_and_status_update(self, client, admin_headers):
        contact_id = client.post("/contacts", json=CONTACT_BODY).json()["id"]

        inbox = client.get("/admin/contacts", headers=admin_headers)
        assert [c["id"] for c in inbox.json()] == [contact_id]

        updated = client.patch(f"/admin/contacts/{contact_id}", json={"status": "replied"}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json()["status"] == "replied"

        assert client.get("/admin/contacts", params={"status": "new"}, headers=admin_headers).json() == []

    def test_invalid_status(self, client, admin_headers):
        contact_id = client.post("/contacts", json=CONTACT_BODY).json()["id"]
        response = client.patch(f"/admin/contacts/{contact_id}", json={"status": "spam"}, headers=admin_headers)
        assert response.status_code == 422

    def test_unknown_contact(self, client, admin_headers):
        response = client.patch("/admin/contacts/missing", json={"status": "read"}, headers=admin_headers)
        assert response.status_code == 404

    def test_inbox_requires_admin(self, client):
        assert client.get("/admin/contacts").status_code in (401, 403)
