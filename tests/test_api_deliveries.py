"""Tests for the /deliveries routes."""
from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest


@pytest.fixture()
def coordinator(make_user):
    return make_user(role="delivery_coordinator", full_name="Dana Coordinator")


@pytest.fixture()
def headers(coordinator, auth_headers):
    return auth_headers(coordinator)


def test_create_falls_back_to_recipient_address(client, headers, make_recipient):
    recipient = make_recipient("Riverside Clinic")

    response = client.post(
        "/deliveries",
        json={"recipient_id": str(recipient.id), "target_delivery_date": "2024-02-01", "wigs": 2},
        headers=headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["address"] == "12 Main St | Boston, MA, 02110"
    assert body["status_id"] == 1
    assert body["status_label"] == "Awaiting confirmation"
    assert body["recipient_name"] == "Riverside Clinic"
    assert (body["wigs"], body["beanies"]) == (2, 0)


def test_create_requires_an_address(client, headers, make_recipient):
    recipient = make_recipient(address=None, city=None, state=None, zip=None)

    response = client.post("/deliveries", json={"recipient_id": str(recipient.id)}, headers=headers)

    assert response.status_code == 400
    assert "address is required" in response.json()["detail"]


@pytest.mark.parametrize(
    "extra, detail",
    [
        ({"status_id": 7}, "Unknown delivery status"),
        ({"recipient_contact_slot": "tertiary"}, "Unknown contact slot"),
        ({"wigs": -1}, "non-negative"),
        ({"coordinator_id": str(uuid4())}, "Unknown coordinator"),
    ],
)
def test_create_rejects_invalid_fields(client, headers, make_recipient, extra, detail):
    recipient = make_recipient()

    response = client.post("/deliveries", json={"recipient_id": str(recipient.id), **extra}, headers=headers)

    assert response.status_code == 400
    assert detail in response.json()["detail"]


def test_create_rejects_unknown_recipient(client, headers):
    response = client.post("/deliveries", json={"recipient_id": str(uuid4())}, headers=headers)
    assert response.status_code == 400


def test_list_orders_and_filters(client, headers, make_recipient, make_delivery):
    boston = make_recipient("Boston Children's")
    portland = make_recipient("Portland Clinic", address="9 River Rd", city="Portland", state="OR")
    undated = make_delivery(boston, status_id=1)
    march = make_delivery(portland, target_delivery_date=date(2024, 3, 1), status_id=2, address="9 River Rd")
    january = make_delivery(boston, target_delivery_date=date(2024, 1, 5), status_id=3, address="12 Main St")

    everything = client.get("/deliveries", params={"status": "all"}, headers=headers).json()
    assert [d["id"] for d in everything] == [str(march.id), str(january.id), str(undated.id)]

    approved = client.get("/deliveries", params={"status": "2"}, headers=headers).json()
    assert [d["id"] for d in approved] == [str(march.id)]

    by_text = client.get("/deliveries", params={"q": "completed"}, headers=headers).json()
    assert [d["id"] for d in by_text] == [str(january.id)]

    by_recipient = client.get("/deliveries", params={"q": "portland"}, headers=headers).json()
    assert [d["id"] for d in by_recipient] == [str(march.id)]

    superscript = client.get("/deliveries", params={"status": "²"}, headers=headers)
    assert superscript.status_code == 400
    assert superscript.json()["detail"] == "Unknown delivery status filter '²'"
    assert client.get("/deliveries", params={"status": "9"}, headers=headers).status_code == 400


def test_update_status_and_assign_to_me(client, headers, coordinator, make_recipient, make_delivery):
    recipient = make_recipient()
    delivery = make_delivery(recipient, target_delivery_date=date(2024, 2, 1), address="Dock 4")

    updated = client.patch(
        f"/deliveries/{delivery.id}",
        json={"status_id": "3", "completed_date": "2024-02-02", "tracking_number": " 1Z999 "},
        headers=headers,
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["status_label"] == "Completed"
    assert body["completed_date"] == "2024-02-02"
    assert body["tracking_number"] == "1Z999"
    assert body["address"] == "Dock 4"

    assigned = client.post(f"/deliveries/{delivery.id}/assign-to-me", headers=headers)
    assert assigned.status_code == 200
    assert assigned.json()["coordinator_id"] == str(coordinator.id)
    assert assigned.json()["coordinator_name"] == "Dana Coordinator"


def test_clearing_address_falls_back_to_recipient(client, headers, make_recipient, make_delivery):
    recipient = make_recipient()
    delivery = make_delivery(recipient, address="Dock 4")

    response = client.patch(f"/deliveries/{delivery.id}", json={"address": ""}, headers=headers)

    assert response.json()["address"] == "12 Main St | Boston, MA, 02110"


def test_delete_is_admin_only(client, headers, make_user, auth_headers, make_recipient, make_delivery):
    delivery = make_delivery(make_recipient())

    assert client.delete(f"/deliveries/{delivery.id}", headers=headers).status_code == 403
    admin_headers = auth_headers(make_user(role="admin"))
    assert client.delete(f"/deliveries/{delivery.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/deliveries/{delivery.id}", headers=admin_headers).status_code == 404


def test_view_only_cannot_write(client, make_user, auth_headers, make_recipient):
    viewer_headers = auth_headers(make_user(role="view_only"))
    recipient = make_recipient()

    assert client.get("/deliveries", headers=viewer_headers).status_code == 200
    response = client.post("/deliveries", json={"recipient_id": str(recipient.id)}, headers=viewer_headers)
    assert response.status_code == 403


def test_status_options(client, headers):
    options = client.get("/deliveries/statuses", headers=headers).json()
    assert options[0] == {"value": 1, "label": "Awaiting confirmation"}
    assert len(options) == 4
