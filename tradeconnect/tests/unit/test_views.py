# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

from decimal import Decimal

from django.core import mail
from django.test import Client
from django.urls import reverse

from tradeconnect.models.access import EventRole
from tradeconnect.models.checkin import AccessLog
from tradeconnect.models.event import Event, EventStatus
from tradeconnect.models.member import Membership, MembershipStatus
from tradeconnect.models.registration import GroupStatus, Registration, RegistrationStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.capacity import create_group_reservation
from tradeconnect.utils.checkin import generate_qr


class TestTenantResolution(BaseTestCase):
    def test_unknown_organization(self):
        response = Client(HTTP_X_ORGANIZATION="missing").get(reverse("api_event_list"))

        assert response.status_code == 404
        assert response.json()["error"] == "unknown_organization"

    def test_events_scoped_to_organization(self):
        self.event()
        other = self.create_organization(name="Other", slug="other")
        self.create_event(organization=other, slug="other-expo")

        response = self.api_client().get(reverse("api_event_list"))

        assert response.status_code == 200
        assert [event["slug"] for event in response.json()["events"]] == ["expo"]

    def test_event_of_other_organization(self):
        other = self.create_organization(name="Other", slug="other")
        self.create_event(organization=other, slug="other-expo")

        response = self.api_client().get(reverse("api_event_detail", args=["other-expo"]))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestEventViews(BaseTestCase):
    payload = {
        "name": "Coffee Fair",
        "slug": "coffee",
        "start": "2030-05-01 09:00",
        "end": "2030-05-02 18:00",
        "price": "75.00",
    }

    def test_create_anonymous(self):
        response = self.post_json(self.api_client(), reverse("api_event_create"), self.payload)

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"

    def test_create_without_permission(self):
        response = self.post_json(self.api_client(self.member()), reverse("api_event_create"), self.payload)

        assert response.status_code == 403
        assert response.json()["permission"] == "manage_event"

    def test_create(self):
        self.make_admin()

        response = self.post_json(self.api_client(self.member()), reverse("api_event_create"), self.payload)

        assert response.status_code == 201
        event = Event.objects.get(slug="coffee")
        assert event.status == EventStatus.DRAFT
        assert event.organization == self.organization()
        assert event.price == Decimal("75.00")
        assert self.member() in EventRole.objects.get(event=event, number=1).members.all()

    def test_create_invalid_dates(self):
        self.make_admin()
        data = {**self.payload, "end": "2030-04-30 09:00"}

        response = self.post_json(self.api_client(self.member()), reverse("api_event_create"), data)

        assert response.status_code == 400
        assert "end" in response.json()["details"]

    def test_invalid_json(self):
        self.make_admin()
        client = self.api_client(self.member())

        response = client.post(reverse("api_event_create"), data="{oops", content_type="application/json")

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_json"

    def test_partial_update(self):
        self.grant_event_permission(self.member(), "manage_event")

        response = self.post_json(
            self.api_client(self.member()), reverse("api_event_update", args=["expo"]), {"location": "Hall B"}
        )

        assert response.status_code == 200
        event = Event.objects.get(slug="expo")
        assert event.location == "Hall B"
        assert event.name == "Trade Expo"

    def test_publish_twice(self):
        self.make_admin()

        response = self.post_json(self.api_client(self.member()), reverse("api_event_publish", args=["expo"]))

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_event_status"


class TestRegistrationViews(BaseTestCase):
    def test_register(self):
        response = self.post_json(self.api_client(self.member()), reverse("api_registration_create", args=["expo"]))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == RegistrationStatus.PENDING
        assert data["balance"] == "100.00"
        assert data["qr_hash"] is None

    def test_register_full_event(self):
        self.create_capacity(total=1)
        self.create_registration(member=self.create_member("holder"))

        response = self.post_json(self.api_client(self.member()), reverse("api_registration_create", args=["expo"]))

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "insufficient_capacity"
        assert data["waitlist_available"] is True

    def test_register_invalid_quantity(self):
        response = self.post_json(
            self.api_client(self.member()), reverse("api_registration_create", args=["expo"]), {"quantity": 0}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_quantity"

    def test_registration_of_someone_else(self):
        registration = self.create_registration(member=self.create_member("owner"))

        response = self.api_client(self.member()).get(reverse("api_registration_detail", args=[registration.uuid]))

        assert response.status_code == 403

    def test_cancel_own_registration(self):
        registration = self.create_registration()

        response = self.post_json(
            self.api_client(self.member()), reverse("api_registration_cancel", args=[registration.uuid])
        )

        assert response.status_code == 200
        assert Registration.objects.get().status == RegistrationStatus.CANCELLED

    def test_my_registrations(self):
        self.create_registration()

        response = self.api_client(self.member()).get(reverse("api_registration_my"))

        assert len(response.json()["registrations"]) == 1

    def test_waitlist_flow(self):
        self.create_capacity(total=1)
        self.create_registration(member=self.create_member("holder"))
        client = self.api_client(self.member())

        response = self.post_json(client, reverse("api_waitlist_join", args=["expo"]))
        assert response.status_code == 201

        response = client.get(reverse("api_waitlist_position", args=["expo"]))
        assert response.json()["position"] == 1

        response = self.post_json(client, reverse("api_waitlist_confirm", args=["expo"]))
        assert response.status_code == 409
        assert response.json()["error"] == "no_active_offer"

    def test_join_organization(self):
        response = self.post_json(self.api_client(self.member()), reverse("api_membership_join"), {"newsletter": False})

        assert response.status_code == 201
        assert Membership.objects.get().newsletter is False

    def test_my_organizations(self):
        other = self.create_organization(name="Other", slug="other")
        revoked = self.create_organization(name="Gone", slug="gone")
        Membership.objects.create(member=self.member(), organization=self.organization())
        Membership.objects.create(member=self.member(), organization=other)
        Membership.objects.create(member=self.member(), organization=revoked, status=MembershipStatus.REVOKED)

        response = self.api_client(self.member()).get(reverse("api_my_organizations"))

        assert response.status_code == 200
        assert {org["slug"] for org in response.json()["organizations"]} == {"acme", "other"}


class TestGroupViews(BaseTestCase):
    def participants(self):
        guests = [self.create_member("guest1"), self.create_member("guest2")]
        for guest in guests:
            Membership.objects.create(member=guest, organization=self.organization())
        return guests

    def test_create(self):
        self.create_capacity(total=5)
        guests = self.participants()

        response = self.post_json(
            self.api_client(self.member()),
            reverse("api_group_create", args=["expo"]),
            {"participants": [{"member": guest.id} for guest in guests]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["left_out"] == []
        assert {entry["member"] for entry in data["participants"]} == {guest.id for guest in guests}

    def test_create_without_participants(self):
        self.create_capacity(total=5)

        response = self.post_json(self.api_client(self.member()), reverse("api_group_create", args=["expo"]), {})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_group_of_someone_else(self):
        self.create_capacity(total=5)
        group, _left_out = create_group_reservation(
            self.event(), self.create_member("leader"), [(guest, None) for guest in self.participants()]
        )

        response = self.api_client(self.member()).get(reverse("api_group_detail", args=["expo", group.uuid]))

        assert response.status_code == 403

    def test_cancel_by_leader(self):
        self.create_capacity(total=5)
        group, _left_out = create_group_reservation(
            self.event(), self.member(), [(guest, None) for guest in self.participants()]
        )

        response = self.post_json(self.api_client(self.member()), reverse("api_group_cancel", args=["expo", group.uuid]))

        assert response.status_code == 200
        assert response.json()["status"] == GroupStatus.CANCELLED


class TestCheckinViews(BaseTestCase):
    def test_validate(self):
        qr_code = generate_qr(self.create_registration())
        staff = self.create_member("staff")
        self.grant_event_permission(staff, "validate_qr")

        response = self.post_json(
            self.api_client(staff), reverse("api_qr_validate", args=["expo"]), {"qr_hash": qr_code.qr_hash}
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert AccessLog.objects.get().scanned_by == staff

    def test_refused_scan(self):
        staff = self.create_member("staff")
        self.grant_event_permission(staff, "validate_qr")

        response = self.post_json(
            self.api_client(staff), reverse("api_qr_validate", args=["expo"]), {"qr_hash": "unknown"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "valid": False,
            "result": "i",
            "reason": "not_found",
            "message": "Unknown QR code",
        }

    def test_validate_requires_permission(self):
        response = self.post_json(
            self.api_client(self.member()), reverse("api_qr_validate", args=["expo"]), {"qr_hash": "abc"}
        )

        assert response.status_code == 403

    def test_qr_image(self):
        registration = self.create_registration()

        response = self.api_client(self.member()).get(reverse("api_qr_image", args=[registration.uuid]))

        assert response.status_code == 200
        assert response["Content-Type"] == "image/png"


class TestPromotionViews(BaseTestCase):
    def test_validate_on_event(self):
        self.create_promo_code()

        response = self.post_json(
            self.api_client(self.member()),
            reverse("api_promo_code_validate"),
            {"code": "save10", "event": "expo", "quantity": 2},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["discount"] == "20.00"
        assert data["final_amount"] == "180.00"

    def test_validate_unknown(self):
        response = self.post_json(
            self.api_client(self.member()), reverse("api_promo_code_validate"), {"code": "NOPE", "amount": "50"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "not_found"

    def test_create_promo_code(self):
        self.make_admin()

        response = self.post_json(
            self.api_client(self.member()),
            reverse("api_promo_code_create"),
            {"code": "vip50", "discount_type": "f", "value": "50"},
        )

        assert response.status_code == 201
        assert response.json()["code"] == "VIP50"


class TestAccountingViews(BaseTestCase):
    def test_nit(self):
        response = self.api_client(self.member()).get(reverse("api_nit_validate"), {"nit": "12345679"})

        assert response.json()["nit"] == "1234567-9"
        assert response.json()["valid"] is True

    def test_cui(self):
        response = self.api_client(self.member()).get(reverse("api_cui_validate"), {"cui": "1234567800101"})

        assert response.status_code == 200
        assert response.json()["valid"] is False

    def test_profile_update(self):
        client = self.api_client(self.member())

        response = self.post_json(client, reverse("api_my_profile_update"), {"cui": "1234567890100"})
        assert response.status_code == 400
        assert "cui" in response.json()["details"]

        response = self.post_json(client, reverse("api_my_profile_update"), {"cui": "1234567890101"})
        assert response.status_code == 200
        assert client.get(reverse("api_my_profile")).json()["cui"] == "1234567890101"

    def test_payment_flow(self):
        self.make_admin()
        registration = self.create_registration(status=RegistrationStatus.PENDING)
        client = self.api_client(self.member())

        response = self.post_json(client, reverse("api_payment_create", args=[registration.uuid]), {"method": "c"})
        assert response.status_code == 201

        response = self.post_json(client, reverse("api_payment_complete", args=[response.json()["uuid"]]))
        assert response.status_code == 200

        registration.refresh_from_db()
        assert registration.status == RegistrationStatus.CONFIRMED
        assert len(mail.outbox) == 2
