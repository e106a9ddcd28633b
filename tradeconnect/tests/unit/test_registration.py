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

from datetime import timedelta
from decimal import Decimal

import pytest
from django.core import mail
from django.utils import timezone

from tradeconnect.models.access import EventRole
from tradeconnect.models.checkin import QRStatus
from tradeconnect.models.event import AccessType, Capacity, Event, EventStatus
from tradeconnect.models.member import Membership
from tradeconnect.models.promotion import UsageStatus
from tradeconnect.models.registration import CapacityLock, LockStatus, Registration, RegistrationStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.capacity import reserve_capacity
from tradeconnect.utils.checkin import get_active_qr
from tradeconnect.utils.core.exceptions import CapacityError, PromoCodeError, RegistrationError
from tradeconnect.utils.registration import (
    cancel_event,
    cancel_registration,
    complete_past_events,
    duplicate_event,
    publish_event,
    register,
)


class TestRegister(BaseTestCase):
    def test_paid_registration_is_pending(self):
        registration = register(self.event(), self.member())

        assert registration.status == RegistrationStatus.PENDING
        assert registration.base_amount == Decimal("100.00")
        assert registration.total == Decimal("100.00")
        assert registration.balance() == Decimal("100.00")
        assert get_active_qr(registration) is None
        assert Membership.objects.filter(member=self.member(), organization=self.organization()).exists()

    def test_free_registration_is_confirmed(self):
        event = self.create_event(slug="free", price=Decimal("0"))

        registration = register(event, self.member())

        assert registration.status == RegistrationStatus.CONFIRMED
        assert registration.confirmed_at is not None
        assert get_active_qr(registration) is not None
        assert len(mail.outbox) == 1

    def test_default_access_type_and_quantity(self):
        self.create_access_type(name="General", price=Decimal("30.00"), is_default=True)

        registration = register(self.event(), self.member(), quantity=3)

        assert registration.access_type.name == "General"
        assert registration.total == Decimal("90.00")

    def test_access_type_of_other_event(self):
        other = self.create_event(slug="other")
        access_type = self.create_access_type(event=other)

        with pytest.raises(RegistrationError) as exc:
            register(self.event(), self.member(), access_type)
        assert exc.value.code == "access_type_not_available"

    def test_event_not_published(self):
        event = self.create_event(slug="draft", status=EventStatus.DRAFT)

        with pytest.raises(RegistrationError) as exc:
            register(event, self.member())
        assert exc.value.code == "event_not_open"

    def test_already_registered(self):
        register(self.event(), self.member())

        with pytest.raises(RegistrationError) as exc:
            register(self.event(), self.member())
        assert exc.value.code == "already_registered"

    def test_register_again_after_cancel(self):
        registration = register(self.event(), self.member())
        cancel_registration(registration)

        assert register(self.event(), self.member()).status == RegistrationStatus.PENDING

    def test_capacity_enforced(self):
        self.create_capacity(total=1)
        register(self.event(), self.member())

        with pytest.raises(CapacityError):
            register(self.event(), self.create_member("other"))

    def test_register_with_lock(self):
        self.create_capacity(total=2)
        lock = reserve_capacity(self.event(), self.member(), quantity=2)

        registration = register(self.event(), self.member(), quantity=2, lock=lock)

        lock.refresh_from_db()
        assert lock.status == LockStatus.CONFIRMED
        assert lock.registration == registration

    def test_lock_of_another_member(self):
        self.create_capacity(total=2)
        lock = reserve_capacity(self.event(), self.create_member("other"))

        with pytest.raises(RegistrationError) as exc:
            register(self.event(), self.member(), lock=lock)
        assert exc.value.code == "invalid_lock"
        assert not Registration.objects.exists()

    def test_lock_of_another_access_type(self):
        self.create_capacity(total=10)
        general = self.create_access_type()
        vip = self.create_access_type(name="VIP", capacity=1)
        register(self.event(), self.create_member("other"), access_type=vip)
        lock = reserve_capacity(self.event(), self.member(), access_type=general)

        with pytest.raises(RegistrationError) as exc:
            register(self.event(), self.member(), access_type=vip, lock=lock)
        assert exc.value.code == "invalid_lock"
        assert Registration.objects.filter(access_type=vip).count() == 1

    def test_event_lock_checks_access_type_cap(self):
        self.create_capacity(total=10)
        vip = self.create_access_type(name="VIP", capacity=1)
        register(self.event(), self.create_member("other"), access_type=vip)
        lock = reserve_capacity(self.event(), self.member())

        with pytest.raises(CapacityError) as exc:
            register(self.event(), self.member(), access_type=vip, lock=lock)
        assert exc.value.code == "access_type_full"
        lock.refresh_from_db()
        assert lock.status == LockStatus.LOCKED

    def test_register_with_promo_code(self):
        promo_code = self.create_promo_code(value=Decimal("25"))

        registration = register(self.event(), self.member(), promo_code="save10")

        assert registration.promo_code == promo_code
        assert registration.discount_amount == Decimal("25.00")
        assert registration.total == Decimal("75.00")
        promo_code.refresh_from_db()
        assert promo_code.current_uses == 1

    def test_invalid_promo_code_blocks_registration(self):
        with pytest.raises(PromoCodeError):
            register(self.event(), self.member(), promo_code="NOPE")
        assert not Registration.objects.exists()


class TestCancelRegistration(BaseTestCase):
    def test_cancel_confirmed(self):
        event = self.create_event(slug="free", price=Decimal("0"))
        registration = register(event, self.member())
        qr_code = get_active_qr(registration)

        cancel_registration(registration, "changed plans")

        assert registration.status == RegistrationStatus.CANCELLED
        assert registration.cancellation_reason == "changed plans"
        qr_code.refresh_from_db()
        assert qr_code.status == QRStatus.INVALIDATED

    def test_cancel_reverts_promo_usage(self):
        promo_code = self.create_promo_code()
        registration = register(self.event(), self.member(), promo_code="SAVE10")

        cancel_registration(registration)

        promo_code.refresh_from_db()
        assert promo_code.current_uses == 0
        assert promo_code.usages.get().status == UsageStatus.CANCELLED

    def test_cancel_twice(self):
        registration = register(self.event(), self.member())
        cancel_registration(registration)

        with pytest.raises(RegistrationError):
            cancel_registration(registration)


class TestEventLifecycle(BaseTestCase):
    def test_publish(self):
        event = self.create_event(slug="draft", status=EventStatus.DRAFT, published_at=None)

        publish_event(event)

        assert event.status == EventStatus.PUBLISHED
        assert event.published_at is not None

    def test_cancel_event(self):
        event = self.event()
        pending = register(event, self.member())
        confirmed = self.create_registration(member=self.create_member("other"))
        CapacityLock.objects.create(event=event, quantity=1, expires_at=timezone.now() + timedelta(minutes=5))

        cancel_event(event, "venue closed")

        pending.refresh_from_db()
        confirmed.refresh_from_db()
        assert event.status == EventStatus.CANCELLED
        assert pending.status == RegistrationStatus.CANCELLED
        assert confirmed.status == RegistrationStatus.CONFIRMED
        assert CapacityLock.objects.get().status == LockStatus.RELEASED
        assert len(mail.outbox) == 2

    def test_complete_past_events(self):
        now = timezone.now()
        event = self.create_event(slug="past", start=now - timedelta(days=2), end=now - timedelta(days=1))
        registration = self.create_registration(event=event)

        assert complete_past_events() == 1

        event.refresh_from_db()
        registration.refresh_from_db()
        assert event.status == EventStatus.COMPLETED
        assert registration.status == RegistrationStatus.NO_SHOW

    def test_duplicate_event(self):
        event = self.event()
        self.create_access_type(name="VIP", capacity=5)
        self.create_capacity(total=30)
        EventRole.objects.get(event=event, number=1).members.add(self.member())

        copy = duplicate_event(event, "expo-2026", "Trade Expo 2026")

        assert copy.status == EventStatus.DRAFT
        assert copy.name == "Trade Expo 2026"
        assert AccessType.objects.get(event=copy).name == "VIP"
        assert Capacity.objects.get(event=copy).total == 30
        assert self.member() in EventRole.objects.get(event=copy, number=1).members.all()
        assert Event.objects.count() == 2
