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

import pytest
from django.utils import timezone

from tradeconnect.cache.capacity import count_blocked, get_capacity_status
from tradeconnect.models.registration import (
    CapacityLock,
    GroupReservation,
    GroupStatus,
    LockStatus,
    RegistrationStatus,
    WaitlistEntry,
    WaitlistStatus,
)
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.capacity import (
    cancel_group_reservation,
    capacity_report,
    check_capacity,
    configure_capacity,
    confirm_reservation,
    create_group_reservation,
    expire_reservations,
    reserve_capacity,
    validate_capacity,
)
from tradeconnect.utils.core.exceptions import BusinessRuleError, CapacityError, RegistrationError
from tradeconnect.utils.registration import register


class TestValidateCapacity(BaseTestCase):
    def test_capacity_not_configured(self):
        with pytest.raises(CapacityError) as exc:
            validate_capacity(self.event())
        assert exc.value.code == "capacity_not_configured"

    def test_available_spots(self):
        self.create_capacity(total=10)
        self.create_registration(quantity=3)

        result = validate_capacity(self.event(), quantity=2)

        assert result["is_valid"]
        assert result["confirmed_spots"] == 3
        assert result["available_spots"] == 7
        assert result["errors"] == []

    def test_pending_locks_and_offers_block_seats(self):
        event = self.event()
        self.create_capacity(total=10)
        other = self.create_member("other")
        self.create_registration(member=other, status=RegistrationStatus.PENDING, quantity=2)
        CapacityLock.objects.create(event=event, quantity=3, expires_at=timezone.now() + timedelta(minutes=10))
        WaitlistEntry.objects.create(
            event=event,
            member=self.member(),
            position=1,
            quantity=1,
            status=WaitlistStatus.NOTIFIED,
            expires_at=timezone.now() + timedelta(hours=1),
        )

        blocked = count_blocked(event)
        assert blocked == {"pending": 2, "locked": 3, "offered": 1, "total": 6}
        assert validate_capacity(event)["available_spots"] == 4

    def test_expired_lock_does_not_block(self):
        event = self.event()
        self.create_capacity(total=2)
        CapacityLock.objects.create(event=event, quantity=2, expires_at=timezone.now() - timedelta(minutes=1))

        assert validate_capacity(event, quantity=2)["is_valid"]

    def test_insufficient_capacity(self):
        self.create_capacity(total=2)
        self.create_registration(quantity=2)

        result = validate_capacity(self.event())

        assert not result["is_valid"]
        assert result["errors"] == ["insufficient_capacity"]
        assert result["waitlist_available"]

    def test_overbooking_only_when_normal_seats_run_out(self):
        self.create_capacity(total=10, overbooking_enabled=True, overbooking_percentage=20)
        self.create_registration(quantity=9)

        normal = validate_capacity(self.event(), quantity=1)
        assert normal["is_valid"]
        assert "OVERBOOKING_ACTIVE" not in normal["warnings"]

        overbooked = validate_capacity(self.event(), quantity=3)
        assert overbooked["is_valid"]
        assert "OVERBOOKING_ACTIVE" in overbooked["warnings"]
        assert overbooked["available_spots"] == 3

        assert not validate_capacity(self.event(), quantity=4)["is_valid"]

    def test_access_type_cap(self):
        self.create_capacity(total=100)
        vip = self.create_access_type(name="VIP", capacity=2)
        self.create_registration(access_type=vip, quantity=2)

        result = validate_capacity(self.event(), vip)

        assert result["errors"] == ["access_type_full"]
        assert validate_capacity(self.event())["is_valid"]

    def test_utilization_warnings(self):
        self.create_capacity(total=10)
        self.create_registration(quantity=9)

        assert validate_capacity(self.event())["warnings"] == ["UTILIZATION_MEDIUM"]

    def test_check_capacity_raises(self):
        self.create_capacity(total=1, waitlist_enabled=False)
        self.create_registration()

        with pytest.raises(CapacityError) as exc:
            check_capacity(self.event())
        assert exc.value.code == "insufficient_capacity"
        assert exc.value.details["waitlist_available"] is False


class TestReservations(BaseTestCase):
    def test_reserve_capacity(self):
        self.create_capacity(total=5, lock_timeout=15)

        lock = reserve_capacity(self.event(), self.member(), quantity=2)

        assert lock.status == LockStatus.LOCKED
        assert lock.uuid
        assert lock.expires_at > timezone.now() + timedelta(minutes=14)
        assert validate_capacity(self.event())["available_spots"] == 3

    def test_new_reservation_releases_previous(self):
        self.create_capacity(total=5)
        first = reserve_capacity(self.event(), self.member(), quantity=2)
        reserve_capacity(self.event(), self.member(), quantity=1)

        first.refresh_from_db()
        assert first.status == LockStatus.RELEASED
        assert validate_capacity(self.event())["available_spots"] == 4

    def test_reserve_full_event(self):
        self.create_capacity(total=1)
        self.create_registration()

        with pytest.raises(CapacityError):
            reserve_capacity(self.event(), self.member())
        assert not CapacityLock.objects.exists()

    def test_confirm_expired_lock(self):
        self.create_capacity(total=5)
        lock = reserve_capacity(self.event(), self.member())
        lock.expires_at = timezone.now() - timedelta(seconds=1)
        lock.save()

        with pytest.raises(CapacityError) as exc:
            confirm_reservation(lock, self.create_registration())
        assert exc.value.code == "lock_expired"
        lock.refresh_from_db()
        assert lock.status == LockStatus.EXPIRED

    def test_expire_reservations(self):
        event = self.event()
        self.create_capacity(total=5)
        CapacityLock.objects.create(event=event, quantity=1, expires_at=timezone.now() - timedelta(minutes=1))
        CapacityLock.objects.create(event=event, quantity=1, expires_at=timezone.now() + timedelta(minutes=5))

        assert expire_reservations() == 1
        assert CapacityLock.objects.filter(status=LockStatus.EXPIRED).count() == 1


class TestConfigureCapacity(BaseTestCase):
    def test_create_and_update(self):
        capacity = configure_capacity(self.event(), total=50, overbooking_enabled=True, overbooking_percentage=10)
        assert capacity.overbooking_limit() == 5

        capacity = configure_capacity(self.event(), total=60)
        assert capacity.total == 60
        assert capacity.overbooking_percentage == 10

    def test_total_below_confirmed(self):
        self.create_capacity(total=10)
        self.create_registration(quantity=5)

        with pytest.raises(CapacityError) as exc:
            configure_capacity(self.event(), total=4)
        assert exc.value.code == "capacity_below_confirmed"

    def test_status_cache_refreshed_on_registration(self):
        self.create_capacity(total=10)
        assert get_capacity_status(self.event())["confirmed"] == 0

        self.create_registration(quantity=4)

        status = get_capacity_status(self.event())
        assert status["confirmed"] == 4
        assert status["available"] == 6
        assert status["utilization"] == 40

    def test_report(self):
        self.create_capacity(total=10)
        vip = self.create_access_type(name="VIP", capacity=3)
        self.create_registration(access_type=vip)

        report = capacity_report(self.event())

        assert report["status"]["confirmed"] == 1
        assert report["access_types"][0]["available"] == 2
        assert report["locks"]["locked"] == 0
        assert report["waitlist"]["active"] == 0

    def test_report_without_capacity(self):
        assert capacity_report(self.event()) is None


class TestGroupReservation(BaseTestCase):
    def group(self, count):
        return [(self.create_member(f"guest{index}"), None) for index in range(count)]

    def test_holds_a_seat_per_participant(self):
        self.create_capacity(total=3)
        participants = self.group(2)

        group, left_out = create_group_reservation(self.event(), self.member(), participants)

        assert left_out == []
        assert group.status == GroupStatus.ACTIVE
        assert group.capacity_locks.filter(status=LockStatus.LOCKED).count() == 2
        assert count_blocked(self.event())["locked"] == 2
        assert validate_capacity(self.event(), quantity=2)["errors"] == ["insufficient_capacity"]

    def test_participant_registers_with_own_seat(self):
        self.create_capacity(total=2)
        participants = self.group(2)
        group, _left_out = create_group_reservation(self.event(), self.member(), participants)
        guest = participants[0][0]
        lock = group.capacity_locks.get(member=guest)

        registration = register(self.event(), guest, lock=lock)

        lock.refresh_from_db()
        assert lock.status == LockStatus.CONFIRMED
        assert lock.registration == registration

    def test_all_or_nothing(self):
        self.create_capacity(total=2)
        participants = self.group(3)

        with pytest.raises(CapacityError) as exc:
            create_group_reservation(self.event(), self.member(), participants)

        assert exc.value.code == "insufficient_capacity"
        assert exc.value.details["left_out"] == [participants[2][0].id]
        assert not GroupReservation.objects.exists()
        assert not CapacityLock.objects.exists()

    def test_partial(self):
        self.create_capacity(total=2)
        participants = self.group(3)

        group, left_out = create_group_reservation(self.event(), self.member(), participants, allow_partial=True)

        assert left_out == [participants[2][0]]
        assert group.capacity_locks.count() == 2

    def test_access_type_cap(self):
        self.create_capacity(total=10)
        vip = self.create_access_type(name="VIP", capacity=1)
        guests = self.group(2)
        participants = [(guests[0][0], vip), (guests[1][0], vip)]

        with pytest.raises(CapacityError) as exc:
            create_group_reservation(self.event(), self.member(), participants)
        assert exc.value.details["left_out"] == [guests[1][0].id]

    def test_invalid_groups(self):
        self.create_capacity(total=10)
        guest = self.create_member("guest")

        with pytest.raises(BusinessRuleError) as exc:
            create_group_reservation(self.event(), self.member(), [])
        assert exc.value.code == "invalid_group_size"

        with pytest.raises(BusinessRuleError) as exc:
            create_group_reservation(self.event(), self.member(), [(guest, None), (guest, None)])
        assert exc.value.code == "duplicate_participant"

    def test_participant_already_registered(self):
        self.create_capacity(total=10)
        guest = self.create_member("guest")
        self.create_registration(member=guest)

        with pytest.raises(RegistrationError) as exc:
            create_group_reservation(self.event(), self.member(), [(guest, None)])
        assert exc.value.code == "already_registered"
        assert exc.value.details["members"] == [guest.id]

    def test_cancel_releases_pending_seats(self):
        self.create_capacity(total=5)
        participants = self.group(2)
        group, _left_out = create_group_reservation(self.event(), self.member(), participants)
        registered = participants[0][0]
        register(self.event(), registered, lock=group.capacity_locks.get(member=registered))

        cancel_group_reservation(group)

        assert group.status == GroupStatus.CANCELLED
        assert group.capacity_locks.get(member=registered).status == LockStatus.CONFIRMED
        assert group.capacity_locks.get(member=participants[1][0]).status == LockStatus.RELEASED

        with pytest.raises(BusinessRuleError) as exc:
            cancel_group_reservation(group)
        assert exc.value.code == "invalid_status"
