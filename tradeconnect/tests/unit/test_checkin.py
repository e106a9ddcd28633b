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
from django.db import IntegrityError, transaction
from django.utils import timezone

from tradeconnect.models.checkin import AccessLog, AccessResult, AttendanceStatus, CheckinMethod, QRCode, QRStatus
from tradeconnect.models.registration import RegistrationStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.checkin import (
    attendance_stats,
    checkout,
    expire_qr_codes,
    generate_qr,
    manual_checkin,
    qr_image,
    regenerate_qr,
    validate_qr,
    verify_integrity,
)
from tradeconnect.utils.core.exceptions import RegistrationError


class TestQRIssuance(BaseTestCase):
    def test_generate(self):
        registration = self.create_registration()

        qr_code = generate_qr(registration)

        assert qr_code.status == QRStatus.ACTIVE
        assert len(qr_code.qr_hash) == 64
        assert qr_code.expires_at > self.event().end
        assert verify_integrity(qr_code)

    def test_generate_returns_active_code(self):
        registration = self.create_registration()

        assert generate_qr(registration) == generate_qr(registration)
        assert QRCode.objects.count() == 1

    def test_single_active_code(self):
        registration = self.create_registration()
        qr_code = generate_qr(registration)

        with pytest.raises(IntegrityError), transaction.atomic():
            QRCode.objects.create(
                registration=registration,
                event=qr_code.event,
                qr_hash="0" * 64,
                payload=qr_code.payload,
                signature=qr_code.signature,
                expires_at=qr_code.expires_at,
            )
        assert QRCode.objects.filter(registration=registration, status=QRStatus.ACTIVE).count() == 1

    def test_generate_for_pending(self):
        registration = self.create_registration(status=RegistrationStatus.PENDING)

        with pytest.raises(RegistrationError) as exc:
            generate_qr(registration)
        assert exc.value.code == "registration_not_confirmed"

    def test_regenerate(self):
        registration = self.create_registration()
        old = generate_qr(registration)

        new = regenerate_qr(registration)

        old.refresh_from_db()
        assert old.status == QRStatus.INVALIDATED
        assert new.status == QRStatus.ACTIVE
        assert new.qr_hash != old.qr_hash

    def test_image(self):
        qr_code = generate_qr(self.create_registration())

        assert qr_image(qr_code).startswith(b"\x89PNG")


class TestValidateQR(BaseTestCase):
    def test_success(self):
        registration = self.create_registration()
        qr_code = generate_qr(registration)
        staff = self.create_member("staff")

        res = validate_qr(qr_code.qr_hash, self.event(), staff, "Gate A", "10.0.0.1")

        assert res["valid"]
        assert res["result"] == AccessResult.SUCCESS
        registration.refresh_from_db()
        qr_code.refresh_from_db()
        assert registration.status == RegistrationStatus.ATTENDED
        assert qr_code.status == QRStatus.USED
        attendance = registration.attendances.get()
        assert attendance.method == CheckinMethod.QR
        assert attendance.checked_in_by == staff
        log = AccessLog.objects.get()
        assert log.result == AccessResult.SUCCESS
        assert log.access_point == "Gate A"

    def test_already_used(self):
        qr_code = generate_qr(self.create_registration())
        validate_qr(qr_code.qr_hash, self.event())

        res = validate_qr(qr_code.qr_hash, self.event())

        assert not res["valid"]
        assert res["reason"] == "already_used"
        assert res["result"] == AccessResult.DUPLICATE
        assert AccessLog.objects.count() == 2

    def test_unknown_hash(self):
        res = validate_qr("0" * 64, self.event())

        assert res["reason"] == "not_found"
        assert AccessLog.objects.get().result == AccessResult.INVALID

    def test_invalidated(self):
        registration = self.create_registration()
        old = generate_qr(registration)
        regenerate_qr(registration)

        assert validate_qr(old.qr_hash, self.event())["reason"] == "invalidated"

    def test_expired(self):
        qr_code = generate_qr(self.create_registration())
        qr_code.expires_at = timezone.now() - timedelta(minutes=1)
        qr_code.save()

        assert validate_qr(qr_code.qr_hash, self.event())["reason"] == "expired"

    def test_wrong_event(self):
        qr_code = generate_qr(self.create_registration())
        other = self.create_event(slug="other")

        assert validate_qr(qr_code.qr_hash, other)["reason"] == "wrong_event"

    def test_too_early(self):
        now = timezone.now()
        event = self.create_event(slug="future", start=now + timedelta(days=2), end=now + timedelta(days=3))
        qr_code = generate_qr(self.create_registration(event=event))

        assert validate_qr(qr_code.qr_hash, event)["reason"] == "too_early"

    def test_too_late(self):
        now = timezone.now()
        event = self.create_event(slug="past", start=now - timedelta(days=3), end=now - timedelta(days=2))
        qr_code = generate_qr(self.create_registration(event=event))
        # event moved earlier after the code was issued
        qr_code.expires_at = now + timedelta(days=1)
        qr_code.save()

        res = validate_qr(qr_code.qr_hash, event)

        assert res["reason"] == "too_late"
        assert res["result"] == AccessResult.INVALID

    def test_tampered(self):
        registration = self.create_registration()
        qr_code = generate_qr(registration)
        qr_code.signature = "f" * 64
        qr_code.save()

        res = validate_qr(qr_code.qr_hash, self.event())

        assert res["reason"] == "tampered"
        assert res["result"] == AccessResult.FAILED
        registration.refresh_from_db()
        assert registration.status == RegistrationStatus.CONFIRMED

    def test_registration_cancelled_after_issue(self):
        registration = self.create_registration()
        qr_code = generate_qr(registration)
        registration.status = RegistrationStatus.CANCELLED
        registration.save()

        assert validate_qr(qr_code.qr_hash, self.event())["reason"] == "registration_not_confirmed"


class TestManualCheckin(BaseTestCase):
    def test_manual(self):
        registration = self.create_registration()
        qr_code = generate_qr(registration)

        attendance = manual_checkin(registration, self.create_member("staff"), "Desk")

        qr_code.refresh_from_db()
        registration.refresh_from_db()
        assert attendance.method == CheckinMethod.MANUAL
        assert registration.status == RegistrationStatus.ATTENDED
        assert qr_code.status == QRStatus.USED

    def test_manual_twice(self):
        registration = self.create_registration()
        manual_checkin(registration)

        with pytest.raises(RegistrationError) as exc:
            manual_checkin(registration)
        assert exc.value.code == "already_checked_in"

    def test_checkout(self):
        attendance = manual_checkin(self.create_registration())

        checkout(attendance)

        assert attendance.status == AttendanceStatus.CHECKED_OUT
        assert attendance.checked_out_at is not None
        with pytest.raises(RegistrationError):
            checkout(attendance)


class TestCheckinMaintenance(BaseTestCase):
    def test_expire_qr_codes(self):
        qr_code = generate_qr(self.create_registration())
        QRCode.objects.filter(pk=qr_code.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

        assert expire_qr_codes() == 1

        qr_code.refresh_from_db()
        assert qr_code.status == QRStatus.EXPIRED

    def test_stats(self):
        first = self.create_registration()
        self.create_registration(member=self.create_member("second"))
        validate_qr(generate_qr(first).qr_hash, self.event())
        validate_qr("0" * 64, self.event())

        stats = attendance_stats(self.event())

        assert stats["registered"] == 2
        assert stats["attended"] == 1
        assert stats["attendance_rate"] == 50
        assert stats["checked_in"] == 1
        assert stats["scans"] == {"success": 1, "invalid": 1, "duplicate": 0, "failed": 0}
