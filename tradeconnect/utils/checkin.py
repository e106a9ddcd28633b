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

"""QR code issuance and check-in.

Each confirmed registration owns at most one active QR code. The code shown
to the attendee carries only the SHA-256 hash of a canonical JSON payload; the
payload itself is stored encrypted with the organization key and signed with
HMAC-SHA256, so a scan can be checked for tampering by decrypting it,
recomputing the hash and verifying the signature.
"""

import hashlib
import hmac
import json
import logging
import secrets
from datetime import timedelta

from cryptography.fernet import InvalidToken
from django.conf import settings as conf_settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone
from qr_code.qrcode.maker import make_qr_code_image
from qr_code.qrcode.utils import QRCodeOptions

from tradeconnect.cache.qr import get_qr_by_hash
from tradeconnect.models.checkin import (
    AccessLog,
    AccessResult,
    Attendance,
    AttendanceStatus,
    CheckinMethod,
    QRCode,
    QRStatus,
)
from tradeconnect.models.event import Event
from tradeconnect.models.member import Member
from tradeconnect.models.registration import Registration, RegistrationStatus
from tradeconnect.models.utils import get_cipher
from tradeconnect.utils.core.exceptions import QRValidationError, RegistrationError

logger = logging.getLogger(__name__)


def canonical_payload(payload: dict) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def hash_payload(canonical: str) -> str:
    return hashlib.sha256(canonical.encode()).hexdigest()


def sign_payload(canonical: str) -> str:
    secret = conf_settings.QR_HMAC_SECRET or conf_settings.SECRET_KEY
    return hmac.new(secret.encode(), canonical.encode(), hashlib.sha256).hexdigest()


def get_active_qr(registration: Registration) -> QRCode | None:
    return registration.qr_codes.filter(status=QRStatus.ACTIVE).first()


def generate_qr(registration: Registration) -> QRCode:
    """Issue the QR code of a confirmed registration.

    If the registration already has an active code, that code is returned.
    The registration row is locked, so concurrent calls issue a single code.

    Raises:
        RegistrationError: If the registration is not confirmed
    """
    with transaction.atomic():
        registration = Registration.objects.select_for_update().get(pk=registration.pk)
        if registration.status != RegistrationStatus.CONFIRMED:
            raise RegistrationError("registration_not_confirmed", "QR codes are issued only to confirmed registrations")

        existing = get_active_qr(registration)
        if existing:
            return existing

        event = registration.event
        payload = {
            "registration": registration.uuid,
            "event": event.id,
            "member": registration.member_id,
            "issued": timezone.now().isoformat(),
            "nonce": secrets.token_hex(8),
        }
        canonical = canonical_payload(payload)

        qr_code = QRCode.objects.create(
            registration=registration,
            event=event,
            qr_hash=hash_payload(canonical),
            payload=get_cipher(event.organization).encrypt(canonical.encode()).decode(),
            signature=sign_payload(canonical),
            expires_at=event.end + timedelta(minutes=conf_settings.QR_LATE_TOLERANCE_MINUTES),
        )

    logger.info(f"QR code issued for registration {registration.uuid}")
    return qr_code


def invalidate_qr(qr_code: QRCode, reason: str = "") -> QRCode:
    if qr_code.status == QRStatus.ACTIVE:
        qr_code.status = QRStatus.INVALIDATED
        qr_code.invalidated_at = timezone.now()
        qr_code.invalidation_reason = reason
        qr_code.save()
    return qr_code


def regenerate_qr(registration: Registration, reason: str = "regenerated") -> QRCode:
    """Invalidate the active code of a registration and issue a new one."""
    with transaction.atomic():
        active = get_active_qr(registration)
        if active:
            invalidate_qr(active, reason)
        return generate_qr(registration)


def qr_image(qr_code: QRCode) -> bytes:
    """Render the QR code as a PNG image of its hash."""
    options = QRCodeOptions(size=conf_settings.QR_IMAGE_SIZE, border=4, image_format="png")
    return make_qr_code_image(qr_code.qr_hash, options)


def verify_integrity(qr_code: QRCode) -> bool:
    """Decrypt the stored payload and check both its hash and its signature."""
    try:
        canonical = get_cipher(qr_code.event.organization).decrypt(qr_code.payload.encode()).decode()
    except InvalidToken:
        return False

    if not hmac.compare_digest(hash_payload(canonical), qr_code.qr_hash):
        return False

    if not hmac.compare_digest(sign_payload(canonical), qr_code.signature):
        return False

    payload = json.loads(canonical)
    return payload["registration"] == qr_code.registration.uuid and payload["event"] == qr_code.event_id


def _check_qr(qr_code: QRCode | None, event: Event) -> None:
    now = timezone.now()

    if not qr_code:
        raise QRValidationError("not_found", "Unknown QR code", AccessResult.INVALID)

    if qr_code.status == QRStatus.USED:
        raise QRValidationError("already_used", "QR code already used", AccessResult.DUPLICATE)

    if qr_code.status == QRStatus.INVALIDATED:
        raise QRValidationError("invalidated", "QR code has been invalidated", AccessResult.INVALID)

    if qr_code.status == QRStatus.EXPIRED or qr_code.expires_at <= now:
        raise QRValidationError("expired", "QR code has expired", AccessResult.INVALID)

    if qr_code.event_id != event.id:
        raise QRValidationError("wrong_event", "QR code belongs to another event", AccessResult.INVALID)

    if now < event.start - timedelta(minutes=conf_settings.QR_EARLY_TOLERANCE_MINUTES):
        raise QRValidationError("too_early", "Check-in is not open yet", AccessResult.INVALID)

    if now > event.end + timedelta(minutes=conf_settings.QR_LATE_TOLERANCE_MINUTES):
        raise QRValidationError("too_late", "Check-in is closed", AccessResult.INVALID)

    if not verify_integrity(qr_code):
        raise QRValidationError("tampered", "QR code failed integrity verification", AccessResult.FAILED)


def _check_registration(registration: Registration) -> None:
    if registration.status == RegistrationStatus.ATTENDED:
        raise QRValidationError("already_checked_in", "Attendee already checked in", AccessResult.DUPLICATE)

    if registration.status != RegistrationStatus.CONFIRMED:
        raise QRValidationError("registration_not_confirmed", "Registration is not confirmed", AccessResult.INVALID)

    if registration.attendances.filter(status=AttendanceStatus.CHECKED_IN).exists():
        raise QRValidationError("already_checked_in", "Attendee already checked in", AccessResult.DUPLICATE)


def validate_qr(
    qr_hash: str,
    event: Event,
    scanner: Member | None = None,
    access_point: str = "",
    ip_address: str | None = None,
) -> dict:
    """Validate a scanned QR code and check the attendee in.

    Checks run in order: existence, status, expiry, event, check-in window,
    payload integrity, registration status and previous attendance. The
    registration row is locked so that two scanners reading the same code
    cannot both let it in. Every attempt is written to the access log.

    Args:
        qr_hash: Hash read from the code
        event: Event the scanner is working for
        scanner: Staff member scanning
        access_point: Gate or desk name
        ip_address: Address of the scanning device

    Returns:
        dict with valid, result, reason and, on success, the attendance
    """
    qr_code = get_qr_by_hash(qr_hash)
    log = AccessLog(
        event=event,
        qr_code=qr_code,
        qr_hash=qr_hash[:128],
        access_point=access_point,
        scanned_by=scanner,
        ip_address=ip_address,
    )

    try:
        _check_qr(qr_code, event)

        with transaction.atomic():
            registration = Registration.objects.select_for_update().get(pk=qr_code.registration_id)
            _check_registration(registration)

            now = timezone.now()
            attendance = Attendance.objects.create(
                registration=registration,
                event=event,
                member_id=registration.member_id,
                qr_code=qr_code,
                method=CheckinMethod.QR,
                checked_in_at=now,
                checked_in_by=scanner,
                access_point=access_point,
            )

            qr_code.status = QRStatus.USED
            qr_code.used_at = now
            qr_code.save()

            registration.status = RegistrationStatus.ATTENDED
            registration.save()

    except QRValidationError as err:
        log.result = err.result
        log.failure_reason = err.code
        log.save()
        logger.info(f"QR check-in refused at {event.slug}: {err.code}")
        return {"valid": False, "result": err.result, "reason": err.code, "message": err.message}

    log.result = AccessResult.SUCCESS
    log.save()
    return {
        "valid": True,
        "result": AccessResult.SUCCESS,
        "reason": "",
        "message": "Check-in completed",
        "attendance": attendance.as_dict(),
    }


def manual_checkin(registration: Registration, staff: Member | None = None, access_point: str = "") -> Attendance:
    """Check an attendee in without scanning, e.g. when the phone is dead.

    Raises:
        RegistrationError: If the registration is not confirmed or already checked in
    """
    with transaction.atomic():
        registration = Registration.objects.select_for_update().get(pk=registration.pk)
        try:
            _check_registration(registration)
        except QRValidationError as err:
            raise RegistrationError(err.code, err.message) from err

        now = timezone.now()
        qr_code = get_active_qr(registration)
        attendance = Attendance.objects.create(
            registration=registration,
            event=registration.event,
            member_id=registration.member_id,
            qr_code=qr_code,
            method=CheckinMethod.MANUAL,
            checked_in_at=now,
            checked_in_by=staff,
            access_point=access_point,
        )
        if qr_code:
            qr_code.status = QRStatus.USED
            qr_code.used_at = now
            qr_code.save()

        registration.status = RegistrationStatus.ATTENDED
        registration.save()

    return attendance


def checkout(attendance: Attendance) -> Attendance:
    """Raises RegistrationError if the attendee is not checked in."""
    if attendance.status != AttendanceStatus.CHECKED_IN:
        raise RegistrationError("not_checked_in", "Attendee is not checked in")
    attendance.status = AttendanceStatus.CHECKED_OUT
    attendance.checked_out_at = timezone.now()
    attendance.save()
    return attendance


def expire_qr_codes() -> int:
    """Mark as expired the active codes past their expiry, returns how many."""
    stale = QRCode.objects.filter(status=QRStatus.ACTIVE, expires_at__lte=timezone.now())
    expired = 0
    for qr_code in stale:
        qr_code.status = QRStatus.EXPIRED
        qr_code.save()
        expired += 1
    return expired


def attendance_stats(event: Event) -> dict:
    registered = Registration.objects.filter(
        event=event, status__in=[RegistrationStatus.CONFIRMED, RegistrationStatus.ATTENDED]
    ).count()
    attended = Registration.objects.filter(event=event, status=RegistrationStatus.ATTENDED).count()
    attendances = Attendance.objects.filter(event=event)
    scans = dict(
        AccessLog.objects.filter(event=event).values_list("result").annotate(count=Count("id")).order_by()
    )
    return {
        "registered": registered,
        "attended": attended,
        "attendance_rate": round(attended * 100 / registered, 2) if registered else 0,
        "checked_in": attendances.filter(status=AttendanceStatus.CHECKED_IN).count(),
        "checked_out": attendances.filter(status=AttendanceStatus.CHECKED_OUT).count(),
        "manual": attendances.filter(method=CheckinMethod.MANUAL).count(),
        "scans": {result.name.lower(): scans.get(result.value, 0) for result in AccessResult},
    }
