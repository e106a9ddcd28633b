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

from typing import ClassVar

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import BaseModel
from tradeconnect.models.event import Event
from tradeconnect.models.member import Member
from tradeconnect.models.registration import Registration


class QRStatus(models.TextChoices):
    ACTIVE = "a", _("Active")
    USED = "u", _("Used")
    EXPIRED = "e", _("Expired")
    INVALIDATED = "i", _("Invalidated")


class QRCode(BaseModel):
    """Signed access credential issued for a confirmed registration."""

    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="qr_codes")

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="qr_codes")

    qr_hash = models.CharField(max_length=64, unique=True, db_index=True)

    payload = models.TextField(help_text=_("Encrypted payload"))

    signature = models.CharField(max_length=64)

    status = models.CharField(max_length=1, choices=QRStatus.choices, default=QRStatus.ACTIVE, db_index=True)

    expires_at = models.DateTimeField()

    used_at = models.DateTimeField(null=True, blank=True)

    invalidated_at = models.DateTimeField(null=True, blank=True)

    invalidation_reason = models.CharField(max_length=200, blank=True)

    class Meta:
        indexes: ClassVar[list] = [
            models.Index(fields=["registration", "status"], condition=Q(deleted__isnull=True), name="qr_reg_status_act"),
        ]
        constraints: ClassVar[list] = [
            models.UniqueConstraint(
                fields=["registration"],
                condition=Q(deleted=None) & Q(status=QRStatus.ACTIVE),
                name="unique_active_qr",
            ),
        ]
        verbose_name = "QR code"

    def __str__(self) -> str:
        return f"{self.registration} {self.qr_hash[:12]}"

    def as_dict(self) -> dict:
        return {
            "qr_hash": self.qr_hash,
            "registration": self.registration.uuid,
            "event": self.event.slug,
            "status": self.status,
            "expires_at": self.expires_at,
            "used_at": self.used_at,
        }


class CheckinMethod(models.TextChoices):
    QR = "q", _("QR code")
    MANUAL = "m", _("Manual")


class AttendanceStatus(models.TextChoices):
    CHECKED_IN = "i", _("Checked in")
    CHECKED_OUT = "o", _("Checked out")
    CANCELLED = "x", _("Cancelled")


class Attendance(BaseModel):
    """Recorded presence of a registration at the event."""

    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="attendances")

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="attendances")

    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="attendances")

    qr_code = models.ForeignKey(QRCode, on_delete=models.SET_NULL, null=True, blank=True, related_name="attendances")

    method = models.CharField(max_length=1, choices=CheckinMethod.choices, default=CheckinMethod.QR)

    status = models.CharField(max_length=1, choices=AttendanceStatus.choices, default=AttendanceStatus.CHECKED_IN)

    checked_in_at = models.DateTimeField()

    checked_out_at = models.DateTimeField(null=True, blank=True)

    checked_in_by = models.ForeignKey(
        Member,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checkins_performed",
    )

    access_point = models.CharField(max_length=100, blank=True)

    def __str__(self) -> str:
        return f"{self.registration} {self.get_status_display()}"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "registration": self.registration.uuid,
            "member": self.member.display_member(),
            "method": self.method,
            "status": self.status,
            "checked_in_at": self.checked_in_at,
            "checked_out_at": self.checked_out_at,
            "access_point": self.access_point,
        }


class AccessResult(models.TextChoices):
    SUCCESS = "s", _("Success")
    INVALID = "i", _("Invalid")
    DUPLICATE = "d", _("Duplicate")
    FAILED = "f", _("Failed")


class AccessLog(BaseModel):
    """Trace of every QR scan attempt, successful or not."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, null=True, blank=True, related_name="access_logs")

    qr_code = models.ForeignKey(QRCode, on_delete=models.SET_NULL, null=True, blank=True, related_name="access_logs")

    qr_hash = models.CharField(max_length=128, blank=True)

    result = models.CharField(max_length=1, choices=AccessResult.choices)

    failure_reason = models.CharField(max_length=100, blank=True)

    access_point = models.CharField(max_length=100, blank=True)

    scanned_by = models.ForeignKey(Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="scans")

    ip_address = models.GenericIPAddressField(null=True, blank=True)

    class Meta:
        ordering: ClassVar[list] = ["-created"]

    def __str__(self) -> str:
        return f"{self.qr_hash[:12]} {self.get_result_display()}"
