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
from typing import ClassVar

from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import BaseModel, UuidMixin
from tradeconnect.models.event import AccessType, Event
from tradeconnect.models.member import Member


class RegistrationStatus(models.TextChoices):
    PENDING = "p", _("Pending")
    CONFIRMED = "c", _("Confirmed")
    ATTENDED = "a", _("Attended")
    CANCELLED = "x", _("Cancelled")
    NO_SHOW = "n", _("No show")


# statuses holding a seat
ACTIVE_REGISTRATION_STATUSES = [RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED, RegistrationStatus.ATTENDED]


class Registration(UuidMixin, BaseModel):
    """Member signup to an event."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")

    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="registrations")

    access_type = models.ForeignKey(
        AccessType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrations",
    )

    status = models.CharField(
        max_length=1,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING,
        db_index=True,
    )

    quantity = models.PositiveIntegerField(default=1)

    base_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    promo_code = models.ForeignKey(
        "tradeconnect.PromoCode",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrations",
    )

    confirmed_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.CharField(max_length=500, blank=True)

    class Meta:
        indexes: ClassVar[list] = [
            models.Index(fields=["event", "status"], condition=Q(deleted__isnull=True), name="reg_event_status_act"),
        ]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["event", "member"],
                condition=Q(deleted=None) & ~Q(status=RegistrationStatus.CANCELLED),
                name="unique_active_registration",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event} - {self.member}"

    def balance(self) -> Decimal:
        """Return the amount still to be paid."""
        return max(Decimal("0"), self.total - self.paid)

    def as_dict(self) -> dict:
        return {
            "uuid": self.uuid,
            "event": self.event.slug,
            "member": self.member_id,
            "access_type": self.access_type.number if self.access_type else None,
            "status": self.status,
            "quantity": self.quantity,
            "base_amount": self.base_amount,
            "discount_amount": self.discount_amount,
            "total": self.total,
            "paid": self.paid,
            "promo_code": self.promo_code.code if self.promo_code else None,
            "confirmed_at": self.confirmed_at,
            "cancelled_at": self.cancelled_at,
        }


class LockStatus(models.TextChoices):
    LOCKED = "l", _("Locked")
    CONFIRMED = "c", _("Confirmed")
    RELEASED = "r", _("Released")
    EXPIRED = "e", _("Expired")


class GroupStatus(models.TextChoices):
    ACTIVE = "a", _("Active")
    CANCELLED = "c", _("Cancelled")


class GroupReservation(UuidMixin, BaseModel):
    """Seats held together for the participants of a group booking.

    Each participant owns one of the seat locks of the group, and completes
    the registration with it.
    """

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="group_reservations")

    leader = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="led_groups")

    status = models.CharField(max_length=1, choices=GroupStatus.choices, default=GroupStatus.ACTIVE, db_index=True)

    expires_at = models.DateTimeField()

    cancelled_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.event} group of {self.leader}"

    def as_dict(self) -> dict:
        return {
            "uuid": self.uuid,
            "event": self.event.slug,
            "leader": self.leader_id,
            "status": self.status,
            "expires_at": self.expires_at,
            "participants": [
                {
                    "member": lock.member_id,
                    "access_type": lock.access_type.number if lock.access_type else None,
                    "lock": lock.uuid,
                    "status": lock.status,
                }
                for lock in self.capacity_locks.select_related("access_type").order_by("id")
            ],
        }


class CapacityLock(UuidMixin, BaseModel):
    """Temporary hold of seats while a member completes the checkout."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="capacity_locks")

    access_type = models.ForeignKey(
        AccessType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="capacity_locks",
    )

    member = models.ForeignKey(Member, on_delete=models.CASCADE, null=True, blank=True, related_name="capacity_locks")

    session_key = models.CharField(max_length=100, blank=True)

    quantity = models.PositiveIntegerField(default=1)

    status = models.CharField(max_length=1, choices=LockStatus.choices, default=LockStatus.LOCKED, db_index=True)

    expires_at = models.DateTimeField()

    registration = models.ForeignKey(
        Registration,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="capacity_locks",
    )

    group = models.ForeignKey(
        GroupReservation,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="capacity_locks",
    )

    def __str__(self) -> str:
        return f"{self.event} x{self.quantity} ({self.get_status_display()})"

    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()

    def as_dict(self) -> dict:
        return {
            "uuid": self.uuid,
            "event": self.event.slug,
            "access_type": self.access_type.number if self.access_type else None,
            "quantity": self.quantity,
            "status": self.status,
            "expires_at": self.expires_at,
        }


class WaitlistStatus(models.TextChoices):
    ACTIVE = "a", _("Active")
    NOTIFIED = "n", _("Notified")
    CONFIRMED = "c", _("Confirmed")
    EXPIRED = "e", _("Expired")
    CANCELLED = "x", _("Cancelled")


# statuses still in the queue
QUEUED_WAITLIST_STATUSES = [WaitlistStatus.ACTIVE, WaitlistStatus.NOTIFIED]


class WaitlistEntry(BaseModel):
    """Position of a member in the waitlist of an event."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="waitlist")

    access_type = models.ForeignKey(
        AccessType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="waitlist",
    )

    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="waitlist_entries")

    position = models.PositiveIntegerField()

    quantity = models.PositiveIntegerField(default=1)

    status = models.CharField(max_length=1, choices=WaitlistStatus.choices, default=WaitlistStatus.ACTIVE, db_index=True)

    notified_at = models.DateTimeField(null=True, blank=True)

    expires_at = models.DateTimeField(null=True, blank=True)

    confirmed_at = models.DateTimeField(null=True, blank=True)

    registration = models.ForeignKey(
        Registration,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="waitlist_entries",
    )

    class Meta:
        ordering: ClassVar[list] = ["position"]
        verbose_name_plural = "waitlist entries"

    def __str__(self) -> str:
        return f"{self.event} #{self.position} {self.member}"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "event": self.event.slug,
            "member": self.member_id,
            "access_type": self.access_type.number if self.access_type else None,
            "position": self.position,
            "status": self.status,
            "notified_at": self.notified_at,
            "expires_at": self.expires_at,
        }
