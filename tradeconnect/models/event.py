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
from math import floor
from typing import Any, ClassVar

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import AlphanumericValidator, BaseModel
from tradeconnect.models.organization import Currency, Organization


class EventStatus(models.TextChoices):
    DRAFT = "d", _("Draft")
    PUBLISHED = "p", _("Published")
    CANCELLED = "x", _("Cancelled")
    COMPLETED = "c", _("Completed")


class Event(BaseModel):
    """Represents Event model."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="events")

    name = models.CharField(max_length=150, verbose_name=_("Name"))

    slug = models.SlugField(max_length=100, validators=[AlphanumericValidator], db_index=True, unique=True)

    description = models.TextField(blank=True, verbose_name=_("Description"))

    location = models.CharField(max_length=250, blank=True, verbose_name=_("Location"))

    is_virtual = models.BooleanField(default=False, verbose_name=_("Virtual event"))

    virtual_url = models.URLField(blank=True, verbose_name=_("Virtual event link"))

    start = models.DateTimeField(verbose_name=_("Start"))

    end = models.DateTimeField(verbose_name=_("End"))

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        verbose_name=_("Base price"),
        help_text=_("Price used when the registration has no access type"),
    )

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GTQ)

    status = models.CharField(max_length=1, choices=EventStatus.choices, default=EventStatus.DRAFT, db_index=True)

    published_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering: ClassVar[list] = ["-start"]
        indexes: ClassVar[list] = [
            models.Index(fields=["organization", "status"], condition=Q(deleted__isnull=True), name="event_org_status_act"),
        ]

    def get_config(self, name: str, default_value: Any = None, *, bypass_cache: bool = False) -> Any:
        from tradeconnect.cache.config import get_element_config

        return get_element_config(self, name, default_value, bypass_cache=bypass_cache)

    def is_open(self) -> bool:
        """Return True if the event accepts registrations right now."""
        return self.status == EventStatus.PUBLISHED and self.end > timezone.now()

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "is_virtual": self.is_virtual,
            "start": self.start,
            "end": self.end,
            "price": self.price,
            "currency": self.currency,
            "status": self.status,
            "published_at": self.published_at,
        }


class EventConfig(BaseModel):
    """Named configuration value of an event."""

    name = models.CharField(max_length=150)

    value = models.CharField(max_length=1000)

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="configs")

    class Meta:
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["event", "name", "deleted"],
                name="unique_event_config_with_optional",
            ),
            UniqueConstraint(
                fields=["event", "name"],
                condition=Q(deleted=None),
                name="unique_event_config_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event} {self.name}"


class AccessTypeStatus(models.TextChoices):
    ACTIVE = "a", _("Active")
    INACTIVE = "i", _("Inactive")
    ARCHIVED = "r", _("Archived")


class AccessType(BaseModel):
    """Ticket type of an event, with its own price and optional seat cap."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="access_types")

    number = models.IntegerField(blank=True)

    name = models.CharField(max_length=100, verbose_name=_("Name"))

    description = models.TextField(blank=True)

    category = models.CharField(max_length=50, blank=True, help_text=_("Free grouping label (VIP, general, press)"))

    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    capacity = models.PositiveIntegerField(
        default=0,
        help_text=_("Seats reserved to this access type; 0 shares the event capacity without its own cap"),
    )

    status = models.CharField(max_length=1, choices=AccessTypeStatus.choices, default=AccessTypeStatus.ACTIVE)

    is_default = models.BooleanField(default=False)

    priority = models.IntegerField(default=0)

    display_order = models.IntegerField(default=0)

    class Meta:
        ordering: ClassVar[list] = ["display_order", "-priority", "number"]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["event", "number", "deleted"],
                name="unique_access_type_with_optional",
            ),
            UniqueConstraint(
                fields=["event", "number"],
                condition=Q(deleted=None),
                name="unique_access_type_without_optional",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        # only one default access type per event
        if self.is_default:
            AccessType.objects.filter(event_id=self.event_id, is_default=True).exclude(pk=self.pk).update(
                is_default=False
            )
        super().save(*args, **kwargs)

    def as_dict(self) -> dict:
        return {
            "number": self.number,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": self.price,
            "capacity": self.capacity,
            "status": self.status,
            "is_default": self.is_default,
            "priority": self.priority,
        }


class Capacity(BaseModel):
    """Seat allocation rules of an event."""

    event = models.OneToOneField(Event, on_delete=models.CASCADE, related_name="capacity")

    total = models.PositiveIntegerField(validators=[MinValueValidator(1)], verbose_name=_("Total capacity"))

    overbooking_enabled = models.BooleanField(default=False)

    overbooking_percentage = models.PositiveIntegerField(
        default=0,
        validators=[MaxValueValidator(50)],
        help_text=_("Extra seats sold above the total capacity, as a percentage (max 50)"),
    )

    waitlist_enabled = models.BooleanField(default=True)

    lock_timeout = models.PositiveIntegerField(
        default=15,
        validators=[MinValueValidator(5), MaxValueValidator(60)],
        help_text=_("Minutes a seat reservation is held before expiring"),
    )

    alert_low = models.PositiveIntegerField(default=80, validators=[MaxValueValidator(100)])

    alert_medium = models.PositiveIntegerField(default=90, validators=[MaxValueValidator(100)])

    alert_high = models.PositiveIntegerField(default=95, validators=[MaxValueValidator(100)])

    class Meta:
        verbose_name_plural = "capacities"

    def __str__(self) -> str:
        return f"{self.event} ({self.total})"

    def overbooking_limit(self) -> int:
        """Return the number of seats allowed above the total capacity."""
        if not self.overbooking_enabled:
            return 0
        return floor(self.total * self.overbooking_percentage / 100)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "overbooking_enabled": self.overbooking_enabled,
            "overbooking_percentage": self.overbooking_percentage,
            "overbooking_limit": self.overbooking_limit(),
            "waitlist_enabled": self.waitlist_enabled,
            "lock_timeout": self.lock_timeout,
            "alert_low": self.alert_low,
            "alert_medium": self.alert_medium,
            "alert_high": self.alert_high,
        }


def get_event_capacity(event: Event) -> Capacity | None:
    """Return the capacity configuration of the event, if any."""
    return Capacity.objects.filter(event=event).first()
