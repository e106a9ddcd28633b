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

from django.core.exceptions import ValidationError

from tradeconnect.forms.base import MyForm
from tradeconnect.models.event import AccessType, Capacity, Event


class EventForm(MyForm):
    class Meta:
        model = Event
        fields: ClassVar[list] = [
            "name",
            "slug",
            "description",
            "location",
            "is_virtual",
            "virtual_url",
            "start",
            "end",
            "price",
            "currency",
        ]

    def clean(self) -> dict:
        cleaned_data = super().clean()
        self.check_dates(cleaned_data, "start", "end")
        if cleaned_data.get("is_virtual") and not cleaned_data.get("virtual_url"):
            self.add_error("virtual_url", "Required for virtual events")
        return cleaned_data

    def save(self, commit: bool = True) -> Event:  # noqa: FBT001, FBT002
        instance = super().save(commit=False)
        if not instance.organization_id:
            instance.organization_id = self.params["organization_id"]
        if commit:
            instance.save()
        return instance


class AccessTypeForm(MyForm):
    class Meta:
        model = AccessType
        fields: ClassVar[list] = [
            "name",
            "description",
            "category",
            "price",
            "capacity",
            "status",
            "is_default",
            "priority",
            "display_order",
        ]

    def clean_capacity(self) -> int:
        capacity = self.cleaned_data["capacity"]
        event_capacity = Capacity.objects.filter(event=self.params["event"]).first()
        if capacity and event_capacity and capacity > event_capacity.total:
            raise ValidationError("Cannot exceed the event capacity")
        return capacity

    def save(self, commit: bool = True) -> AccessType:  # noqa: FBT001, FBT002
        instance = super().save(commit=False)
        if not instance.event_id:
            instance.event = self.params["event"]
        if commit:
            instance.save()
        return instance


class CapacityForm(MyForm):
    """Capacity settings of an event; thresholds must be ordered low, medium, high."""

    class Meta:
        model = Capacity
        fields: ClassVar[list] = [
            "total",
            "overbooking_enabled",
            "overbooking_percentage",
            "waitlist_enabled",
            "lock_timeout",
            "alert_low",
            "alert_medium",
            "alert_high",
        ]

    def clean(self) -> dict:
        cleaned_data = super().clean()
        low = cleaned_data.get("alert_low")
        medium = cleaned_data.get("alert_medium")
        high = cleaned_data.get("alert_high")
        if None not in (low, medium, high) and not (low <= medium <= high):
            self.add_error("alert_medium", "Thresholds must be ordered: low, medium, high")
        return cleaned_data
