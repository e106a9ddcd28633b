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

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings as conf_settings
from django.core.cache import cache
from django.utils import timezone

from tradeconnect.models.event import Capacity
from tradeconnect.models.registration import (
    CapacityLock,
    LockStatus,
    Registration,
    RegistrationStatus,
    WaitlistEntry,
    WaitlistStatus,
)
from tradeconnect.models.utils import get_sum

if TYPE_CHECKING:
    from tradeconnect.models.event import AccessType, Event


def capacity_status_key(event_id: int) -> str:
    return f"capacity_status_{event_id}"


def count_confirmed(event: Event, access_type: AccessType | None = None) -> int:
    """Seats taken by confirmed or attended registrations."""
    queryset = Registration.objects.filter(
        event=event, status__in=[RegistrationStatus.CONFIRMED, RegistrationStatus.ATTENDED]
    )
    if access_type:
        queryset = queryset.filter(access_type=access_type)
    return get_sum(queryset)


def count_blocked(event: Event, access_type: AccessType | None = None, exclude_lock: CapacityLock | None = None) -> dict:
    """Seats held but not yet confirmed.

    Pending registrations, unexpired seat locks and unexpired waitlist offers
    all hold seats.

    Returns:
        dict with pending, locked, offered and total counts
    """
    now = timezone.now()
    pending = Registration.objects.filter(event=event, status=RegistrationStatus.PENDING)
    locked = CapacityLock.objects.filter(event=event, status=LockStatus.LOCKED, expires_at__gt=now)
    offered = WaitlistEntry.objects.filter(event=event, status=WaitlistStatus.NOTIFIED, expires_at__gt=now)

    if access_type:
        pending = pending.filter(access_type=access_type)
        locked = locked.filter(access_type=access_type)
        offered = offered.filter(access_type=access_type)

    if exclude_lock:
        locked = locked.exclude(pk=exclude_lock.pk)

    counts = {"pending": get_sum(pending), "locked": get_sum(locked), "offered": get_sum(offered)}
    counts["total"] = counts["pending"] + counts["locked"] + counts["offered"]
    return counts


def init_capacity_status(capacity: Capacity) -> dict:
    event = capacity.event
    confirmed = count_confirmed(event)
    blocked = count_blocked(event)
    overbooking_limit = capacity.overbooking_limit()

    return {
        "total": capacity.total,
        "confirmed": confirmed,
        "blocked": blocked["total"],
        "pending": blocked["pending"],
        "locked": blocked["locked"],
        "offered": blocked["offered"],
        "available": max(0, capacity.total - confirmed - blocked["total"]),
        "utilization": round(confirmed * 100 / capacity.total, 2),
        "overbooking_enabled": capacity.overbooking_enabled,
        "overbooking_limit": overbooking_limit,
        "overbooking_available": max(0, capacity.total + overbooking_limit - confirmed - blocked["total"]),
        "waitlist_enabled": capacity.waitlist_enabled,
        "waitlist": WaitlistEntry.objects.filter(event=event, status=WaitlistStatus.ACTIVE).count(),
    }


def get_capacity_status(event: Event) -> dict | None:
    """Get cached seat statistics of an event, None when capacity is not configured."""
    key = capacity_status_key(event.id)
    status = cache.get(key)
    if status is None:
        capacity = Capacity.objects.select_related("event").filter(event=event).first()
        if not capacity:
            return None
        status = init_capacity_status(capacity)
        cache.set(key, status, timeout=conf_settings.CACHE_TIMEOUT_CAPACITY)
    return status


def clear_capacity_cache(event_id: int) -> None:
    cache.delete(capacity_status_key(event_id))
