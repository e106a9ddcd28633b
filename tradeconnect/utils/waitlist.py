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

import logging
from datetime import timedelta

from django.conf import settings as conf_settings
from django.db import transaction
from django.db.models import F, Max
from django.utils import timezone

from tradeconnect.mail.registration import send_waitlist_joined_email, send_waitlist_offer_email
from tradeconnect.models.event import AccessType, Capacity, Event
from tradeconnect.models.member import Member
from tradeconnect.models.registration import (
    ACTIVE_REGISTRATION_STATUSES,
    QUEUED_WAITLIST_STATUSES,
    Registration,
    WaitlistEntry,
    WaitlistStatus,
)
from tradeconnect.utils.capacity import validate_capacity
from tradeconnect.utils.common import save_log
from tradeconnect.utils.core.exceptions import UserPermissionError, WaitlistError

logger = logging.getLogger(__name__)


def get_waitlist(event: Event, access_type: AccessType | None = None, *, all_queues: bool = True):
    """Queued entries of an event, in position order.

    Each access type has its own queue; entries without access type form the
    general queue. With all_queues the entries of every queue are returned.
    """
    queryset = WaitlistEntry.objects.filter(event=event, status__in=QUEUED_WAITLIST_STATUSES)
    if not all_queues or access_type:
        queryset = queryset.filter(access_type=access_type)
    return queryset.select_related("member", "access_type").order_by("position", "created")


def _compact_positions(entry: WaitlistEntry) -> None:
    """Move up by one the entries queued behind the given one."""
    WaitlistEntry.objects.filter(
        event_id=entry.event_id,
        access_type_id=entry.access_type_id,
        status__in=QUEUED_WAITLIST_STATUSES,
        position__gt=entry.position,
    ).update(position=F("position") - 1)


def add_to_waitlist(
    event: Event, member: Member, access_type: AccessType | None = None, quantity: int = 1
) -> WaitlistEntry:
    """Append a member to the waitlist of an event.

    Raises:
        WaitlistError: If the waitlist is disabled, or the member is already
            registered or already waiting
    """
    with transaction.atomic():
        # serialize position assignment per event
        capacity = Capacity.objects.select_for_update().filter(event=event).first()
        if not capacity or not capacity.waitlist_enabled:
            raise WaitlistError("waitlist_disabled", "The waitlist is not enabled for this event")

        if Registration.objects.filter(event=event, member=member, status__in=ACTIVE_REGISTRATION_STATUSES).exists():
            raise WaitlistError("already_registered", "You are already registered to this event")

        if WaitlistEntry.objects.filter(event=event, member=member, status__in=QUEUED_WAITLIST_STATUSES).exists():
            raise WaitlistError("already_in_waitlist", "You are already in the waitlist of this event")

        last_position = WaitlistEntry.objects.filter(
            event=event, access_type=access_type, status__in=QUEUED_WAITLIST_STATUSES
        ).aggregate(last=Max("position"))["last"]

        entry = WaitlistEntry.objects.create(
            event=event,
            access_type=access_type,
            member=member,
            quantity=quantity,
            position=(last_position or 0) + 1,
        )

    save_log(member, WaitlistEntry, entry, event.organization_id)
    send_waitlist_joined_email(entry)
    return entry


def remove_from_waitlist(entry: WaitlistEntry) -> WaitlistEntry:
    """Leave the waitlist; a pending offer of the entry passes to the next in line.

    Raises:
        WaitlistError: If the entry is not queued anymore
    """
    if entry.status not in QUEUED_WAITLIST_STATUSES:
        raise WaitlistError("not_in_waitlist", "The entry is not in the waitlist")

    was_notified = entry.status == WaitlistStatus.NOTIFIED
    with transaction.atomic():
        entry.status = WaitlistStatus.CANCELLED
        entry.save()
        _compact_positions(entry)

    if was_notified:
        notify_next(entry.event, entry.access_type)
    return entry


def _offer(entry: WaitlistEntry) -> WaitlistEntry:
    now = timezone.now()
    entry.status = WaitlistStatus.NOTIFIED
    entry.notified_at = now
    entry.expires_at = now + timedelta(hours=conf_settings.WAITLIST_OFFER_HOURS)
    entry.save()
    send_waitlist_offer_email(entry)
    logger.info(f"Waitlist offer sent to member {entry.member_id} for {entry.event.slug}")
    return entry


def notify_next(event: Event, access_type: AccessType | None = None) -> WaitlistEntry | None:
    """Offer the freed seats to the first person waiting, if they fit.

    The queue of the access type is served first, then the general queue.
    The offered seats stay held until the offer is confirmed or expires.

    Returns:
        The notified entry, or None if nobody could be offered a seat
    """
    capacity = Capacity.objects.filter(event=event).first()
    if not capacity or not capacity.waitlist_enabled:
        return None

    queues = [access_type, None] if access_type else [None]
    for queue in queues:
        entry = (
            WaitlistEntry.objects.filter(event=event, access_type=queue, status=WaitlistStatus.ACTIVE)
            .order_by("position")
            .first()
        )
        if not entry:
            continue
        if validate_capacity(event, entry.access_type, entry.quantity)["is_valid"]:
            return _offer(entry)

    return None


def confirm_entry(entry: WaitlistEntry, member: Member) -> Registration:
    """Accept a waitlist offer, turning it into a registration.

    Raises:
        UserPermissionError: If the entry belongs to another member
        WaitlistError: If there is no offer, or it expired
    """
    from tradeconnect.utils.registration import register

    if entry.member_id != member.id:
        raise UserPermissionError

    if entry.status != WaitlistStatus.NOTIFIED:
        raise WaitlistError("no_active_offer", "There is no seat offered to this entry")

    if entry.expires_at and entry.expires_at <= timezone.now():
        expire_entry(entry)
        if entry.event.is_open():
            notify_next(entry.event, entry.access_type)
        raise WaitlistError("offer_expired", "The seat offer has expired")

    with transaction.atomic():
        registration = register(
            entry.event, member, entry.access_type, entry.quantity, from_waitlist=True
        )
        entry.status = WaitlistStatus.CONFIRMED
        entry.confirmed_at = timezone.now()
        entry.registration = registration
        entry.save()
        _compact_positions(entry)

    return registration


def expire_entry(entry: WaitlistEntry) -> None:
    with transaction.atomic():
        entry.status = WaitlistStatus.EXPIRED
        entry.save()
        _compact_positions(entry)


def process_expired_entries() -> int:
    """Expire the offers not confirmed in time and pass the seats on, returns how many expired."""
    expired = 0
    stale = WaitlistEntry.objects.filter(status=WaitlistStatus.NOTIFIED, expires_at__lte=timezone.now())
    for entry in stale.select_related("event", "access_type"):
        expire_entry(entry)
        expired += 1
        if entry.event.is_open():
            notify_next(entry.event, entry.access_type)
    return expired


def get_member_position(event: Event, member: Member) -> dict | None:
    entry = WaitlistEntry.objects.filter(event=event, member=member, status__in=QUEUED_WAITLIST_STATUSES).first()
    if not entry:
        return None
    total = WaitlistEntry.objects.filter(
        event=event, access_type_id=entry.access_type_id, status__in=QUEUED_WAITLIST_STATUSES
    ).count()
    return {"entry": entry.id, "position": entry.position, "total": total, "status": entry.status}
