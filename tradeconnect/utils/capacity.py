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

from django.db import transaction
from django.utils import timezone

from tradeconnect.cache.capacity import (
    clear_capacity_cache,
    count_blocked,
    count_confirmed,
    get_capacity_status,
)
from tradeconnect.models.event import AccessType, AccessTypeStatus, Capacity, Event
from tradeconnect.models.member import Member
from tradeconnect.models.registration import (
    ACTIVE_REGISTRATION_STATUSES,
    CapacityLock,
    GroupReservation,
    GroupStatus,
    LockStatus,
    Registration,
    WaitlistEntry,
    WaitlistStatus,
)
from tradeconnect.utils.core.exceptions import BusinessRuleError, CapacityError, RegistrationError

logger = logging.getLogger(__name__)

MAX_GROUP_PARTICIPANTS = 50


def _utilization_warnings(capacity: Capacity, confirmed: int) -> list[str]:
    utilization = confirmed * 100 / capacity.total
    if utilization >= capacity.alert_high:
        return ["UTILIZATION_HIGH"]
    if utilization >= capacity.alert_medium:
        return ["UTILIZATION_MEDIUM"]
    if utilization >= capacity.alert_low:
        return ["UTILIZATION_LOW"]
    return []


def validate_capacity(
    event: Event,
    access_type: AccessType | None = None,
    quantity: int = 1,
    exclude_lock: CapacityLock | None = None,
) -> dict:
    """Check whether the requested seats can be granted.

    The Capacity row of the event is locked with select_for_update, so callers
    that go on to reserve the seats must do so inside the same transaction:
    concurrent requests for the same event then queue behind each other.

    Args:
        event: Event being booked
        access_type: Access type requested, its own cap is checked on top of the event one
        quantity: Number of seats requested
        exclude_lock: Seat lock owned by the caller, not counted as blocked

    Returns:
        dict with is_valid, available_spots, blocked_spots, confirmed_spots,
        errors, warnings and waitlist_available

    Raises:
        CapacityError: If the event has no capacity configured
    """
    with transaction.atomic():
        capacity = Capacity.objects.select_for_update().filter(event=event).first()
        if not capacity:
            raise CapacityError("capacity_not_configured", "Capacity is not configured for this event")

        errors = []
        warnings = []

        confirmed = count_confirmed(event)
        blocked = count_blocked(event, exclude_lock=exclude_lock)["total"]
        available = max(0, capacity.total - confirmed - blocked)

        if quantity < 1:
            errors.append("invalid_quantity")

        elif quantity > available:
            overbooking_limit = capacity.overbooking_limit()
            overbooking_available = max(0, capacity.total + overbooking_limit - confirmed - blocked)
            if overbooking_limit and quantity <= overbooking_available:
                available = overbooking_available
                warnings.append("OVERBOOKING_ACTIVE")
            else:
                errors.append("insufficient_capacity")

        if access_type and access_type.capacity and not errors:
            type_taken = count_confirmed(event, access_type) + count_blocked(event, access_type, exclude_lock)["total"]
            type_available = max(0, access_type.capacity - type_taken)
            if quantity > type_available:
                errors.append("access_type_full")
            available = min(available, type_available)

        warnings = _utilization_warnings(capacity, confirmed) + warnings

    return {
        "is_valid": not errors,
        "available_spots": available,
        "blocked_spots": blocked,
        "confirmed_spots": confirmed,
        "errors": errors,
        "warnings": warnings,
        "waitlist_available": capacity.waitlist_enabled,
    }


def check_capacity(
    event: Event,
    access_type: AccessType | None = None,
    quantity: int = 1,
    exclude_lock: CapacityLock | None = None,
) -> dict:
    """Validate capacity and raise if the seats cannot be granted.

    Raises:
        CapacityError: With the validation errors, and waitlist_available set
            when the member can queue instead
    """
    result = validate_capacity(event, access_type, quantity, exclude_lock)
    if not result["is_valid"]:
        code = result["errors"][0]
        raise CapacityError(
            code,
            "Not enough seats available",
            available_spots=result["available_spots"],
            waitlist_available=result["waitlist_available"],
        )
    return result


def reserve_capacity(
    event: Event,
    member: Member | None = None,
    access_type: AccessType | None = None,
    quantity: int = 1,
    session_key: str = "",
) -> CapacityLock:
    """Hold seats for a member while the registration is completed.

    A previous unconfirmed hold of the same member (or session) on the event
    is released first. The hold expires after the lock timeout of the event.
    """
    with transaction.atomic():
        previous = CapacityLock.objects.filter(event=event, status=LockStatus.LOCKED)
        if member:
            previous = previous.filter(member=member)
        elif session_key:
            previous = previous.filter(session_key=session_key)
        else:
            previous = previous.none()
        previous.update(status=LockStatus.RELEASED)

        check_capacity(event, access_type, quantity)

        capacity = Capacity.objects.get(event=event)
        lock = CapacityLock.objects.create(
            event=event,
            access_type=access_type,
            member=member,
            session_key=session_key,
            quantity=quantity,
            expires_at=timezone.now() + timedelta(minutes=capacity.lock_timeout),
        )

    logger.info(f"Reserved {quantity} seats of {event.slug} until {lock.expires_at}")
    return lock


def confirm_reservation(lock: CapacityLock, registration: Registration) -> CapacityLock:
    """Bind a seat hold to the registration it was taken for.

    Raises:
        CapacityError: If the hold is no longer active
    """
    if lock.status != LockStatus.LOCKED:
        raise CapacityError("lock_not_active", "The seat reservation is no longer active")
    if lock.is_expired():
        lock.status = LockStatus.EXPIRED
        lock.save()
        raise CapacityError("lock_expired", "The seat reservation has expired")

    lock.status = LockStatus.CONFIRMED
    lock.registration = registration
    lock.save()
    return lock


def release_reservation(lock: CapacityLock) -> CapacityLock:
    if lock.status == LockStatus.LOCKED:
        lock.status = LockStatus.RELEASED
        lock.save()
    return lock


def expire_reservations() -> int:
    """Mark as expired the seat holds past their expiry, returns how many."""
    stale = CapacityLock.objects.filter(status=LockStatus.LOCKED, expires_at__lte=timezone.now())
    event_ids = set(stale.values_list("event_id", flat=True))
    expired = stale.update(status=LockStatus.EXPIRED)
    for event_id in event_ids:
        clear_capacity_cache(event_id)
    if expired:
        logger.info(f"Expired {expired} capacity locks")
    return expired


def configure_capacity(event: Event, **values) -> Capacity:
    """Create or update the capacity of an event.

    Raises:
        CapacityError: If the new total is below the seats already confirmed
    """
    with transaction.atomic():
        capacity = Capacity.objects.select_for_update().filter(event=event).first()
        if not capacity:
            capacity = Capacity(event=event)

        for field, value in values.items():
            setattr(capacity, field, value)

        confirmed = count_confirmed(event)
        if capacity.total < confirmed:
            raise CapacityError(
                "capacity_below_confirmed",
                "Total capacity cannot be lower than the confirmed seats",
                confirmed=confirmed,
            )
        capacity.save()

    return capacity


def capacity_report(event: Event) -> dict | None:
    """Capacity status with a breakdown per access type and the waitlist."""
    status = get_capacity_status(event)
    if status is None:
        return None

    access_types = []
    for access_type in event.access_types.all():
        confirmed = count_confirmed(event, access_type)
        blocked = count_blocked(event, access_type)["total"]
        access_types.append(
            {
                "id": access_type.id,
                "name": access_type.name,
                "capacity": access_type.capacity,
                "confirmed": confirmed,
                "blocked": blocked,
                "available": max(0, access_type.capacity - confirmed - blocked) if access_type.capacity else None,
            }
        )

    waitlist = WaitlistEntry.objects.filter(event=event)
    return {
        "status": status,
        "access_types": access_types,
        "locks": {
            lock_status.name.lower(): CapacityLock.objects.filter(event=event, status=lock_status).count()
            for lock_status in LockStatus
        },
        "waitlist": {
            waitlist_status.name.lower(): waitlist.filter(status=waitlist_status).count() for waitlist_status in WaitlistStatus
        },
    }


def create_group_reservation(
    event: Event,
    leader: Member,
    participants: list[tuple[Member, AccessType | None]],
    *,
    allow_partial: bool = False,
) -> tuple[GroupReservation, list[Member]]:
    """Hold one seat for each participant of a group booking.

    Every participant gets a seat lock of their access type (the default one
    of the event when missing) and completes the registration with it. The
    seats are checked one after the other in a single transaction, so the
    seats held for the first participants count against the next ones.
    Unless allow_partial is set, a participant that does not fit cancels
    the whole booking.

    Args:
        event: Event being booked
        leader: Member arranging the booking
        participants: Pairs of member and access type
        allow_partial: Hold the seats that fit and leave out the others

    Returns:
        tuple: The group reservation and the participants left out

    Raises:
        BusinessRuleError: If the group is empty, too large or repeats a member
        RegistrationError: If a participant is already registered or an access type is not on sale
        CapacityError: If the group does not fit
    """
    if not participants or len(participants) > MAX_GROUP_PARTICIPANTS:
        raise BusinessRuleError("invalid_group_size", f"A group has from 1 to {MAX_GROUP_PARTICIPANTS} participants")

    member_ids = [member.id for member, _access_type in participants]
    if len(set(member_ids)) != len(member_ids):
        raise BusinessRuleError("duplicate_participant", "The same member appears more than once in the group")

    registered = list(
        Registration.objects.filter(
            event=event, member_id__in=member_ids, status__in=ACTIVE_REGISTRATION_STATUSES
        ).values_list("member_id", flat=True)
    )
    if registered:
        raise RegistrationError(
            "already_registered", "Some participants are already registered", members=sorted(registered)
        )

    default_access_type = event.access_types.filter(status=AccessTypeStatus.ACTIVE, is_default=True).first()
    for _member, access_type in participants:
        if access_type and (access_type.event_id != event.id or access_type.status != AccessTypeStatus.ACTIVE):
            raise RegistrationError("access_type_not_available", "The access type is not available for this event")

    left_out = []
    with transaction.atomic():
        capacity = Capacity.objects.select_for_update().filter(event=event).first()
        if not capacity:
            raise CapacityError("capacity_not_configured", "Capacity is not configured for this event")

        group = GroupReservation.objects.create(
            event=event,
            leader=leader,
            expires_at=timezone.now() + timedelta(minutes=capacity.lock_timeout),
        )

        # previous holds of the participants are replaced by the group ones
        for lock in CapacityLock.objects.filter(event=event, member_id__in=member_ids, status=LockStatus.LOCKED):
            release_reservation(lock)

        for member, access_type in participants:
            access_type = access_type or default_access_type
            if not validate_capacity(event, access_type)["is_valid"]:
                left_out.append(member)
                continue
            CapacityLock.objects.create(
                event=event,
                access_type=access_type,
                member=member,
                group=group,
                expires_at=group.expires_at,
            )

        if left_out and (not allow_partial or len(left_out) == len(participants)):
            raise CapacityError(
                "insufficient_capacity",
                "Not enough seats for the group",
                left_out=[member.id for member in left_out],
                waitlist_available=capacity.waitlist_enabled,
            )

    logger.info(f"Group {group.uuid} holds {len(participants) - len(left_out)} seats of {event.slug}")
    return group, left_out


def cancel_group_reservation(group: GroupReservation) -> GroupReservation:
    """Release the seats of a group still waiting for their registration.

    Raises:
        BusinessRuleError: If the group is already cancelled
    """
    if group.status != GroupStatus.ACTIVE:
        raise BusinessRuleError("invalid_status", "The group reservation is already cancelled")

    with transaction.atomic():
        for lock in group.capacity_locks.filter(status=LockStatus.LOCKED):
            release_reservation(lock)
        group.status = GroupStatus.CANCELLED
        group.cancelled_at = timezone.now()
        group.save()

    return group
