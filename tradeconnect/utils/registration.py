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
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.forms.models import model_to_dict
from django.utils import timezone

from tradeconnect.mail.registration import (
    send_event_cancelled_email,
    send_registration_cancelled_email,
    send_registration_confirmed_email,
)
from tradeconnect.models.access import EventRole
from tradeconnect.models.event import AccessType, AccessTypeStatus, Capacity, Event, EventConfig, EventStatus
from tradeconnect.models.member import Member, Membership
from tradeconnect.models.registration import (
    ACTIVE_REGISTRATION_STATUSES,
    QUEUED_WAITLIST_STATUSES,
    CapacityLock,
    LockStatus,
    Registration,
    RegistrationStatus,
    WaitlistEntry,
    WaitlistStatus,
)
from tradeconnect.models.utils import round_money
from tradeconnect.utils.capacity import check_capacity, confirm_reservation
from tradeconnect.utils.checkin import generate_qr, get_active_qr, invalidate_qr
from tradeconnect.utils.common import save_log
from tradeconnect.utils.core.exceptions import BusinessRuleError, RegistrationError
from tradeconnect.utils.promotion import apply_promo_code, cancel_promo_usage, validate_promo_code
from tradeconnect.utils.waitlist import notify_next

logger = logging.getLogger(__name__)


def get_default_access_type(event: Event) -> AccessType | None:
    return event.access_types.filter(status=AccessTypeStatus.ACTIVE, is_default=True).first()


def get_unit_price(event: Event, access_type: AccessType | None) -> Decimal:
    if access_type:
        return access_type.price
    return event.price


def get_active_registration(event: Event, member: Member) -> Registration | None:
    return Registration.objects.filter(event=event, member=member, status__in=ACTIVE_REGISTRATION_STATUSES).first()


def _check_access_type(event: Event, access_type: AccessType | None) -> AccessType | None:
    if access_type is None:
        return get_default_access_type(event)
    if access_type.event_id != event.id or access_type.status != AccessTypeStatus.ACTIVE:
        raise RegistrationError("access_type_not_available", "The access type is not available for this event")
    return access_type


def _check_lock(
    lock: CapacityLock, event: Event, member: Member, access_type: AccessType | None, quantity: int
) -> None:
    if lock.event_id != event.id or (lock.member_id and lock.member_id != member.id):
        raise RegistrationError("invalid_lock", "The seat reservation does not belong to this registration")
    if quantity > lock.quantity:
        raise RegistrationError("invalid_lock", "The seat reservation holds fewer seats than requested")

    access_type_id = access_type.id if access_type else None
    if lock.access_type_id and lock.access_type_id != access_type_id:
        raise RegistrationError("invalid_lock", "The seat reservation was taken for another access type")

    # a hold on the whole event does not count against the access type cap
    if not lock.access_type_id and access_type and access_type.capacity:
        check_capacity(event, access_type, quantity, exclude_lock=lock)


def register(
    event: Event,
    member: Member,
    access_type: AccessType | None = None,
    quantity: int = 1,
    promo_code: str | None = None,
    lock: CapacityLock | None = None,
    *,
    from_waitlist: bool = False,
) -> Registration:
    """Register a member to an event.

    The seats are checked against the capacity of the event (unless they were
    already held by a seat lock or offered from the waitlist), the price is
    computed with the optional promo code, and a pending registration is
    created. Free registrations are confirmed straight away.

    Args:
        event: Event to register to
        member: Member registering
        access_type: Access type chosen, the default one of the event if missing
        quantity: Number of seats
        promo_code: Code typed by the member
        lock: Seat hold taken before, consumed by the registration
        from_waitlist: The seats come from a waitlist offer

    Returns:
        The new registration

    Raises:
        RegistrationError: If the event is not open or the member is already registered
        CapacityError: If there are not enough seats
        PromoCodeError: If the promo code cannot be applied
    """
    if not event.is_open():
        raise RegistrationError("event_not_open", "The event does not accept registrations")

    if quantity < 1:
        raise RegistrationError("invalid_quantity", "Quantity must be at least 1")

    access_type = _check_access_type(event, access_type)

    if get_active_registration(event, member):
        raise RegistrationError("already_registered", "You are already registered to this event")

    base_amount = round_money(get_unit_price(event, access_type) * quantity)

    promo = None
    if promo_code:
        promo = validate_promo_code(
            promo_code, event.organization_id, member, base_amount, event=event, quantity=quantity
        )["promo_code"]

    try:
        with transaction.atomic():
            if lock:
                _check_lock(lock, event, member, access_type, quantity)
            elif not from_waitlist and Capacity.objects.filter(event=event).exists():
                check_capacity(event, access_type, quantity)

            registration = Registration.objects.create(
                event=event,
                member=member,
                access_type=access_type,
                quantity=quantity,
                base_amount=base_amount,
                total=base_amount,
            )

            if promo:
                usage = apply_promo_code(promo, member, base_amount, registration, quantity)
                registration.promo_code = promo
                registration.discount_amount = usage.discount_amount
                registration.total = usage.final_amount
                registration.save()

            if lock:
                confirm_reservation(lock, registration)

            Membership.objects.get_or_create(member=member, organization_id=event.organization_id)
    except IntegrityError as err:
        raise RegistrationError("already_registered", "You are already registered to this event") from err

    save_log(member, Registration, registration, event.organization_id)
    logger.info(f"Registration {registration.uuid} created for {event.slug}")

    if registration.total <= 0:
        confirm_registration(registration)

    return registration


def confirm_registration(registration: Registration) -> Registration:
    """Confirm a pending registration, issuing its QR code and notifying the member.

    Raises:
        RegistrationError: If the registration is not pending
    """
    if registration.status != RegistrationStatus.PENDING:
        raise RegistrationError("invalid_status", "Only pending registrations can be confirmed")

    registration.status = RegistrationStatus.CONFIRMED
    registration.confirmed_at = timezone.now()
    registration.save()

    generate_qr(registration)
    send_registration_confirmed_email(registration)
    return registration


def cancel_registration(registration: Registration, reason: str = "", *, notify: bool = True) -> Registration:
    """Cancel a registration and give its seats back.

    The active QR code is invalidated, the promo code usage reverted and the
    freed seats offered to the waitlist.

    Raises:
        RegistrationError: If the registration is not pending or confirmed
    """
    if registration.status not in [RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED]:
        raise RegistrationError("invalid_status", "The registration cannot be cancelled")

    with transaction.atomic():
        registration.status = RegistrationStatus.CANCELLED
        registration.cancelled_at = timezone.now()
        registration.cancellation_reason = reason
        registration.save()

        active_qr = get_active_qr(registration)
        if active_qr:
            invalidate_qr(active_qr, "registration cancelled")

        cancel_promo_usage(registration)

    logger.info(f"Registration {registration.uuid} cancelled")

    if notify:
        send_registration_cancelled_email(registration)

    if registration.event.is_open():
        notify_next(registration.event, registration.access_type)

    return registration


def get_member_registrations(member: Member, organization_id: int):
    return (
        Registration.objects.filter(member=member, event__organization_id=organization_id)
        .select_related("event", "access_type", "promo_code")
        .order_by("-created")
    )


def publish_event(event: Event) -> Event:
    """Raises BusinessRuleError if the event is not a draft."""
    if event.status != EventStatus.DRAFT:
        raise BusinessRuleError("invalid_event_status", "Only draft events can be published")
    event.status = EventStatus.PUBLISHED
    event.published_at = timezone.now()
    event.save()
    return event


def cancel_event(event: Event, reason: str = "") -> Event:
    """Cancel an event.

    Pending registrations are cancelled, seat holds released and the waitlist
    closed; every registrant is told by email.

    Raises:
        BusinessRuleError: If the event is already cancelled or completed
    """
    if event.status in [EventStatus.CANCELLED, EventStatus.COMPLETED]:
        raise BusinessRuleError("invalid_event_status", "The event is already closed")

    with transaction.atomic():
        event.status = EventStatus.CANCELLED
        event.cancelled_at = timezone.now()
        event.cancellation_reason = reason
        event.save()

        for registration in event.registrations.filter(status=RegistrationStatus.PENDING):
            cancel_registration(registration, "event cancelled", notify=False)

        CapacityLock.objects.filter(event=event, status=LockStatus.LOCKED).update(status=LockStatus.RELEASED)
        WaitlistEntry.objects.filter(event=event, status__in=QUEUED_WAITLIST_STATUSES).update(
            status=WaitlistStatus.CANCELLED
        )

    for registration in event.registrations.select_related("member").exclude(status=RegistrationStatus.NO_SHOW):
        send_event_cancelled_email(registration)

    logger.info(f"Event {event.slug} cancelled")
    return event


def complete_past_events() -> int:
    """Close the published events already ended, marking absent registrations as no-show."""
    completed = 0
    for event in Event.objects.filter(status=EventStatus.PUBLISHED, end__lt=timezone.now()):
        with transaction.atomic():
            event.registrations.filter(status=RegistrationStatus.CONFIRMED).update(status=RegistrationStatus.NO_SHOW)
            event.status = EventStatus.COMPLETED
            event.save()
        completed += 1
    return completed


def duplicate_event(event: Event, slug: str, name: str | None = None) -> Event:
    """Copy an event as a new draft, with its access types, capacity, configs and organizers."""
    with transaction.atomic():
        new_event = event.make_clone(
            attrs={
                "slug": slug,
                "name": name or event.name,
                "status": EventStatus.DRAFT,
                "published_at": None,
                "cancelled_at": None,
                "cancellation_reason": "",
            }
        )

        for access_type in event.access_types.all():
            access_type.make_clone(attrs={"event": new_event})

        for config in EventConfig.objects.filter(event=event):
            config.make_clone(attrs={"event": new_event})

        capacity = Capacity.objects.filter(event=event).first()
        if capacity:
            # one to one with the event, copied field by field
            values = model_to_dict(capacity, exclude=["id", "event", "deleted"])
            Capacity.objects.create(event=new_event, **values)

        source_organizers = EventRole.objects.filter(event=event, number=1).first()
        new_organizers = EventRole.objects.filter(event=new_event, number=1).first()
        if source_organizers and new_organizers:
            new_organizers.members.set(source_organizers.members.all())

    return new_event
