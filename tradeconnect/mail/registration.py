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

from django.utils import formats
from django.utils.translation import activate
from django.utils.translation import gettext as _

from tradeconnect.cache.config import get_organization_config
from tradeconnect.mail.base import format_amount, hdr
from tradeconnect.models.access import get_event_organizers
from tradeconnect.models.registration import Registration, WaitlistEntry
from tradeconnect.utils.tasks import my_send_mail

logger = logging.getLogger(__name__)


def registration_details(registration: Registration) -> str:
    """Summary of the registration appended to the emails."""
    language = registration.member.language
    details = "<br /><br />"
    if registration.access_type:
        details += _("Access type") + f": <b>{registration.access_type.name}</b><br />"
    details += _("Quantity") + f": {registration.quantity}<br />"
    details += _("Total") + f": {format_amount(registration.total, registration.event.currency, language)}<br />"
    if registration.discount_amount:
        discount = format_amount(registration.discount_amount, registration.event.currency, language)
        details += _("Discount") + f": {discount}<br />"
    details += _("Date") + f": {formats.date_format(registration.event.start, 'DATETIME_FORMAT')}<br />"
    if registration.event.location:
        details += _("Location") + f": {registration.event.location}<br />"
    details += _("Registration code") + f": <tt>{registration.uuid}</tt>"
    return details


def send_registration_confirmed_email(registration: Registration) -> None:
    """Notify the member that the registration is confirmed, and organizers if configured."""
    event = registration.event
    context = {"event": event.name, "user": registration.member.display_member()}

    activate(registration.member.language)
    subject = hdr(event) + _("Registration to %(event)s") % context
    body = _("Hello! Your registration at <b>%(event)s</b> has been confirmed") % context + "!"
    body += registration_details(registration)
    body += "<br /><br />" + _("Present the QR code you will receive at the entrance of the event")
    my_send_mail(subject, body, registration.member, event)

    if get_organization_config(event.organization_id, "mail_registration_new", False):
        for organizer in get_event_organizers(event):
            activate(organizer.language)
            subject = hdr(event) + _("Registration to %(event)s by %(user)s") % context
            body = _("The user has confirmed its registration for this event") + "!"
            body += registration_details(registration)
            my_send_mail(subject, body, organizer, event)


def send_registration_cancelled_email(registration: Registration) -> None:
    event = registration.event
    context = {"event": event.name, "user": registration.member.display_member()}

    activate(registration.member.language)
    subject = hdr(event) + _("Registration cancelled for %(event)s") % context
    body = _("Your registration to <b>%(event)s</b> has been cancelled") % context + "."
    if registration.cancellation_reason:
        body += "<br /><br />" + _("Reason") + f": {registration.cancellation_reason}"
    my_send_mail(subject, body, registration.member, event)

    if get_organization_config(event.organization_id, "mail_registration_cancel", False):
        for organizer in get_event_organizers(event):
            activate(organizer.language)
            subject = hdr(event) + _("Registration cancelled for %(event)s by %(user)s") % context
            body = _("The user has cancelled their registration for this event") + "."
            my_send_mail(subject, body, organizer, event)


def send_event_cancelled_email(registration: Registration) -> None:
    event = registration.event
    activate(registration.member.language)
    subject = hdr(event) + _("Event cancelled: %(event)s") % {"event": event.name}
    body = _("We are sorry, the event <b>%(event)s</b> has been cancelled") % {"event": event.name} + "."
    if event.cancellation_reason:
        body += "<br /><br />" + _("Reason") + f": {event.cancellation_reason}"
    my_send_mail(subject, body, registration.member, event)


def send_waitlist_offer_email(entry: WaitlistEntry) -> None:
    """Tell the member a seat is available, and until when the offer holds."""
    event = entry.event
    context = {"event": event.name, "deadline": formats.date_format(entry.expires_at, "DATETIME_FORMAT")}

    activate(entry.member.language)
    subject = hdr(event) + _("A seat is available for %(event)s") % context
    body = _("Good news! A seat became available for <b>%(event)s</b>") % context + "."
    body += "<br /><br />" + _(
        "Confirm your registration before %(deadline)s, after that the seat goes to the next person in the waitlist"
    ) % context + "."
    my_send_mail(subject, body, entry.member, event)


def send_waitlist_joined_email(entry: WaitlistEntry) -> None:
    event = entry.event
    context = {"event": event.name, "position": entry.position}

    activate(entry.member.language)
    subject = hdr(event) + _("Waitlist for %(event)s") % context
    body = _("You joined the waitlist for <b>%(event)s</b> at position %(position)s") % context + "."
    body += "<br /><br />" + _("We will write you as soon as a seat becomes available") + "."
    my_send_mail(subject, body, entry.member, event)
