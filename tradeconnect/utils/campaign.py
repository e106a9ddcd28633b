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
from datetime import datetime

from django.db import transaction
from django.utils import timezone

from tradeconnect.mail.campaign import send_campaign_mail
from tradeconnect.models.campaign import (
    EDITABLE_CAMPAIGN_STATUSES,
    CampaignAudience,
    CampaignRecipient,
    CampaignStatus,
    EmailCampaign,
    RecipientStatus,
)
from tradeconnect.models.member import Member, MembershipStatus
from tradeconnect.models.registration import (
    ACTIVE_REGISTRATION_STATUSES,
    QUEUED_WAITLIST_STATUSES,
    RegistrationStatus,
)
from tradeconnect.utils.core.exceptions import BusinessRuleError
from tradeconnect.utils.tasks import background_auto

logger = logging.getLogger(__name__)

CLOSED_CAMPAIGN_STATUSES = [CampaignStatus.SENT, CampaignStatus.CANCELLED, CampaignStatus.FAILED]


def update_campaign(campaign: EmailCampaign, **values) -> EmailCampaign:
    """Raises BusinessRuleError if the campaign is no longer a draft or scheduled."""
    if campaign.status not in EDITABLE_CAMPAIGN_STATUSES:
        raise BusinessRuleError("not_editable", "The campaign can no longer be edited")
    for field, value in values.items():
        setattr(campaign, field, value)
    campaign.save()
    return campaign


def get_audience(campaign: EmailCampaign):
    """Members targeted by the campaign.

    Raises:
        BusinessRuleError: If an event audience is chosen without an event
    """
    if campaign.audience == CampaignAudience.MEMBERS:
        return Member.objects.filter(
            memberships__organization_id=campaign.organization_id,
            memberships__status=MembershipStatus.JOINED,
            memberships__newsletter=True,
        )

    if not campaign.event_id:
        raise BusinessRuleError("event_required", "The audience requires an event")

    if campaign.audience == CampaignAudience.REGISTERED:
        return Member.objects.filter(
            registrations__event_id=campaign.event_id, registrations__status__in=ACTIVE_REGISTRATION_STATUSES
        )

    if campaign.audience == CampaignAudience.ATTENDEES:
        return Member.objects.filter(
            registrations__event_id=campaign.event_id, registrations__status=RegistrationStatus.ATTENDED
        )

    return Member.objects.filter(
        waitlist_entries__event_id=campaign.event_id, waitlist_entries__status__in=QUEUED_WAITLIST_STATUSES
    )


def build_recipients(campaign: EmailCampaign) -> int:
    """Create the recipient list of the campaign, one per email address.

    Returns:
        Number of recipients
    """
    if campaign.recipients.exists():
        return campaign.recipients.count()

    seen = set()
    recipients = []
    for member in get_audience(campaign).order_by("id"):
        email = (member.email or "").strip().lower()
        if not email or email in seen:
            continue
        seen.add(email)
        recipients.append(CampaignRecipient(campaign=campaign, member=member, email=email))

    CampaignRecipient.objects.bulk_create(recipients)
    campaign.total_recipients = len(recipients)
    campaign.save()
    return campaign.total_recipients


def schedule_campaign(campaign: EmailCampaign, scheduled_at: datetime) -> EmailCampaign:
    """Raises BusinessRuleError if the campaign is not editable or the time is past."""
    if campaign.status not in EDITABLE_CAMPAIGN_STATUSES:
        raise BusinessRuleError("not_editable", "The campaign can no longer be scheduled")
    if scheduled_at <= timezone.now():
        raise BusinessRuleError("invalid_schedule", "The scheduled time must be in the future")
    campaign.status = CampaignStatus.SCHEDULED
    campaign.scheduled_at = scheduled_at
    campaign.save()
    return campaign


def start_campaign(campaign: EmailCampaign) -> EmailCampaign:
    """Start sending a campaign now."""
    if campaign.status not in EDITABLE_CAMPAIGN_STATUSES:
        raise BusinessRuleError("not_editable", "The campaign cannot be sent")
    if not campaign.get_subject() or not campaign.get_body():
        raise BusinessRuleError("empty_content", "The campaign has no subject or body")

    with transaction.atomic():
        build_recipients(campaign)
        campaign.status = CampaignStatus.SENDING
        campaign.started_at = timezone.now()
        campaign.save()

    send_campaign(campaign.id)
    campaign.refresh_from_db()
    return campaign


def _finish(campaign: EmailCampaign) -> None:
    if campaign.total_recipients and not campaign.sent_count:
        campaign.status = CampaignStatus.FAILED
    else:
        campaign.status = CampaignStatus.SENT
    campaign.sent_at = timezone.now()
    campaign.save()


@background_auto(queue="mail")
def send_campaign(campaign_id: int) -> None:
    """Deliver the pending recipients of a campaign.

    The status is checked before each email, so a pause or cancel stops the
    loop. Each delivery outcome is recorded on its recipient; the campaign
    ends as sent, or failed if no email could be delivered.
    """
    campaign = EmailCampaign.objects.select_related("organization", "event", "template").get(pk=campaign_id)

    for recipient in campaign.recipients.filter(status=RecipientStatus.PENDING).select_related("member"):
        campaign.refresh_from_db(fields=["status"])
        if campaign.status != CampaignStatus.SENDING:
            logger.info(f"Campaign {campaign_id} stopped: {campaign.get_status_display()}")
            return

        try:
            send_campaign_mail(campaign, recipient.email, recipient.member)
        except Exception as err:
            logger.exception(f"Campaign {campaign_id} failed for {recipient.email}: {err}")
            recipient.status = RecipientStatus.FAILED
            recipient.error = str(err)
            recipient.save()
            EmailCampaign.objects.filter(pk=campaign_id).update(failed_count=campaign.failed_count + 1)
            campaign.failed_count += 1
            continue

        recipient.status = RecipientStatus.SENT
        recipient.sent_at = timezone.now()
        recipient.save()
        campaign.sent_count += 1
        EmailCampaign.objects.filter(pk=campaign_id).update(sent_count=campaign.sent_count)

    campaign.refresh_from_db()
    if campaign.status == CampaignStatus.SENDING:
        _finish(campaign)


def pause_campaign(campaign: EmailCampaign) -> EmailCampaign:
    if campaign.status not in [CampaignStatus.SENDING, CampaignStatus.SCHEDULED]:
        raise BusinessRuleError("invalid_status", "Only sending or scheduled campaigns can be paused")
    campaign.status = CampaignStatus.PAUSED
    campaign.save()
    return campaign


def resume_campaign(campaign: EmailCampaign) -> EmailCampaign:
    """Resume a paused campaign: back to scheduled if its time is still ahead, else keep sending."""
    if campaign.status != CampaignStatus.PAUSED:
        raise BusinessRuleError("invalid_status", "Only paused campaigns can be resumed")

    if campaign.scheduled_at and campaign.scheduled_at > timezone.now() and not campaign.started_at:
        campaign.status = CampaignStatus.SCHEDULED
        campaign.save()
        return campaign

    with transaction.atomic():
        build_recipients(campaign)
        campaign.status = CampaignStatus.SENDING
        campaign.started_at = campaign.started_at or timezone.now()
        campaign.save()

    send_campaign(campaign.id)
    campaign.refresh_from_db()
    return campaign


def cancel_campaign(campaign: EmailCampaign) -> EmailCampaign:
    if campaign.status in CLOSED_CAMPAIGN_STATUSES:
        raise BusinessRuleError("invalid_status", "The campaign is already closed")
    campaign.status = CampaignStatus.CANCELLED
    campaign.save()
    return campaign


def campaign_stats(campaign: EmailCampaign) -> dict:
    recipients = campaign.recipients.all()
    total = recipients.count()
    sent = recipients.filter(status=RecipientStatus.SENT).count()
    return {
        "id": campaign.id,
        "status": campaign.status,
        "total_recipients": total,
        "sent": sent,
        "failed": recipients.filter(status=RecipientStatus.FAILED).count(),
        "bounced": recipients.filter(status=RecipientStatus.BOUNCED).count(),
        "pending": recipients.filter(status=RecipientStatus.PENDING).count(),
        "delivery_rate": round(sent * 100 / total, 2) if total else 0,
        "started_at": campaign.started_at,
        "sent_at": campaign.sent_at,
    }


def send_scheduled_campaigns() -> int:
    """Start the scheduled campaigns whose time has come, returns how many."""
    started = 0
    for campaign in EmailCampaign.objects.filter(status=CampaignStatus.SCHEDULED, scheduled_at__lte=timezone.now()):
        start_campaign(campaign)
        started += 1
    return started
