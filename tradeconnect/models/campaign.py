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
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import BaseModel
from tradeconnect.models.event import Event
from tradeconnect.models.member import Member
from tradeconnect.models.organization import Organization


class EmailTemplate(BaseModel):
    """Reusable email body with template placeholders ({{ name }}, {{ event }}...)."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="email_templates")

    name = models.CharField(max_length=100)

    subject = models.CharField(max_length=200)

    body = models.TextField(help_text=_("HTML body, placeholders use the Django template syntax"))


class CampaignType(models.TextChoices):
    MARKETING = "m", _("Marketing")
    NEWSLETTER = "n", _("Newsletter")
    PROMOTIONAL = "p", _("Promotional")
    TRANSACTIONAL = "t", _("Transactional")
    WELCOME = "w", _("Welcome")
    REENGAGEMENT = "r", _("Re-engagement")
    AUTOMATED = "a", _("Automated")


class CampaignStatus(models.TextChoices):
    DRAFT = "d", _("Draft")
    SCHEDULED = "s", _("Scheduled")
    SENDING = "g", _("Sending")
    SENT = "t", _("Sent")
    PAUSED = "p", _("Paused")
    CANCELLED = "x", _("Cancelled")
    FAILED = "f", _("Failed")


# statuses where the content can still be edited
EDITABLE_CAMPAIGN_STATUSES = [CampaignStatus.DRAFT, CampaignStatus.SCHEDULED]


class CampaignAudience(models.TextChoices):
    MEMBERS = "m", _("All members")
    REGISTERED = "r", _("Event registrants")
    ATTENDEES = "a", _("Event attendees")
    WAITLIST = "w", _("Event waitlist")


class EmailCampaign(BaseModel):
    """Bulk email sent to an audience of the organization."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="campaigns")

    event = models.ForeignKey(Event, on_delete=models.CASCADE, null=True, blank=True, related_name="campaigns")

    template = models.ForeignKey(
        EmailTemplate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="campaigns",
    )

    name = models.CharField(max_length=150)

    campaign_type = models.CharField(max_length=1, choices=CampaignType.choices, default=CampaignType.MARKETING)

    status = models.CharField(max_length=1, choices=CampaignStatus.choices, default=CampaignStatus.DRAFT, db_index=True)

    audience = models.CharField(max_length=1, choices=CampaignAudience.choices, default=CampaignAudience.MEMBERS)

    subject = models.CharField(max_length=200, blank=True)

    body = models.TextField(blank=True)

    scheduled_at = models.DateTimeField(null=True, blank=True)

    started_at = models.DateTimeField(null=True, blank=True)

    sent_at = models.DateTimeField(null=True, blank=True)

    total_recipients = models.PositiveIntegerField(default=0)

    sent_count = models.PositiveIntegerField(default=0)

    failed_count = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    class Meta:
        ordering: ClassVar[list] = ["-created"]

    def get_subject(self) -> str:
        if self.subject:
            return self.subject
        return self.template.subject if self.template else ""

    def get_body(self) -> str:
        if self.body:
            return self.body
        return self.template.body if self.template else ""

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "campaign_type": self.campaign_type,
            "status": self.status,
            "audience": self.audience,
            "event": self.event.slug if self.event else None,
            "subject": self.get_subject(),
            "scheduled_at": self.scheduled_at,
            "sent_at": self.sent_at,
            "total_recipients": self.total_recipients,
            "sent_count": self.sent_count,
            "failed_count": self.failed_count,
        }


class RecipientStatus(models.TextChoices):
    PENDING = "p", _("Pending")
    SENT = "s", _("Sent")
    FAILED = "f", _("Failed")
    BOUNCED = "b", _("Bounced")


class CampaignRecipient(BaseModel):
    campaign = models.ForeignKey(EmailCampaign, on_delete=models.CASCADE, related_name="recipients")

    member = models.ForeignKey(Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    email = models.EmailField()

    status = models.CharField(max_length=1, choices=RecipientStatus.choices, default=RecipientStatus.PENDING)

    sent_at = models.DateTimeField(null=True, blank=True)

    error = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"{self.campaign} {self.email}"


class Email(BaseModel):
    """Outgoing mail queued for background delivery."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, null=True, blank=True, related_name="emails")

    recipient = models.CharField(max_length=170)

    subj = models.CharField(max_length=500)

    body = models.TextField()

    reply_to = models.CharField(max_length=170, null=True, blank=True)

    sent = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.recipient} {self.subj}"
