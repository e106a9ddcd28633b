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

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core import mail
from django.utils import timezone

from tradeconnect.models.campaign import (
    CampaignAudience,
    CampaignRecipient,
    CampaignStatus,
    EmailCampaign,
    EmailTemplate,
    RecipientStatus,
)
from tradeconnect.models.member import Membership
from tradeconnect.models.registration import RegistrationStatus
from tradeconnect.tests.unit.base import BaseTestCase
from tradeconnect.utils.campaign import (
    build_recipients,
    campaign_stats,
    cancel_campaign,
    get_audience,
    pause_campaign,
    resume_campaign,
    schedule_campaign,
    send_scheduled_campaigns,
    start_campaign,
    update_campaign,
)
from tradeconnect.utils.core.exceptions import BusinessRuleError


class CampaignTestCase(BaseTestCase):
    def join(self, member, **kwargs):
        Membership.objects.create(member=member, organization=self.organization(), **kwargs)
        return member

    def create_campaign(self, **kwargs):
        defaults = {
            "organization": self.organization(),
            "name": "Launch",
            "subject": "Hello {{ name }}",
            "body": "<p>{{ full_name }}, welcome to {{ organization }}</p>",
        }
        defaults.update(kwargs)
        return EmailCampaign.objects.create(**defaults)


class TestAudience(CampaignTestCase):
    def test_members_with_newsletter(self):
        subscribed = self.join(self.member())
        self.join(self.create_member("optout"), newsletter=False)

        assert list(get_audience(self.create_campaign())) == [subscribed]

    def test_event_audience_requires_event(self):
        with pytest.raises(BusinessRuleError) as exc:
            get_audience(self.create_campaign(audience=CampaignAudience.REGISTERED))
        assert exc.value.code == "event_required"

    def test_registered_and_attendees(self):
        registered = self.create_registration().member
        attendee = self.create_member("attendee")
        self.create_registration(member=attendee, status=RegistrationStatus.ATTENDED)
        self.create_registration(member=self.create_member("gone"), status=RegistrationStatus.CANCELLED)

        registrants = self.create_campaign(audience=CampaignAudience.REGISTERED, event=self.event())
        attendees = self.create_campaign(audience=CampaignAudience.ATTENDEES, event=self.event())

        assert set(get_audience(registrants)) == {registered, attendee}
        assert list(get_audience(attendees)) == [attendee]

    def test_recipients_deduplicated_by_email(self):
        self.join(self.create_member("first", email="Same@Example.com"))
        self.join(self.create_member("second", email="same@example.com"))
        self.join(self.create_member("third"))
        campaign = self.create_campaign()

        assert build_recipients(campaign) == 2
        assert build_recipients(campaign) == 2
        assert set(campaign.recipients.values_list("email", flat=True)) == {"same@example.com", "third@example.com"}


class TestSendCampaign(CampaignTestCase):
    def test_send(self):
        self.join(self.member())
        self.join(self.create_member("second", first_name="Ana", last_name="Lopez"))

        campaign = start_campaign(self.create_campaign())

        assert campaign.status == CampaignStatus.SENT
        assert campaign.sent_count == 2
        assert campaign.sent_at is not None
        subjects = sorted(message.subject for message in mail.outbox)
        assert subjects == ["Hello Ana", "Hello Test"]
        assert "welcome to Acme Expo" in mail.outbox[0].alternatives[0][0]

    def test_send_with_template(self):
        self.join(self.member())
        template = EmailTemplate.objects.create(
            organization=self.organization(), name="Invite", subject="See you at {{ event }}", body="{{ email }}"
        )

        start_campaign(self.create_campaign(template=template, subject="", body="", event=self.event()))

        assert mail.outbox[0].subject == "See you at Trade Expo"

    def test_empty_content(self):
        with pytest.raises(BusinessRuleError) as exc:
            start_campaign(self.create_campaign(subject="", body=""))
        assert exc.value.code == "empty_content"

    def test_delivery_failure(self):
        self.join(self.member())

        with patch("tradeconnect.mail.campaign.my_send_simple_mail", side_effect=OSError("smtp down")):
            campaign = start_campaign(self.create_campaign())

        assert campaign.status == CampaignStatus.FAILED
        assert campaign.failed_count == 1
        recipient = CampaignRecipient.objects.get()
        assert recipient.status == RecipientStatus.FAILED
        assert recipient.error == "smtp down"

    def test_stats(self):
        self.join(self.member())
        campaign = start_campaign(self.create_campaign())

        stats = campaign_stats(campaign)

        assert stats["total_recipients"] == 1
        assert stats["sent"] == 1
        assert stats["delivery_rate"] == 100


class TestCampaignLifecycle(CampaignTestCase):
    def test_schedule_in_the_past(self):
        with pytest.raises(BusinessRuleError) as exc:
            schedule_campaign(self.create_campaign(), timezone.now() - timedelta(hours=1))
        assert exc.value.code == "invalid_schedule"

    def test_pause_and_resume_scheduled(self):
        campaign = schedule_campaign(self.create_campaign(), timezone.now() + timedelta(days=1))

        pause_campaign(campaign)
        assert campaign.status == CampaignStatus.PAUSED

        resume_campaign(campaign)
        assert campaign.status == CampaignStatus.SCHEDULED

    def test_resume_due_campaign_sends(self):
        self.join(self.member())
        campaign = self.create_campaign(status=CampaignStatus.PAUSED)

        resume_campaign(campaign)

        assert campaign.status == CampaignStatus.SENT
        assert len(mail.outbox) == 1

    def test_send_scheduled(self):
        self.join(self.member())
        campaign = self.create_campaign(
            status=CampaignStatus.SCHEDULED, scheduled_at=timezone.now() - timedelta(minutes=1)
        )

        assert send_scheduled_campaigns() == 1

        campaign.refresh_from_db()
        assert campaign.status == CampaignStatus.SENT

    def test_cancel(self):
        campaign = cancel_campaign(self.create_campaign())

        assert campaign.status == CampaignStatus.CANCELLED
        with pytest.raises(BusinessRuleError):
            cancel_campaign(campaign)
        with pytest.raises(BusinessRuleError):
            update_campaign(campaign, name="Late")

    def test_update_draft(self):
        campaign = update_campaign(self.create_campaign(), name="Renamed")

        assert EmailCampaign.objects.get().name == "Renamed"
