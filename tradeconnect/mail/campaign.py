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

from django.template import Context, Template
from django.utils import formats

from tradeconnect.models.campaign import EmailCampaign
from tradeconnect.models.member import Member
from tradeconnect.utils.tasks import my_send_simple_mail


def get_campaign_context(campaign: EmailCampaign, member: Member | None) -> dict:
    """Placeholders available in campaign subjects and bodies."""
    context = {
        "organization": campaign.organization.name,
        "name": member.name if member else "",
        "surname": member.surname if member else "",
        "full_name": member.display_member() if member else "",
        "email": member.email if member else "",
    }
    if campaign.event:
        context["event"] = campaign.event.name
        context["event_start"] = formats.date_format(campaign.event.start, "DATETIME_FORMAT")
        context["event_location"] = campaign.event.location
    return context


def render_campaign(campaign: EmailCampaign, member: Member | None) -> tuple[str, str]:
    """Render subject and body of the campaign for a recipient, through the Django template engine."""
    context = Context(get_campaign_context(campaign, member))
    subject = Template(campaign.get_subject()).render(context)
    body = Template(campaign.get_body()).render(context)
    return subject.strip(), body


def send_campaign_mail(campaign: EmailCampaign, email: str, member: Member | None) -> None:
    """Deliver one campaign email right away, raising on failure."""
    subject, body = render_campaign(campaign, member)
    my_send_simple_mail(subject, body, email, campaign.organization_id)
