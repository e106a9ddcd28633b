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

from django.http import HttpRequest, JsonResponse
from django.utils.dateparse import parse_datetime
from django.views.decorators.http import require_GET, require_POST

from tradeconnect.cache.role import check_organization_permission
from tradeconnect.forms.campaign import EmailCampaignForm, EmailTemplateForm
from tradeconnect.models.campaign import EDITABLE_CAMPAIGN_STATUSES, EmailCampaign, EmailTemplate
from tradeconnect.utils.campaign import (
    cancel_campaign,
    campaign_stats,
    pause_campaign,
    resume_campaign,
    schedule_campaign,
    start_campaign,
)
from tradeconnect.utils.common import check_form, get_json_body, get_object, get_request_member, save_log
from tradeconnect.utils.core.exceptions import BusinessRuleError


@require_GET
def template_list(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    templates = EmailTemplate.objects.filter(organization_id=request.organization["id"]).order_by("name")
    return JsonResponse(
        {"templates": [{"id": template.id, "name": template.name, "subject": template.subject} for template in templates]}
    )


@require_POST
def template_create(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    form = EmailTemplateForm(data=get_json_body(request), context={"organization_id": request.organization["id"]})
    check_form(form)
    template = form.save()
    return JsonResponse({"id": template.id, "name": template.name, "subject": template.subject}, status=201)


@require_GET
def campaign_list(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    campaigns = EmailCampaign.objects.filter(organization_id=request.organization["id"]).select_related(
        "event", "template"
    )
    status = request.GET.get("status")
    if status:
        campaigns = campaigns.filter(status=status)
    return JsonResponse({"campaigns": [campaign.as_dict() for campaign in campaigns]})


@require_POST
def campaign_create(request: HttpRequest) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    member = get_request_member(request)
    form = EmailCampaignForm(
        data=get_json_body(request),
        context={"organization_id": request.organization["id"], "member": member},
    )
    check_form(form)
    campaign = form.save()
    save_log(member, EmailCampaign, campaign)
    return JsonResponse(campaign.as_dict(), status=201)


@require_POST
def campaign_update(request: HttpRequest, campaign_id: int) -> JsonResponse:
    """Edit a campaign while it is still a draft or scheduled."""
    check_organization_permission(request, "send_notification")
    member = get_request_member(request)
    campaign = get_object(EmailCampaign, request, campaign_id)
    if campaign.status not in EDITABLE_CAMPAIGN_STATUSES:
        raise BusinessRuleError("not_editable", "The campaign can no longer be edited")

    form = EmailCampaignForm(
        data=get_json_body(request),
        instance=campaign,
        context={"organization_id": request.organization["id"], "member": member},
    )
    check_form(form)
    campaign = form.save()
    save_log(member, EmailCampaign, campaign)
    return JsonResponse(campaign.as_dict())


@require_POST
def campaign_schedule(request: HttpRequest, campaign_id: int) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    campaign = get_object(EmailCampaign, request, campaign_id)

    scheduled_at = parse_datetime(str(get_json_body(request).get("scheduled_at", "")))
    if not scheduled_at:
        return JsonResponse(
            {"error": "validation_error", "message": "Invalid data", "details": {"scheduled_at": "Invalid datetime"}},
            status=400,
        )
    return JsonResponse(schedule_campaign(campaign, scheduled_at).as_dict())


@require_POST
def campaign_send(request: HttpRequest, campaign_id: int) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    campaign = start_campaign(get_object(EmailCampaign, request, campaign_id))
    save_log(get_request_member(request), EmailCampaign, campaign)
    return JsonResponse(campaign.as_dict())


@require_POST
def campaign_pause(request: HttpRequest, campaign_id: int) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    return JsonResponse(pause_campaign(get_object(EmailCampaign, request, campaign_id)).as_dict())


@require_POST
def campaign_resume(request: HttpRequest, campaign_id: int) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    return JsonResponse(resume_campaign(get_object(EmailCampaign, request, campaign_id)).as_dict())


@require_POST
def campaign_cancel(request: HttpRequest, campaign_id: int) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    return JsonResponse(cancel_campaign(get_object(EmailCampaign, request, campaign_id)).as_dict())


@require_GET
def campaign_stats_view(request: HttpRequest, campaign_id: int) -> JsonResponse:
    check_organization_permission(request, "send_notification")
    return JsonResponse(campaign_stats(get_object(EmailCampaign, request, campaign_id)))
