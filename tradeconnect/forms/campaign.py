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

from django.core.exceptions import ValidationError
from django.template import Template, TemplateSyntaxError

from tradeconnect.forms.base import MyForm
from tradeconnect.models.campaign import CampaignAudience, EmailCampaign, EmailTemplate
from tradeconnect.models.event import Event


def check_template_syntax(text: str) -> str:
    try:
        Template(text)
    except TemplateSyntaxError as err:
        raise ValidationError(f"Invalid placeholder syntax: {err}") from err
    return text


class EmailTemplateForm(MyForm):
    class Meta:
        model = EmailTemplate
        fields: ClassVar[list] = ["name", "subject", "body"]

    def clean_subject(self) -> str:
        return check_template_syntax(self.cleaned_data["subject"])

    def clean_body(self) -> str:
        return check_template_syntax(self.cleaned_data["body"])

    def save(self, commit: bool = True) -> EmailTemplate:  # noqa: FBT001, FBT002
        instance = super().save(commit=False)
        if not instance.organization_id:
            instance.organization_id = self.params["organization_id"]
        if commit:
            instance.save()
        return instance


class EmailCampaignForm(MyForm):
    class Meta:
        model = EmailCampaign
        fields: ClassVar[list] = ["name", "campaign_type", "audience", "event", "template", "subject", "body"]

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        organization_id = self.params["organization_id"]
        self.fields["event"].queryset = Event.objects.filter(organization_id=organization_id)
        self.fields["template"].queryset = EmailTemplate.objects.filter(organization_id=organization_id)

    def clean_subject(self) -> str:
        return check_template_syntax(self.cleaned_data["subject"])

    def clean_body(self) -> str:
        return check_template_syntax(self.cleaned_data["body"])

    def clean(self) -> dict:
        cleaned_data = super().clean()
        if cleaned_data.get("audience") != CampaignAudience.MEMBERS and not cleaned_data.get("event"):
            self.add_error("event", "Required for this audience")
        if not cleaned_data.get("template") and not (cleaned_data.get("subject") and cleaned_data.get("body")):
            self.add_error("body", "Provide subject and body, or a template")
        return cleaned_data

    def save(self, commit: bool = True) -> EmailCampaign:  # noqa: FBT001, FBT002
        instance = super().save(commit=False)
        if not instance.organization_id:
            instance.organization_id = self.params["organization_id"]
        if not instance.created_by_id and self.params.get("member"):
            instance.created_by = self.params["member"]
        if commit:
            instance.save()
        return instance
