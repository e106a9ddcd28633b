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

from django import forms
from django.core.exceptions import ValidationError

from tradeconnect.accounting.cui import clean_cui, validate_cui_format
from tradeconnect.accounting.nit import FINAL_CONSUMER, format_nit, validate_nit_format
from tradeconnect.forms.base import MyForm
from tradeconnect.models.member import Member


class MemberForm(MyForm):
    """Profile of the current member.

    The NIT is stored formatted, and final consumer is stored as empty. The
    CUI is stored as plain digits.
    """

    # printed CUIs come grouped with spaces
    cui = forms.CharField(max_length=20, required=False)

    class Meta:
        model = Member
        fields: ClassVar[list] = ["name", "surname", "language", "phone", "nit", "cui"]

    def clean_nit(self) -> str:
        nit = self.cleaned_data.get("nit", "")
        if not nit:
            return ""
        if not validate_nit_format(nit):
            raise ValidationError("Invalid NIT")
        nit = format_nit(nit)
        return "" if nit == FINAL_CONSUMER else nit

    def clean_cui(self) -> str:
        cui = self.cleaned_data.get("cui", "")
        if not cui:
            return ""
        if not validate_cui_format(cui):
            raise ValidationError("Invalid CUI")
        return clean_cui(cui)
