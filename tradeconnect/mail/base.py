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

from decimal import Decimal
from typing import Any

from babel.numbers import format_currency

from tradeconnect.models.organization import Organization


def hdr(organization_or_related_object: Organization | Any) -> str:
    """Return a formatted header string with the organization name in brackets."""
    if isinstance(organization_or_related_object, Organization):
        return f"[{organization_or_related_object.name}] "
    organization = getattr(organization_or_related_object, "organization", None)
    if organization:
        return f"[{organization.name}] "
    return "[TradeConnect] "


def format_amount(amount: Decimal, currency: str, language: str = "es") -> str:
    """Format an amount with its currency for the recipient locale."""
    return format_currency(amount, currency, locale=language)
