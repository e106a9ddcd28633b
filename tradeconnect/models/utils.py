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

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from cryptography.fernet import Fernet
from django.db.models import Sum

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from tradeconnect.models.organization import Organization

CENTS = Decimal("0.01")


def my_uuid(length: int | None = None) -> str:
    """Generate UUID hex string, optionally truncated."""
    uuid_hex = uuid4().hex
    if length:
        return uuid_hex[:length]
    return uuid_hex


def my_uuid_short():
    """Generate short UUID string of 12 characters."""
    return my_uuid(12)


def get_sum(queryset: QuerySet, field: str = "quantity") -> int:
    """Return the sum of a field over a queryset, 0 when empty."""
    return queryset.aggregate(total=Sum(field))["total"] or 0


def round_money(value) -> Decimal:
    """Quantize a monetary value to cents."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_cipher(organization: Organization) -> Fernet:
    """Build the Fernet cipher bound to the organization key."""
    return Fernet(bytes(organization.key))
