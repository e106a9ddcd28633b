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

from django.contrib.auth.models import User
from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import BaseModel
from tradeconnect.models.organization import Organization


class Member(BaseModel):
    """Profile attached to every platform user."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="member")

    name = models.CharField(max_length=100, verbose_name=_("Name"))

    surname = models.CharField(max_length=100, blank=True, verbose_name=_("Surname"))

    email = models.EmailField(blank=True)

    language = models.CharField(max_length=5, default="es")

    phone = models.CharField(max_length=30, blank=True)

    nit = models.CharField(
        max_length=20,
        blank=True,
        verbose_name=_("NIT"),
        help_text=_("Tax identification number used on invoices"),
    )

    cui = models.CharField(
        max_length=13,
        blank=True,
        verbose_name=_("CUI"),
        help_text=_("Personal identification code (DPI)"),
    )

    class Meta:
        ordering: ClassVar[list] = ["surname", "name"]

    def __str__(self) -> str:
        return self.display_member()

    def display_member(self) -> str:
        """Return the full name of the member, falling back to the email."""
        full_name = f"{self.name} {self.surname}".strip()
        return full_name or self.email

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "surname": self.surname,
            "email": self.email,
            "language": self.language,
        }


class MembershipStatus(models.TextChoices):
    JOINED = "j", _("Joined")
    REVOKED = "r", _("Revoked")


class Membership(BaseModel):
    """Link between a member and an organization (tenant)."""

    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="memberships")

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="memberships")

    status = models.CharField(max_length=1, choices=MembershipStatus.choices, default=MembershipStatus.JOINED)

    newsletter = models.BooleanField(default=True, verbose_name=_("Accepts marketing emails"))

    class Meta:
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["member", "organization", "deleted"],
                name="unique_membership_with_optional",
            ),
            UniqueConstraint(
                fields=["member", "organization"],
                condition=Q(deleted=None),
                name="unique_membership_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.member} - {self.organization}"


class Log(BaseModel):
    """Audit trail entry: who changed which object."""

    member = models.ForeignKey(Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="logs")

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, null=True, blank=True, related_name="logs")

    eid = models.IntegerField()

    cls = models.CharField(max_length=100)

    dct = models.TextField()

    def __str__(self) -> str:
        return f"{self.cls} {self.eid}"
