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

from typing import Any, ClassVar

from babel.numbers import get_currency_symbol
from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils.translation import gettext_lazy as _

from tradeconnect.models.base import AlphanumericValidator, BaseModel


class Currency(models.TextChoices):
    """Represents Currency model."""

    GTQ = "GTQ", "GTQ"
    USD = "USD", "USD"
    EUR = "EUR", "EUR"
    MXN = "MXN", "MXN"


class Organization(BaseModel):
    """Tenant owning events, members, promotions, invoices and campaigns."""

    name = models.CharField(max_length=100)

    slug = models.SlugField(
        max_length=100,
        validators=[AlphanumericValidator],
        db_index=True,
        unique=True,
        help_text=_("Subdomain used to reach the organization"),
    )

    main_mail = models.EmailField(blank=True, null=True, help_text=_("Contact address of the organization"))

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.GTQ)

    language = models.CharField(max_length=5, default="es")

    fiscal_nit = models.CharField(max_length=20, blank=True, verbose_name=_("Issuer NIT"))

    fiscal_name = models.CharField(max_length=150, blank=True, verbose_name=_("Issuer legal name"))

    fiscal_address = models.CharField(max_length=250, blank=True, verbose_name=_("Issuer address"))

    fiscal_establishment = models.CharField(max_length=10, default="1", verbose_name=_("Establishment code"))

    key = models.BinaryField(null=True)

    class Meta:
        ordering: ClassVar[list] = ["name"]

    def get_currency_symbol(self) -> str:
        """Return the display symbol of the organization currency."""
        return get_currency_symbol(self.currency, locale=self.language)

    def get_config(self, name: str, default_value: Any = None, *, bypass_cache: bool = False) -> Any:
        from tradeconnect.cache.config import get_element_config

        return get_element_config(self, name, default_value, bypass_cache=bypass_cache)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "main_mail": self.main_mail,
            "currency": self.currency,
            "currency_symbol": self.get_currency_symbol(),
            "language": self.language,
        }


class OrganizationConfig(BaseModel):
    """Named configuration value of an organization."""

    name = models.CharField(max_length=150)

    value = models.CharField(max_length=1000)

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="configs")

    class Meta:
        indexes: ClassVar[list] = [
            models.Index(fields=["organization", "name"], condition=Q(deleted__isnull=True), name="orgcfg_name_act"),
        ]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["organization", "name", "deleted"],
                name="unique_organization_config_with_optional",
            ),
            UniqueConstraint(
                fields=["organization", "name"],
                condition=Q(deleted=None),
                name="unique_organization_config_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.organization} {self.name}"
