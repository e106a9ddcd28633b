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

from django.core.validators import RegexValidator
from django.db import models, transaction
from django.utils import timezone
from model_clone import CloneMixin
from safedelete.models import SOFT_DELETE_CASCADE, SafeDeleteModel

from tradeconnect.models.utils import my_uuid_short

AlphanumericValidator = RegexValidator(r"^[0-9a-z_-]*$", "Only characters allowed are: 0-9, a-z, _, -.")

UUID_RETRY_LIMIT = 5


class BaseModel(CloneMixin, SafeDeleteModel):
    """Represents BaseModel model."""

    created = models.DateTimeField(default=timezone.now, editable=False)

    updated = models.DateTimeField(auto_now=True)

    _safedelete_policy = SOFT_DELETE_CASCADE

    class Meta:
        abstract = True
        ordering: ClassVar[list] = ["-updated"]

    def __str__(self) -> str:
        """Return string representation of the model.

        Returns the 'name' attribute when the model has one, otherwise
        falls back to the parent implementation.
        """
        if hasattr(self, "name"):
            return self.name

        return super().__str__()


class UuidMixin(models.Model):
    """Adds an uuid field to the model."""

    uuid = models.CharField(
        max_length=12,
        unique=True,
        db_index=True,
        editable=False,
    )

    class Meta:
        abstract = True


def auto_assign_sequential_numbers(instance: Any) -> None:
    """Auto-populate the number field for model instances, scoped by event or organization."""
    if not hasattr(instance, "number") or getattr(instance, "number"):
        return

    queryset = None
    if hasattr(instance, "event") and instance.event:
        queryset = instance.__class__.objects.filter(event=instance.event)
    elif hasattr(instance, "organization") and instance.organization:
        queryset = instance.__class__.objects.filter(organization=instance.organization)

    if queryset is None:
        return

    # Use select_for_update() to lock rows and prevent race conditions
    with transaction.atomic():
        max_instance = queryset.select_for_update().order_by("-number").first()
        instance.number = max_instance.number + 1 if max_instance else 1


def auto_set_uuid(instance: Any) -> None:
    """Set uuid field if missing value."""
    # If the model does not have uuid field, or already has a value, skip
    if not hasattr(instance, "uuid") or instance.uuid:
        return

    for _try in range(UUID_RETRY_LIMIT):
        candidate = my_uuid_short()
        if not instance.__class__.all_objects.filter(uuid=candidate).exists():
            instance.uuid = candidate
            return

    msg = "UUID collision after retries"
    raise RuntimeError(msg)
