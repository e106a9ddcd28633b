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

from typing import Any

from django import forms
from django.db import models
from django.forms.models import model_to_dict


def instance_data(instance: models.Model, fields: list[str]) -> dict:
    """Current values of an instance in the shape a form expects as data."""
    data = {}
    for name, value in model_to_dict(instance, fields=fields).items():
        if isinstance(value, list):
            value = [element.pk if isinstance(element, models.Model) else element for element in value]
        if value is None:
            continue
        data[name] = value
    return data


class MyForm(forms.ModelForm):
    """Base form class with context parameter handling.

    Extends Django's ModelForm to support additional context parameters
    (organization, event, member) passed during form initialization. When
    editing an existing instance, the submitted data is merged on top of
    its current values (or the model defaults for a new one), so API
    clients can send only the fields they set.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.params = kwargs.pop("context", {})

        instance = kwargs.get("instance") or self._meta.model()
        kwargs["instance"] = instance
        data = kwargs.get("data")
        if data is not None:
            kwargs["data"] = {**instance_data(instance, list(self._meta.fields)), **data}

        super().__init__(*args, **kwargs)

        # Remove system fields that shouldn't be user-editable
        for field_name in ["deleted", "number"]:
            if field_name in self.fields:
                del self.fields[field_name]

    def check_dates(self, cleaned_data: dict, start_field: str, end_field: str) -> None:
        """Add an error to the end field if it does not come after the start."""
        start = cleaned_data.get(start_field)
        end = cleaned_data.get(end_field)
        if start and end and end <= start:
            self.add_error(end_field, "Must be later than the start")
