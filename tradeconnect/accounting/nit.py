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

"""Guatemalan NIT (tax id) checks and lookups.

A NIT is a sequence of digits followed by a check character. The check is a
mod 11 over the body digits, weighted from the rightmost digit starting at 2;
a result of 10 is written as "K". "CF" stands for final consumer, used when
the buyer does not give a tax id.
"""

import logging
import re
from datetime import timedelta

import requests
from django.conf import settings as conf_settings
from django.utils import timezone
from safedelete.models import HARD_DELETE

from tradeconnect.models.accounting import NitStatus, NitValidation
from tradeconnect.utils.core.exceptions import FelError

logger = logging.getLogger(__name__)

FINAL_CONSUMER = "CF"

FINAL_CONSUMER_NAME = "Consumidor Final"

NIT_PATTERN = re.compile(r"^\d{1,12}[0-9K]$")


def clean_nit(nit: str) -> str:
    return re.sub(r"[\s-]", "", str(nit or "")).upper()


def is_final_consumer(nit: str) -> bool:
    return clean_nit(nit) == FINAL_CONSUMER


def compute_check_digit(body: str) -> str:
    total = sum(int(digit) * weight for weight, digit in enumerate(reversed(body), start=2))
    check = (11 - total % 11) % 11
    return "K" if check == 10 else str(check)


def validate_nit_format(nit: str) -> bool:
    """Return True if the NIT is CF or carries a correct check character."""
    nit = clean_nit(nit)
    if nit == FINAL_CONSUMER:
        return True
    if not NIT_PATTERN.match(nit):
        return False
    return compute_check_digit(nit[:-1]) == nit[-1]


def format_nit(nit: str) -> str:
    nit = clean_nit(nit)
    if nit == FINAL_CONSUMER or len(nit) < 2:
        return nit
    return f"{nit[:-1]}-{nit[-1]}"


def _lookup_local(nit: str) -> dict:
    return {"status": NitStatus.VALID, "name": "", "address": "", "source": "local"}


def _lookup_http(nit: str) -> dict:
    """Query the tax authority endpoint configured in NIT_VALIDATION_URL."""
    try:
        response = requests.get(
            conf_settings.NIT_VALIDATION_URL,
            params={"nit": clean_nit(nit)},
            timeout=conf_settings.FEL_CERTIFIER_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as err:
        logger.warning(f"NIT lookup failed for {nit}: {err}")
        raise FelError("nit_service_unavailable", "The NIT validation service is not available") from err

    statuses = {"active": NitStatus.VALID, "inactive": NitStatus.INACTIVE}
    return {
        "status": statuses.get(data.get("status"), NitStatus.NOT_FOUND),
        "name": (data.get("name") or "")[:250],
        "address": (data.get("address") or "")[:250],
        "source": "SAT",
    }


NIT_BACKENDS = {
    "local": _lookup_local,
    "http": _lookup_http,
}


def lookup_nit(nit: str) -> dict:
    """Validate a NIT and fetch the registered taxpayer data.

    Results of the lookup backend are stored and reused until they expire
    after NIT_CACHE_HOURS.

    Returns:
        dict with nit (formatted), valid, status, name, address and cached flag

    Raises:
        FelError: If the lookup backend cannot be reached
    """
    formatted = format_nit(nit)

    if is_final_consumer(nit):
        return {
            "nit": FINAL_CONSUMER,
            "valid": True,
            "status": NitStatus.VALID,
            "name": FINAL_CONSUMER_NAME,
            "address": "Ciudad",
            "cached": False,
        }

    if not validate_nit_format(nit):
        return {
            "nit": formatted,
            "valid": False,
            "status": NitStatus.NOT_FOUND,
            "name": "",
            "address": "",
            "cached": False,
        }

    now = timezone.now()
    validation = NitValidation.objects.filter(nit=formatted, expires_at__gt=now).order_by("-created").first()
    cached = validation is not None
    if not validation:
        result = NIT_BACKENDS[conf_settings.NIT_VALIDATION_BACKEND](formatted)
        validation = NitValidation.objects.create(
            nit=formatted,
            status=result["status"],
            name=result["name"],
            address=result["address"],
            source=result["source"],
            expires_at=now + timedelta(hours=conf_settings.NIT_CACHE_HOURS),
        )

    return {
        "nit": formatted,
        "valid": validation.status == NitStatus.VALID,
        "status": validation.status,
        "name": validation.name,
        "address": validation.address,
        "cached": cached,
    }


def purge_expired_nit_validations() -> int:
    """Delete the stored lookups past their expiry, returns how many."""
    expired = NitValidation.objects.filter(expires_at__lte=timezone.now())
    count = expired.count()
    expired.delete(force_policy=HARD_DELETE)
    return count
