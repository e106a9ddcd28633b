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

"""Guatemalan CUI (personal id printed on the DPI) checks and lookups.

A CUI has 13 digits: an 8 digit serial, a check digit, then the codes of
the department and municipality where the person was registered. The check
digit is the serial weighted from the left starting at 2, mod 11; a result
of 10 is never issued.
"""

import logging
import re
from datetime import timedelta

import requests
from django.conf import settings as conf_settings
from django.utils import timezone
from django.utils.dateparse import parse_date
from safedelete.models import HARD_DELETE

from tradeconnect.models.accounting import CuiStatus, CuiValidation
from tradeconnect.utils.core.exceptions import FelError

logger = logging.getLogger(__name__)

CUI_PATTERN = re.compile(r"^\d{13}$")

# municipalities of each department, departments numbered from 1
DEPARTMENT_MUNICIPALITIES = (17, 8, 16, 16, 13, 14, 19, 8, 24, 21, 9, 30, 32, 21, 8, 17, 14, 5, 11, 11, 7, 17)


def clean_cui(cui: str) -> str:
    return re.sub(r"[\s-]", "", str(cui or ""))


def compute_check_digit(serial: str) -> int:
    return sum(int(digit) * weight for weight, digit in enumerate(serial, start=2)) % 11


def validate_cui_format(cui: str) -> bool:
    """Return True if the CUI has a correct check digit and place of registration."""
    cui = clean_cui(cui)
    if not CUI_PATTERN.match(cui):
        return False

    if compute_check_digit(cui[:8]) != int(cui[8]):
        return False

    department = int(cui[9:11])
    municipality = int(cui[11:13])
    if not 1 <= department <= len(DEPARTMENT_MUNICIPALITIES):
        return False
    return 1 <= municipality <= DEPARTMENT_MUNICIPALITIES[department - 1]


def format_cui(cui: str) -> str:
    """Group the digits the way they are printed on the DPI."""
    cui = clean_cui(cui)
    if not CUI_PATTERN.match(cui):
        return cui
    return f"{cui[:4]} {cui[4:9]} {cui[9:]}"


def _lookup_local(cui: str) -> dict:
    return {
        "status": CuiStatus.VALID,
        "first_name": "",
        "last_name": "",
        "birth_date": None,
        "gender": "",
        "source": "local",
    }


def _join_names(data: dict, keys: tuple) -> str:
    return " ".join(str(data[key]).strip() for key in keys if data.get(key))[:250]


def _lookup_http(cui: str) -> dict:
    """Query the civil registry endpoint configured in CUI_VALIDATION_URL."""
    headers = {"Accept": "application/json"}
    if conf_settings.CUI_VALIDATION_API_KEY:
        headers["Authorization"] = f"Bearer {conf_settings.CUI_VALIDATION_API_KEY}"

    try:
        response = requests.get(
            f"{conf_settings.CUI_VALIDATION_URL.rstrip('/')}/consultar/{cui}",
            headers=headers,
            timeout=conf_settings.FEL_CERTIFIER_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
        birth_date = parse_date(data.get("fecha_nacimiento") or "")
    except (requests.RequestException, ValueError, AttributeError) as err:
        logger.warning(f"CUI lookup failed for {cui}: {err}")
        raise FelError("cui_service_unavailable", "The CUI validation service is not available") from err

    if not data.get("valido"):
        status = CuiStatus.NOT_FOUND
    elif data.get("fallecido"):
        status = CuiStatus.DECEASED
    else:
        status = CuiStatus.VALID

    return {
        "status": status,
        "first_name": _join_names(data, ("primer_nombre", "segundo_nombre", "otros_nombres")),
        "last_name": _join_names(data, ("primer_apellido", "segundo_apellido", "apellido_casada")),
        "birth_date": birth_date,
        "gender": data.get("genero") if data.get("genero") in ("M", "F") else "",
        "source": "RENAP",
    }


CUI_BACKENDS = {
    "local": _lookup_local,
    "http": _lookup_http,
}


def lookup_cui(cui: str) -> dict:
    """Validate a CUI and fetch the data of its holder.

    Results of the lookup backend are stored and reused until they expire
    after CUI_CACHE_HOURS. A CUI with a wrong check digit or place of
    registration is refused without querying the backend.

    Returns:
        dict with cui, valid, status, first_name, last_name, birth_date, gender and cached flag

    Raises:
        FelError: If the lookup backend cannot be reached
    """
    cui = clean_cui(cui)

    if not validate_cui_format(cui):
        return {
            "cui": cui,
            "valid": False,
            "status": CuiStatus.INVALID,
            "first_name": "",
            "last_name": "",
            "birth_date": None,
            "gender": "",
            "cached": False,
        }

    now = timezone.now()
    validation = CuiValidation.objects.filter(cui=cui, expires_at__gt=now).order_by("-created").first()
    cached = validation is not None
    if not validation:
        result = CUI_BACKENDS[conf_settings.CUI_VALIDATION_BACKEND](cui)
        validation = CuiValidation.objects.create(
            cui=cui,
            status=result["status"],
            first_name=result["first_name"],
            last_name=result["last_name"],
            birth_date=result["birth_date"],
            gender=result["gender"],
            source=result["source"],
            expires_at=now + timedelta(hours=conf_settings.CUI_CACHE_HOURS),
        )
        logger.info(f"CUI {cui} looked up on {result['source']}: {validation.get_status_display()}")

    return {
        "cui": cui,
        "valid": validation.status == CuiStatus.VALID,
        "status": validation.status,
        "first_name": validation.first_name,
        "last_name": validation.last_name,
        "birth_date": validation.birth_date,
        "gender": validation.gender,
        "cached": cached,
    }


def purge_expired_cui_validations() -> int:
    """Delete the stored lookups past their expiry, returns how many."""
    expired = CuiValidation.objects.filter(expires_at__lte=timezone.now())
    count = expired.count()
    expired.delete(force_policy=HARD_DELETE)
    return count
