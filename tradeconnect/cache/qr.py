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

from django.conf import settings as conf_settings
from django.core.cache import cache

from tradeconnect.models.checkin import QRCode


def qr_hash_key(qr_hash: str) -> str:
    return f"qr_hash_{qr_hash}"


def get_qr_by_hash(qr_hash: str) -> QRCode | None:
    """Resolve a scanned hash to its QR code, caching the hash to id mapping."""
    if not qr_hash:
        return None

    key = qr_hash_key(qr_hash)
    qr_id = cache.get(key)
    if qr_id is None:
        qr_id = QRCode.objects.filter(qr_hash=qr_hash).values_list("id", flat=True).first()
        if qr_id is None:
            return None
        cache.set(key, qr_id, timeout=conf_settings.CACHE_TIMEOUT_1_DAY)

    return QRCode.objects.select_related("registration", "event").filter(pk=qr_id).first()


def clear_qr_cache(qr_code: QRCode) -> None:
    cache.delete(qr_hash_key(qr_code.qr_hash))
