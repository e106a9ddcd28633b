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

import logging

from django.core.management.base import BaseCommand

from tradeconnect.accounting.cui import purge_expired_cui_validations
from tradeconnect.accounting.invoice import retry_failed_documents
from tradeconnect.accounting.nit import purge_expired_nit_validations
from tradeconnect.utils.campaign import send_scheduled_campaigns
from tradeconnect.utils.capacity import expire_reservations
from tradeconnect.utils.checkin import expire_qr_codes
from tradeconnect.utils.registration import complete_past_events
from tradeconnect.utils.tasks import notify_admins
from tradeconnect.utils.waitlist import process_expired_entries

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Periodic maintenance, meant to be scheduled every few minutes.

    Handles:
    - Expired capacity reservations
    - Expired waitlist offers, passing the spot to the next in line
    - Expired QR codes and events already ended
    - Scheduled email campaigns
    - FEL documents whose certification failed
    - Stale NIT and CUI lookups
    """

    help = "Automate processes"

    jobs = [
        ("expire_reservations", expire_reservations),
        ("process_expired_entries", process_expired_entries),
        ("expire_qr_codes", expire_qr_codes),
        ("complete_past_events", complete_past_events),
        ("send_scheduled_campaigns", send_scheduled_campaigns),
        ("retry_failed_documents", retry_failed_documents),
        ("purge_expired_nit_validations", purge_expired_nit_validations),
        ("purge_expired_cui_validations", purge_expired_cui_validations),
    ]

    def handle(self, *args, **options):
        """Run every job, a failing job is reported to the admins and does not stop the others."""
        for name, job in self.jobs:
            try:
                count = job()
            except Exception as e:
                logger.exception(f"Automate job {name} failed")
                notify_admins(f"Automate {name}", "", e)
                continue
            if count:
                logger.info(f"Automate {name}: {count}")
            self.stdout.write(f"{name}: {count}")
