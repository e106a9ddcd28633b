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
import os

import pytest
from django.core.cache import cache

logging.getLogger("tradeconnect").setLevel(logging.WARNING)


@pytest.fixture(autouse=True, scope="session")
def _env_for_tests():
    os.environ.setdefault("PYTHONHASHSEED", "0")


@pytest.fixture(autouse=True)
def _email_backend(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


@pytest.fixture(autouse=True)
def _cache_isolation(settings):
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "unique-for-pytest",
        }
    }
    cache.clear()


@pytest.fixture(autouse=True)
def _inline_background_tasks(settings):
    settings.AUTO_BACKGROUND_TASKS = True
