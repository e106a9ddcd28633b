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

SLUG_ORGANIZATION = 'def'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': 'tradeconnect',
        'USER': 'tradeconnect',
        'PASSWORD': 'tradeconnect',
        'HOST': 'localhost',
        'PORT': '5432',
    }
}

AUTO_BACKGROUND_TASKS = True

# CREATE DATABASE tradeconnect;
# CREATE USER tradeconnect WITH PASSWORD 'tradeconnect';
# ALTER USER tradeconnect CREATEDB;
# ALTER DATABASE tradeconnect OWNER TO tradeconnect;
# GRANT ALL PRIVILEGES ON DATABASE tradeconnect TO tradeconnect;

ADMINS = [
    ('test', 'test@test.it')
]
