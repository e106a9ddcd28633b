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

from .base import *

SLUG_ORGANIZATION = None

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'unique-for-pytest',
    }
}

AUTO_BACKGROUND_TASKS = True

DEBUG = False
EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

FEL_CERTIFIER_BACKEND = 'local'
NIT_VALIDATION_BACKEND = 'local'
CUI_VALIDATION_BACKEND = 'local'

QR_HMAC_SECRET = 'test-qr-secret'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARN',
    },
}

ADMINS = [
    ('test', 'test@test.it')
]
