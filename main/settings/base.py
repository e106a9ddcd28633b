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

"""
Django settings for main project.
"""

import os
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = 'changeme'

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True

ALLOWED_HOSTS = ['127.0.0.1', 'localhost', '0.0.0.0', '.localhost']

# Application definition
INSTALLED_APPS = [
    'tradeconnect.apps.TradeConnectConfig',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'admin_auto_filters',
    'background_task',
    'safedelete',
    'import_export',
    'qr_code',
]

MIDDLEWARE = [
    # Security middleware
    'django.middleware.security.SecurityMiddleware',
    # Session middleware needed by auth
    'django.contrib.sessions.middleware.SessionMiddleware',
    # Messages depends on sessions
    'django.contrib.messages.middleware.MessageMiddleware',
    # Authentication (must be before anything that depends on request.user)
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    # Custom middleware for exception handling and tenant resolution
    'tradeconnect.middleware.exception.ExceptionHandlingMiddleware',
    'tradeconnect.middleware.organization.OrganizationIdentifyMiddleware',
    # Common middleware handles APPEND_SLASH - must be near the end
    'django.middleware.common.CommonMiddleware',
    # CSRF protection
    'django.middleware.csrf.CsrfViewMiddleware',
    # Clickjacking protection
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'main.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'main.wsgi.application'

# Database

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

# Password validation

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization

LANGUAGE_CODE = 'es'

LANGUAGES = [
    ('es', 'Español'),
    ('en', 'English'),
]

TIME_ZONE = 'America/Guatemala'

USE_I18N = True

USE_TZ = False

DEFAULT_AUTO_FIELD = 'django.db.models.AutoField'

# Static files (CSS, JavaScript, Images)

STATIC_URL = '/static/'

STATIC_ROOT = os.path.join(BASE_DIR, '../../static-prod')

MEDIA_URL = '/media/'

MEDIA_ROOT = os.path.join(BASE_DIR, '../../media')

SECURE_REFERRER_POLICY = 'origin'

# email

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

DEFAULT_FROM_EMAIL = 'info@tradeconnect.gt'

ADMINS = []

X_FRAME_OPTIONS = 'SAMEORIGIN'

# safe delete
SAFE_DELETE_FIELD_NAME = 'deleted'

DATETIME_INPUT_FORMATS = ['%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M']

DATE_INPUT_FORMATS = ['%Y-%m-%d']

LOGIN_URL = '/admin/login/'

# Tenant slug forced for every request (development only)
SLUG_ORGANIZATION = None

# Cache timeout settings
# Maximum cache duration: 1 day (86400 seconds)
CACHE_TIMEOUT_1_DAY = 86400

# Capacity figures move quickly, keep them short lived
CACHE_TIMEOUT_CAPACITY = 60

# Run background tasks inline instead of queueing them
AUTO_BACKGROUND_TASKS = False

# QR check-in
QR_HMAC_SECRET = None
QR_EARLY_TOLERANCE_MINUTES = 60
QR_LATE_TOLERANCE_MINUTES = 120
QR_IMAGE_SIZE = 10

# Waitlist
WAITLIST_OFFER_HOURS = 24

# Electronic invoicing (FEL, Guatemala)
FEL_TAX_RATE = '0.12'
FEL_CERTIFIER_BACKEND = 'local'
FEL_CERTIFIER_URL = ''
FEL_CERTIFIER_TIMEOUT = 30
FEL_MAX_RETRIES = 3

# NIT validation
NIT_VALIDATION_BACKEND = 'local'
NIT_VALIDATION_URL = ''
NIT_CACHE_HOURS = 24

# CUI validation
CUI_VALIDATION_BACKEND = 'local'
CUI_VALIDATION_URL = ''
CUI_VALIDATION_API_KEY = ''
CUI_CACHE_HOURS = 24

# Logging configuration
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {module} {funcName} {lineno} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {name} {funcName}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'tradeconnect': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'django.security.DisallowedHost': {
            'handlers': [],
            'propagate': False,
        },
    },
}
