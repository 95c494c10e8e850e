"""
HP Homestay Portal - Django Settings
Environment driven configuration for the homestay registration backend
"""

import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


# ============================================================================
# CORE
# ============================================================================

SECRET_KEY = os.environ.get('HOMESTAY_SECRET_KEY', 'django-insecure-homestay-portal-development-key')

DEBUG = env_bool('HOMESTAY_DEBUG', True)

ALLOWED_HOSTS = env_list('HOMESTAY_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver')

CSRF_TRUSTED_ORIGINS = env_list('HOMESTAY_CSRF_TRUSTED_ORIGINS')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'homestay.apps.HomestayConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'homestay_portal.urls'

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

WSGI_APPLICATION = 'homestay_portal.wsgi.application'


# ============================================================================
# DATABASE
# ============================================================================

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('HOMESTAY_DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('HOMESTAY_DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('HOMESTAY_DB_USER', ''),
        'PASSWORD': os.environ.get('HOMESTAY_DB_PASSWORD', ''),
        'HOST': os.environ.get('HOMESTAY_DB_HOST', ''),
        'PORT': os.environ.get('HOMESTAY_DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_USER_MODEL = 'homestay.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

SESSION_COOKIE_AGE = 60 * 60 * 8
SESSION_COOKIE_HTTPONLY = True


# ============================================================================
# INTERNATIONALISATION
# ============================================================================

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'Asia/Kolkata'

USE_I18N = True

USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# ============================================================================
# COMMUNICATIONS
# ============================================================================

EMAIL_BACKEND = os.environ.get('HOMESTAY_EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = os.environ.get('HOMESTAY_EMAIL_HOST', 'localhost')
EMAIL_PORT = int(os.environ.get('HOMESTAY_EMAIL_PORT', '25'))
EMAIL_HOST_USER = os.environ.get('HOMESTAY_EMAIL_USER', '')
EMAIL_HOST_PASSWORD = os.environ.get('HOMESTAY_EMAIL_PASSWORD', '')
EMAIL_USE_TLS = env_bool('HOMESTAY_EMAIL_USE_TLS', False)
DEFAULT_FROM_EMAIL = os.environ.get('HOMESTAY_FROM_EMAIL', 'noreply@hptourism.gov.in')

# Outbound SMS goes through a single HTTP gateway; leave the URL empty to disable SMS.
SMS_GATEWAY = {
    'url': os.environ.get('HOMESTAY_SMS_URL', ''),
    'username': os.environ.get('HOMESTAY_SMS_USERNAME', ''),
    'password': os.environ.get('HOMESTAY_SMS_PASSWORD', ''),
    'sender_id': os.environ.get('HOMESTAY_SMS_SENDER_ID', 'HPTOUR'),
    'template_id': os.environ.get('HOMESTAY_SMS_TEMPLATE_ID', ''),
    'timeout': int(os.environ.get('HOMESTAY_SMS_TIMEOUT', '10')),
}


# ============================================================================
# WORKFLOW
# ============================================================================

# Overrides for fuzzy district matching; None keeps the built-in stop words.
HOMESTAY_DISTRICT_STOP_WORDS = env_list('HOMESTAY_DISTRICT_STOP_WORDS') or None
HOMESTAY_DISTRICT_MIN_TOKEN_LENGTH = int(os.environ.get('HOMESTAY_DISTRICT_MIN_TOKEN_LENGTH', '3'))

HOMESTAY_SEARCH_RESULT_CAP = 200


# ============================================================================
# LOGGING
# ============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'homestay': {
            'handlers': ['console'],
            'level': os.environ.get('HOMESTAY_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
