"""
Test settings for ShopZa
Fast, isolated testing environment.
"""

from decimal import Decimal

from .base import *  # noqa: F401,F403

# ==========================================
# TEST FLAGS
# ==========================================

DEBUG = False
SECRET_KEY = 'django-test-key-not-secure'
ALLOWED_HOSTS = ['testserver', 'localhost', '127.0.0.1']

# ==========================================
# TEST DATABASE (In-memory for speed)
# ==========================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}


class DisableMigrations:
    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None


MIGRATION_MODULES = DisableMigrations()

# ==========================================
# CACHE / EMAIL / STORAGE
# ==========================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'test-cache',
    }
}

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.InMemoryStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# ==========================================
# BUSINESS SETTINGS (deterministic)
# ==========================================

APP_URL = 'http://testserver'
ADMIN_EMAILS = ['admin@shopza.test']
SUBSCRIPTION_PLAN_AMOUNT = Decimal('4800.00')
SUBSCRIPTION_DAYS = 365
SUBSCRIPTION_RENEW_EXPIRED = True

PAYSTACK_SECRET_KEY = 'sk_test_dummy'
PAYSTACK_BASE_URL = 'https://api.paystack.co'
USE_MOCK_PAYSTACK = False
HTTP_TIMEOUT_SECONDS = 5

NOTIFIER_BACKEND = 'telegram'
TELEGRAM_BOT_TOKEN = 'test-bot-token'

# ==========================================
# LOGGING (Minimal for tests)
# ==========================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
