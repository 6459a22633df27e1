"""
Base settings for ShopZa
Shared by dev, prod and test settings modules.

Values come from the process environment; a `.env` file at the project
root is loaded first if present.
"""

import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


# ==========================================
# CORE
# ==========================================

SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-shopza-dev-key')
DEBUG = env_bool('DEBUG', False)
ALLOWED_HOSTS = env_list('ALLOWED_HOSTS', 'localhost,127.0.0.1')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'django.contrib.sites',

    'allauth',
    'allauth.account',

    'apps.users',
    'apps.shops',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'allauth.account.middleware.AccountMiddleware',
]

ROOT_URLCONF = 'ShopZa.urls'
WSGI_APPLICATION = 'ShopZa.wsgi.application'
SITE_ID = 1

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
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

# ==========================================
# DATABASE
# ==========================================

if os.getenv('DB_ENGINE', 'sqlite') == 'postgres':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DB_NAME', 'shopza'),
            'USER': os.getenv('DB_USER', 'shopza'),
            'PASSWORD': os.getenv('DB_PASSWORD', ''),
            'HOST': os.getenv('DB_HOST', 'localhost'),
            'PORT': os.getenv('DB_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ==========================================
# AUTHENTICATION (allauth, email login)
# ==========================================

AUTH_USER_MODEL = 'users.CustomUser'

AUTHENTICATION_BACKENDS = [
    'django.contrib.auth.backends.ModelBackend',
    'allauth.account.auth_backends.AuthenticationBackend',
]

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

ACCOUNT_USER_MODEL_USERNAME_FIELD = None
ACCOUNT_LOGIN_METHODS = {'email'}
ACCOUNT_SIGNUP_FIELDS = ['email*', 'password1*', 'password2*']
ACCOUNT_EMAIL_VERIFICATION = os.getenv('ACCOUNT_EMAIL_VERIFICATION', 'optional')
LOGIN_REDIRECT_URL = '/api/subscription/check/'

# ==========================================
# I18N / TIME
# ==========================================

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'Africa/Lagos'
USE_I18N = True
USE_TZ = True

# ==========================================
# STATIC & MEDIA
# ==========================================

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

# ==========================================
# EMAIL
# ==========================================

EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', 'ShopZa <no-reply@shopza.ng>')

# ==========================================
# SHOPZA BUSINESS SETTINGS
# Snapshotted by apps.shops.config.ShopConfig.from_settings()
# ==========================================

APP_URL = os.getenv('APP_URL', 'http://localhost:8000').rstrip('/')

# Admin accounts skip payment and get a bootstrapped subscription
ADMIN_EMAILS = env_list('ADMIN_EMAIL')

SUBSCRIPTION_PLAN_AMOUNT = Decimal(os.getenv('SUBSCRIPTION_PLAN_AMOUNT', '4800.00'))
SUBSCRIPTION_PLAN_NAME = os.getenv('SUBSCRIPTION_PLAN_NAME', 'starter')
SUBSCRIPTION_DAYS = int(os.getenv('SUBSCRIPTION_DAYS', '365'))
SUBSCRIPTION_RENEW_EXPIRED = env_bool('SUBSCRIPTION_RENEW_EXPIRED', True)

PAYMENT_SUCCESS_URL = os.getenv('PAYMENT_SUCCESS_URL', '/onboarding/')
PAYMENT_FAILURE_URL = os.getenv('PAYMENT_FAILURE_URL', '/payment/')

# Paystack
PAYSTACK_SECRET_KEY = os.getenv('PAYSTACK_SECRET_KEY', '')
PAYSTACK_PUBLIC_KEY = os.getenv('PAYSTACK_PUBLIC_KEY', '')
PAYSTACK_BASE_URL = os.getenv('PAYSTACK_BASE_URL', 'https://api.paystack.co').rstrip('/')
USE_MOCK_PAYSTACK = env_bool('USE_MOCK_PAYSTACK', False)

# Outbound HTTP (gateway + notifier)
HTTP_TIMEOUT_SECONDS = float(os.getenv('HTTP_TIMEOUT_SECONDS', '30'))

# New order notifications: telegram | sms | mock
NOTIFIER_BACKEND = os.getenv('NOTIFIER_BACKEND', 'telegram').strip().lower()
TELEGRAM_BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN', '')
TERMII_API_KEY = os.getenv('TERMII_API_KEY', '')
TERMII_SENDER_ID = os.getenv('TERMII_SENDER_ID', 'ShopZa')

SLUG_MAX_ATTEMPTS = int(os.getenv('SLUG_MAX_ATTEMPTS', '50'))

# Upload limits (bytes)
PAYMENT_PROOF_MAX_SIZE = 5 * 1024 * 1024
HERO_IMAGE_MAX_SIZE = 10 * 1024 * 1024
PRODUCT_IMAGE_MAX_SIZE = 5 * 1024 * 1024

# ==========================================
# LOGGING
# ==========================================

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'apps': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
    },
}
