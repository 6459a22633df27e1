"""
Development settings
Local sqlite, mock Paystack and mock notifications unless overridden.
"""

import os

from .base import *  # noqa: F401,F403
from .base import LOGGING, env_bool

DEBUG = True
ALLOWED_HOSTS = ['*']

USE_MOCK_PAYSTACK = env_bool('USE_MOCK_PAYSTACK', True)
NOTIFIER_BACKEND = os.getenv('NOTIFIER_BACKEND', 'mock').strip().lower()

LOGGING['loggers']['apps']['level'] = 'DEBUG'
