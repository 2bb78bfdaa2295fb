"""
Test settings.
In-memory SQLite, fast password hashing, no debug toolbar.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from .base import *  # noqa: E402

DEBUG = False
ALLOWED_HOSTS = ['*']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

TIME_ZONE = 'UTC'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

VEHICLES_PAGE_SIZE = 10

LOGGING = build_logging({'null': {'class': 'logging.NullHandler'}}, level='WARNING')
