"""
Local development settings.
SQLite unless LOCAL_DB_NAME/RDS_DB_NAME is set, debug toolbar, console logging.
"""

import socket
from .base import *

DEBUG = True
ALLOWED_HOSTS = ['*']

# -----------------------------------------------------------------------------
# CORS CONFIGURATION (Permissive for local development)
# -----------------------------------------------------------------------------
CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOWED_ORIGIN_REGEXES = [
    r"^https?://localhost:\d+$",
    r"^https?://127\.0\.0\.1:\d+$",
]

# -----------------------------------------------------------------------------
# DEBUG TOOLBAR CONFIGURATION
# -----------------------------------------------------------------------------
INSTALLED_APPS += ['debug_toolbar']
MIDDLEWARE += ['debug_toolbar.middleware.DebugToolbarMiddleware']

# Docker bridge addresses
INTERNAL_IPS = ['127.0.0.1', '172.17.0.1']
try:
    hostname, _, ips = socket.gethostbyname_ex(socket.gethostname())
    INTERNAL_IPS += [ip[:ip.rfind('.')] + '.1' for ip in ips]
except OSError as e:
    print(f"[Warning] Could not determine INTERNAL_IPS: {e}")

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

LOGGING = build_logging({'console': CONSOLE_HANDLER}, ledger_level='DEBUG')
