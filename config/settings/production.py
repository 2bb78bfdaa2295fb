"""
Production settings.
Requires RDS_DB_* variables; the ledger never falls back to SQLite here.
"""

from .base import *

DEBUG = False
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])

# -----------------------------------------------------------------------------
# SECURITY CONFIGURATION
# -----------------------------------------------------------------------------
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

SESSION_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_AGE = 3600  # 1 hour
CSRF_COOKIE_SECURE = True
CSRF_COOKIE_HTTPONLY = True

# -----------------------------------------------------------------------------
# DATABASE CONFIGURATION (Production)
# -----------------------------------------------------------------------------
if 'RDS_DB_NAME' not in env:
    raise ValueError("Production database configuration missing. Please set RDS_DB_* environment variables.")

# settlements rely on row locks, so production runs on Postgres only
DATABASES = {
    'default': postgres_database(
        'RDS_DB',
        OPTIONS={'sslmode': 'require'},
        CONN_MAX_AGE=60,
    )
}

CORS_ALLOW_ALL_ORIGINS = False

# -----------------------------------------------------------------------------
# LOGGING CONFIGURATION (Production)
# -----------------------------------------------------------------------------
LOGGING = build_logging(
    {
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': env("LOG_FILE", default='/var/log/django/django.log'),
            'maxBytes': 1024*1024*15,  # 15MB
            'backupCount': 10,
            'formatter': 'verbose',
        },
    },
    level='WARNING',
)
LOGGING['loggers']['django.request'] = {
    'handlers': ['file'],
    'level': 'ERROR',
    'propagate': False,
}
