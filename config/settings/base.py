"""
Base settings shared by every environment.
Environment modules import everything from here and override what differs.
"""

import os
from pathlib import Path
from datetime import timedelta
import environ

# Initialize environment variables
env = environ.Env()
BASE_DIR = Path(__file__).resolve().parent.parent.parent
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

# -----------------------------------------------------------------------------
# BASIC CONFIGURATION
# -----------------------------------------------------------------------------
SECRET_KEY = env("SECRET_KEY")
ROOT_URLCONF = 'config.urls'
AUTH_USER_MODEL = 'users.User'
WSGI_APPLICATION = 'config.wsgi.application'

DJANGO_DEFAULT_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

LOCAL_APPS = [
    'users',
    'auths',
    'vehicles',
]

THIRD_PARTY_APPS = [
    'rest_framework_simplejwt',
    'rest_framework',
    'corsheaders',
    'drf_spectacular',
    'django_extensions',
]

INSTALLED_APPS = DJANGO_DEFAULT_APPS + LOCAL_APPS + THIRD_PARTY_APPS

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# -----------------------------------------------------------------------------
# DATABASE
# -----------------------------------------------------------------------------
def postgres_database(prefix, **extra):
    """Postgres settings read from <prefix>_NAME, <prefix>_USER, ... variables."""
    return {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': env(f"{prefix}_NAME"),
        'USER': env(f"{prefix}_USER", default="postgres"),
        'PASSWORD': env(f"{prefix}_PASSWORD"),
        'HOST': env(f"{prefix}_HOST", default="localhost"),
        'PORT': env(f"{prefix}_PORT", default='5432'),
        **extra,
    }


if 'RDS_DB_NAME' in env:
    DATABASES = {'default': postgres_database('RDS_DB')}
elif 'LOCAL_DB_NAME' in env:
    DATABASES = {'default': postgres_database('LOCAL_DB')}
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# -----------------------------------------------------------------------------
# INTERNATIONALIZATION
# -----------------------------------------------------------------------------
LANGUAGE_CODE = 'en-us'
TIME_ZONE = env("TIME_ZONE", default='Asia/Kolkata')
USE_I18N = True
USE_TZ = True

AUTH_PASSWORD_VALIDATORS = [
    { 'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator' },
    { 'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator' },
    { 'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator' },
    { 'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator' },
]

# -----------------------------------------------------------------------------
# REST FRAMEWORK & JWT CONFIG
# -----------------------------------------------------------------------------
SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=env.int("JWT_ACCESS_HOURS", default=12)),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=env.int("JWT_REFRESH_DAYS", default=7)),
    'ROTATE_REFRESH_TOKENS': False,
    'UPDATE_LAST_LOGIN': True,
    'ALGORITHM': 'HS256',
    'SIGNING_KEY': SECRET_KEY,
    'AUTH_HEADER_TYPES': ('Bearer',),
    'USER_ID_FIELD': 'id',
    'USER_ID_CLAIM': 'user_id',
}

# Staff-only back office: every endpoint except login needs a token
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'COERCE_DECIMAL_TO_STRING': True,
}

SPECTACULAR_SETTINGS = {
    "TITLE": env("PROJECT", default="Dealership Ledger API"),
    "DESCRIPTION": "Vehicle purchases, sales, payment settlements and profit reports",
    "VERSION": "1.0.0",
    "SERVE_PERMISSIONS": ["rest_framework.permissions.AllowAny"],
}

# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_HEADERS = [
    'Accept',
    'Accept-Encoding',
    'Authorization',
    'Content-Type',
    'Origin',
    'User-Agent',
    'X-CSRFToken',
    'X-Requested-With',
]
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=CORS_ALLOWED_ORIGINS)

# -----------------------------------------------------------------------------
# STATIC FILES
# -----------------------------------------------------------------------------
STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
def build_logging(handlers, level='INFO', ledger_level='INFO'):
    """
    LOGGING dict routing root, django and the ledger loggers (vehicles,
    auths) to the given handlers.
    """
    names = list(handlers)
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'verbose': {
                'format': '{levelname} {asctime} {name} {process:d} {message}',
                'style': '{',
            },
        },
        'handlers': handlers,
        'root': {
            'handlers': names,
            'level': level,
        },
        'loggers': {
            'django': {
                'handlers': names,
                'level': level,
                'propagate': False,
            },
            'vehicles': {
                'handlers': names,
                'level': ledger_level,
                'propagate': False,
            },
            'auths': {
                'handlers': names,
                'level': ledger_level,
                'propagate': False,
            },
        },
    }


CONSOLE_HANDLER = {
    'class': 'logging.StreamHandler',
    'formatter': 'verbose',
}

LOGGING = build_logging({'console': CONSOLE_HANDLER})

# -----------------------------------------------------------------------------
# VEHICLE LEDGER
# -----------------------------------------------------------------------------
VEHICLES_PAGE_SIZE = env.int("VEHICLES_PAGE_SIZE", default=10)
