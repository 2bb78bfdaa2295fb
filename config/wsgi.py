"""
WSGI config. The settings package picks local/development/production/test
from DJANGO_ENVIRONMENT.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

application = get_wsgi_application()
