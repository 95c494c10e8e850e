"""
WSGI config for the HP Homestay Portal.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'homestay_portal.settings')

application = get_wsgi_application()
