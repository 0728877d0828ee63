"""
WSGI config for pharma_erp project.

Socket.IO events need the ASGI entry point; this one serves the REST API only.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pharma_erp.settings')

application = get_wsgi_application()
