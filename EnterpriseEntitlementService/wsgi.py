"""
WSGI config for EnterpriseEntitlementService.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "EnterpriseEntitlementService.settings.prod")

application = get_wsgi_application()
