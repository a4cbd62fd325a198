"""
ASGI config for EnterpriseEntitlementService.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "EnterpriseEntitlementService.settings.prod")

application = get_asgi_application()
