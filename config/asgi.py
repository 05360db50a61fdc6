"""ASGI config for the Time2Park project.

Exposes the ASGI application for async-capable servers. Production
servers set DJANGO_SETTINGS_MODULE to `config.settings.prod`.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
