"""WSGI config for the Time2Park project.

Entry point for gunicorn/uwsgi and `runserver`. Defaults to the
development settings; deployments export DJANGO_SETTINGS_MODULE.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
