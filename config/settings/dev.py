"""Development settings for the Time2Park project.

Debug on, every host allowed, emails printed to the console. Celery
tasks run inline unless a broker is explicitly requested, so the
payment callback flow works without Redis. Do not use these settings
in production!
"""

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = os.environ.get('CELERY_USE_BROKER', 'false').lower() != 'true'  # noqa: F405
CELERY_TASK_EAGER_PROPAGATES = True
