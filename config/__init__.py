"""Top-level package for Django configuration.

Settings modules for each environment, the URL root, WSGI/ASGI entry
points and the Celery application of the Time2Park backend.
"""

# Import the Celery application as soon as Django starts. Without this
# the shared task registry will not be populated.
from .celery import app as celery_app  # noqa: F401
