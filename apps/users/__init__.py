"""Users app package.

Defines the custom user model with the customer, vendor and admin roles,
JWT authentication endpoints and admin role management. Use
``apps.users.models.User`` as the AUTH_USER_MODEL throughout the project.
"""
