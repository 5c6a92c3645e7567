"""
CSRF protection configuration.

A single CSRFProtect instance initialised in create_app(). JSON API
blueprints are exempted there; the HTML forms (sign in, sign up, booking
page) carry ``csrf_token()``.
"""

from flask_wtf.csrf import CSRFProtect

csrf = CSRFProtect()
