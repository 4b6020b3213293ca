"""
userhub - User Accounting Service

REST service for account registration, email activation,
login with JWT session tokens, and password reset by email.
"""

__version__ = "0.1.0"
