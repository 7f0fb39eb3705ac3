"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User model tests
- test_managers.py: UserManager tests
- test_sessions.py: Session cookie decoding
- test_backends.py: DRF authentication class

Usage:
    pytest app/authentication/tests/
    pytest app/authentication/tests/test_sessions.py
"""
