"""
Authentication application.

Owns the platform's User record and the session-cookie credential that both
the HTTP API and the chat WebSocket accept.

Key components:
    - User model: UUID identity with display fields (name, avatar)
    - sessions: Decodes the session cookie into a user identity
    - backends: DRF authentication class built on the session decoder

Usage:
    from authentication.models import User
    from authentication.sessions import get_session_user_id
"""
