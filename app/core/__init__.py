"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication, chat).
Nothing in here knows about chats or messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - ExternalServiceError: Backing service failures (database, channel layer)

Helpers (import from core.helpers):
    - validate_uuid: UUID validation

Views (import from core.views):
    - health_check: Liveness/readiness probe
"""
