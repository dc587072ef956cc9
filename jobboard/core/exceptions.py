# jobboard/core/exceptions.py
# Domain error taxonomy. Services raise these; main.py maps them to HTTP codes:
#   NotFoundError -> 404, UnauthorizedAccessError -> 401,
#   InvalidOperationError / ArgumentError -> 400


class DomainError(Exception):
    """Base class for errors raised by the service layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    def __init__(self, entity: str, key):
        super().__init__(f'{entity} "{key}" was not found.')
        self.entity = entity
        self.key = key


class UnauthorizedAccessError(DomainError):
    """The caller is authenticated but may not perform this action."""


class InvalidOperationError(DomainError):
    """The entity exists but is in a state that does not allow the operation."""


class ArgumentError(DomainError, ValueError):
    """Malformed input that passed schema validation."""
