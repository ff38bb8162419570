"""
Application-wide exception hierarchy.

Services raise these types; the application factory registers one handler
per type, so every blueprint gets the same HTTP status and error body.

    NotFoundError       → 404  referenced template/checklist/item/user absent
    ForbiddenError      → 403  authenticated, but not permitted
    ValidationError     → 400  malformed input; nothing was mutated
    ConflictError       → 409  duplicate unique value or concurrent write
    AuthenticationError → 401  no or invalid caller identity
    SerializationError  → 500  checklist could not be rendered in a format

Usage:
    from securelistify.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Checklist", resource_id=checklist_id)
    raise ValidationError("name is required", details={"name": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Visibility failures are NOT reported through this type: a private
    template or an unshared checklist raises ForbiddenError, which keeps
    the 403/404 distinction API clients already rely on.

    Args:
        resource: Human-readable entity name (e.g. "Checklist", "User").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" not found with id of {resource_id}"
        else:
            msg += " not found"
        super().__init__(msg)


class ForbiddenError(Exception):
    """Raised when the caller may not perform an action on a resource.

    Args:
        message: Human-readable reason.
        resource: Entity name, for logs.
        resource_id: Entity key, for logs.
    """

    def __init__(self, message: str, resource: str | None = None,
                 resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message)


class ValidationError(Exception):
    """Raised when input fails schema or business-rule validation.

    Always raised before any mutation, so a failed call leaves stored
    state untouched.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names;
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when a write would duplicate a unique value or lost a race.

    Args:
        resource: Model name.
        field: The unique field (or "version" for a concurrent update).
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | int | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        if field == "version":
            msg = f"{resource} was modified by another request; reload and retry"
        else:
            msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class AuthenticationError(Exception):
    """Raised when credentials or a bearer token cannot be verified."""

    def __init__(self, message: str = "Not authorized to access this route") -> None:
        super().__init__(message)


class SerializationError(Exception):
    """Raised when checklist data cannot be rendered in the requested format.

    Args:
        fmt: Export format that failed.
        message: What could not be rendered.
    """

    def __init__(self, fmt: str, message: str) -> None:
        self.fmt = fmt
        super().__init__(f"Could not render {fmt} export: {message}")
