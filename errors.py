"""Error taxonomy shared by both services.

Each error carries the HTTP status it maps to; ``main`` renders them as
``{"error": message}``.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class BackendUnavailableError(ServiceError):
    """A backend write failed after the connection was established."""

    status_code = 500


def describe_errors(errors) -> str:
    """Render the first pydantic error as ``field: message``."""
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p != "body"]
    field = ".".join(loc) or "body"
    return f"{field}: {first.get('msg', 'invalid value')}"
