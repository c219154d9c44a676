"""
Domain error taxonomy.

Services raise these before any mutation happens. API handlers translate
them into HTTP errors with:

    except DomainError as e:
        raise HttpError(e.status_code, str(e))
"""


class DomainError(Exception):
    """Base class for errors the caller can act on."""
    status_code = 400


class ValidationError(DomainError):
    """Malformed or incomplete input (short address, missing identity fields)."""
    status_code = 400


class OwnershipError(DomainError):
    """Caller does not own the referenced address or visitor."""
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """A business rule blocks the operation (e.g. deleting the only address)."""
    status_code = 409


class UpstreamError(DomainError):
    """Geocoder unreachable or returned a non-2xx response."""
    status_code = 502
