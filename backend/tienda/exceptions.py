"""
Tienda Services: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every failure the services report.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in tienda.main) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services, security helpers and route dependencies.

Exception Hierarchy:
    TiendaError (base)
    ├── ValidationError          → 400 Bad Request
    ├── InvalidValueError        → 400 Bad Request (store rejected a value)
    ├── AuthenticationError      → 401 Unauthorized
    ├── TokenMissingError        → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

Database driver errors never leave the service layer raw: translate_db_error()
maps them onto this hierarchy by SQLSTATE.
"""

from typing import Any, Dict, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError

# PostgreSQL SQLSTATE codes the services distinguish
UNIQUE_VIOLATION = "23505"
INVALID_TEXT_REPRESENTATION = "22P02"


class TiendaError(Exception):
    """
    Base exception for all Tienda application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only where the
                  handler says so)
    """

    def __init__(
        self,
        message: str = "Ocurrió un error inesperado",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TiendaError):
    """
    Raised when client input fails validation.

    When:    Missing required field, non-numeric number, malformed embedded
             JSON, empty patch, unsupported upload type.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Datos inválidos",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidValueError(TiendaError):
    """
    Raised when the store rejects a malformed value (SQLSTATE 22P02).

    HTTP:    400 Bad Request, with the store's diagnostic code in details.
    """

    def __init__(
        self,
        message: str = "Valor inválido para la base de datos",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if code:
            ctx["code"] = code
        super().__init__(message=message, context=ctx)
        self.code = code


class AuthenticationError(TiendaError):
    """
    Raised for wrong credentials and for invalid, expired or tampered tokens.

    The message is deliberately the same for "unknown email" and "wrong
    password" so callers cannot tell the two apart.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Credenciales inválidas",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TokenMissingError(TiendaError):
    """Raised when a protected route is called without an Authorization header."""

    def __init__(self, message: str = "Token requerido"):
        super().__init__(message=message)


class NotFoundError(TiendaError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "recurso",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource} no encontrado"
            if resource_id:
                message = f"{resource} con ID '{resource_id}' no encontrado"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(TiendaError):
    """
    Raised when a write violates a uniqueness invariant (SQLSTATE 23505).

    When:    Duplicate user email, duplicate category name.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "El recurso ya existe",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(TiendaError):
    """
    Raised when writing an uploaded file fails (disk full, permissions).

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "No se pudo guardar el archivo",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TiendaError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the driver error
    is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Error de base de datos. Intente nuevamente más tarde.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ── Driver Error Translation ──────────────────────────────────────────────

def sqlstate_of(exc: DBAPIError) -> Optional[str]:
    """SQLSTATE reported by the driver, or None when the dialect has none."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: DBAPIError) -> bool:
    """True when the error is a uniqueness violation on any supported dialect."""
    code = sqlstate_of(exc)
    if code is not None:
        return code == UNIQUE_VIOLATION
    # SQLite reports no SQLSTATE: "UNIQUE constraint failed: categoria.nombre"
    return isinstance(exc, IntegrityError) and "UNIQUE" in str(exc.orig).upper()


def translate_db_error(
    exc: DBAPIError,
    conflict_message: str = "El recurso ya existe",
    context: Optional[Dict[str, Any]] = None,
) -> TiendaError:
    """
    Map a SQLAlchemy driver error onto the application hierarchy.

    Returns (does not raise) the translated exception so callers can
    `raise translate_db_error(e) from e`.
    """
    if is_unique_violation(exc):
        return ConflictError(message=conflict_message, context=context)

    code = sqlstate_of(exc)
    if code == INVALID_TEXT_REPRESENTATION:
        return InvalidValueError(
            message="Valor con formato inválido",
            code=code,
            context={**(context or {}), "detail": str(exc.orig)},
        )

    return DatabaseError(
        context={**(context or {}), "error_type": type(exc).__name__, "sqlstate": code},
    )
