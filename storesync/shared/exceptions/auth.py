"""
Excepciones relacionadas con autenticación y autorización.
"""
from storesync.shared.exceptions.base import AppException


class AuthException(AppException):
    """Excepción base para errores de autenticación."""

    def __init__(self, message: str, error_code: str = "AUTH_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=401,
            error_code=error_code,
            details=details
        )


class InvalidCredentialsException(AuthException):
    """Excepción para un token inválido."""

    def __init__(self):
        super().__init__(
            message="Credenciales inválidas",
            error_code="INVALID_CREDENTIALS"
        )


class TokenExpiredException(AuthException):
    """Excepción para token expirado."""

    def __init__(self):
        super().__init__(
            message="El token ha expirado",
            error_code="TOKEN_EXPIRED"
        )


class UnauthorizedException(AuthException):
    """Excepción para peticiones sin identidad."""

    def __init__(self, message: str = "No autenticado"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED"
        )


class AccessDenied(AppException):
    """El usuario no es dueño de la tienda solicitada."""

    def __init__(self, store_id: str, user_id: str):
        super().__init__(
            message="No tienes acceso a esta tienda",
            status_code=403,
            error_code="ACCESS_DENIED",
            details={"store_id": store_id, "user_id": user_id}
        )
