"""
Utilidades de seguridad: emisión y validación de tokens JWT.

El login vive fuera de este servicio; aquí solo se valida el token que
emite el dashboard para identificar al usuario que pide un sync.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import ExpiredSignatureError, JWTError, jwt

from storesync.core.config import settings
from storesync.shared.exceptions.auth import InvalidCredentialsException, TokenExpiredException


class SecurityService:
    """Servicio para operaciones de seguridad."""

    def __init__(self, secret_key: str, algorithm: str, expire_minutes: int):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Crea un token JWT de acceso.

        Args:
            data: Datos a incluir en el token (`sub` = ID del usuario)
            expires_delta: Tiempo de expiración personalizado

        Returns:
            str: Token JWT codificado
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expire_minutes)
        )
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """
        Decodifica y valida un token JWT.

        Raises:
            InvalidCredentialsException: Si el token es inválido
            TokenExpiredException: Si el token ha expirado
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredException()
        except JWTError:
            raise InvalidCredentialsException()

    def user_id_from_token(self, token: str) -> str:
        """ID del usuario (`sub`) de un token válido."""
        payload = self.decode_access_token(token)
        subject = payload.get("sub")
        if not subject:
            raise InvalidCredentialsException()
        return str(subject)


# Instancia global del servicio de seguridad
security_service = SecurityService(
    secret_key=settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
)
