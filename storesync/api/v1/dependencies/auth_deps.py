"""
Dependencias de autenticación.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storesync.core.security import security_service
from storesync.shared.exceptions.auth import UnauthorizedException


# auto_error=False: el 401 lo emite UnauthorizedException con el formato de la API
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """
    Identidad del usuario que hace la petición.

    Raises:
        UnauthorizedException: sin token Bearer
        InvalidCredentialsException / TokenExpiredException: token inválido
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException()
    return security_service.user_id_from_token(credentials.credentials)
