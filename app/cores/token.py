from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import JWTError, jwt

from app.configs.settings import settings
from app.services.validation.exception import UnauthenticatedException


SECRET_KEY = settings.SECRET_KEY
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


"""
Genera un token JWT con la identidad ya resuelta del usuario.
    - `data` debe incluir `user_id`, `user_type` y, para tutores, el registro `tutor`.
    - Si no se pasa `expires_delta`, se usa el tiempo por defecto (24 horas).
"""
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"type": "access", "exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise UnauthenticatedException("Invalid or expired token")
