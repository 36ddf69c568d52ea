from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Depends, Header

from app.cores.db import async_session
from app.cores.token import verify_token
from app.services.coaching.tutor_identity_service import TutorIdentity, get_tutor_identity, get_student_id
from app.services.validation.exception import UnauthenticatedException

"""
Este archivo define la función `get_db`, que proporciona una sesión de base de datos asincrónica.
Se usa como dependencia en rutas de FastAPI para interactuar con la base de datos sin preocuparse
por abrir o cerrar la conexión manualmente.
"""
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session = async_session()
    try:
        yield session
    finally:
        await session.close()


async def auth_required(authorization: Optional[str] = Header(None)) -> dict:
    if not authorization:
        raise UnauthenticatedException("Token not provided")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise UnauthenticatedException("Invalid token format")

    if scheme.lower() != "bearer":
        raise UnauthenticatedException("Invalid token format")

    return verify_token(token)


async def get_current_tutor(user_data: dict = Depends(auth_required)) -> TutorIdentity:
    """Par (tutor_id, tutor_type) del usuario autenticado."""
    return get_tutor_identity(user_data)


async def get_current_student_id(user_data: dict = Depends(auth_required)) -> int:
    return get_student_id(user_data)
