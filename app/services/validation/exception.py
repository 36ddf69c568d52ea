from fastapi import HTTPException, status

"""
Errores del dominio de coaching.
Cada clase fija su código HTTP y un `error_type` estable para que el cliente
pueda distinguir, por ejemplo, un 400 de validación de una transición inválida.
"""

class CoachingException(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class UnauthenticatedException(CoachingException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "unauthenticated"


class ForbiddenException(CoachingException):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = "forbidden"


class NotFoundException(CoachingException):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class ValidationException(CoachingException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"


class InvalidStateTransitionException(CoachingException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "invalid_state_transition"


class ConflictException(CoachingException):
    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"


class ExpiredException(CoachingException):
    status_code = status.HTTP_410_GONE
    error_type = "expired"


async def unexpected_exception() -> None:
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal error occurred. Please try again later."
    )
