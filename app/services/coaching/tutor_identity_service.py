from typing import NamedTuple, Optional

from app.models.coaching.constants import TutorType
from app.services.validation.exception import UnauthenticatedException, ForbiddenException


class TutorIdentity(NamedTuple):
    tutor_id: int
    tutor_type: str
    tutor_name: Optional[str] = None


def get_tutor_identity(user_data: Optional[dict]) -> TutorIdentity:
    """
    Resuelve el par (tutor_id, tutor_type) a partir del payload del token.

    - sole_tutor: el propio registro del tutor
    - organization: el registro de la organización
    - organization_user: la organización a la que pertenece el usuario
    """
    if not user_data or not user_data.get("user_id"):
        raise UnauthenticatedException("User not authenticated")

    tutor = user_data.get("tutor")
    if not tutor:
        raise ForbiddenException("Tutor information not found")

    user_type = user_data.get("user_type")

    if user_type == TutorType.SOLE_TUTOR.value:
        name = f"{tutor.get('fname', '')} {tutor.get('lname', '')}".strip()
        return TutorIdentity(tutor["id"], TutorType.SOLE_TUTOR.value, name or None)

    if user_type == TutorType.ORGANIZATION.value:
        return TutorIdentity(tutor["id"], TutorType.ORGANIZATION.value, tutor.get("name"))

    if user_type == "organization_user":
        organization_id = tutor.get("organization_id")
        if not organization_id:
            raise ForbiddenException("Organization information not found")
        name = tutor.get("organization_name") or f"{tutor.get('fname', '')} {tutor.get('lname', '')}".strip()
        return TutorIdentity(organization_id, TutorType.ORGANIZATION.value, name or None)

    raise ForbiddenException("Invalid user type")


def get_student_id(user_data: Optional[dict]) -> int:
    """Id del estudiante autenticado; otros roles no pueden usar los flujos de estudiante."""
    if not user_data or not user_data.get("user_id"):
        raise UnauthenticatedException("Authentication required")
    if user_data.get("user_type") != "student":
        raise ForbiddenException("Only students can perform this action")
    return user_data["user_id"]
