"""
Este bloque define la configuración de inicio (lifespan) y creación de la aplicación FastAPI.
Incluye tareas que deben ejecutarse al arrancar la aplicación, como la creación de tablas.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.configs.settings import settings
from app.cores.db import Base, engine
from app.cores.rate_limiter import limiter, rate_limit_exceeded_handler
from app.services.validation.exception import CoachingException

# Registra los modelos en Base.metadata
from app.models.coaching.coaching_profile import TutorCoachingProfile
from app.models.coaching.availability import TutorAvailability
from app.models.coaching.booking_request import CoachingBookingRequest

from app.apis.coaching_profile_api import router as coaching_profile_router
from app.apis.availability_api import router as availability_router
from app.apis.tutor_booking_api import router as tutor_booking_router
from app.apis.student_booking_api import router as student_booking_router
from app.apis.tutor_directory_api import router as tutor_directory_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Función que se ejecuta al iniciar la aplicación.
    - Crea todas las tablas en la base de datos si no existen.
    - Al finalizar, continúa con la ejecución normal de la app (con `yield`).
    """
    async with engine.begin() as conn:
        # Crea las tablas en la base de datos
        await conn.run_sync(Base.metadata.create_all)

    yield


async def coaching_exception_handler(request: Request, exc: CoachingException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.error_type,
            "detail": exc.detail,
        },
    )

"""
    Función que construye y retorna la instancia principal de la aplicación FastAPI.
    - Establece el título de la app.
    - Aplica la función `lifespan` para la inicialización.
    - Registra el limitador de peticiones, los manejadores de errores y las rutas.
"""


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(CoachingException, coaching_exception_handler)

    app.include_router(coaching_profile_router, prefix="/api/marketplace/tutor/coaching", tags=["Coaching Profile"])
    app.include_router(availability_router, prefix="/api/marketplace/tutor/coaching/availability", tags=["Availability"])
    app.include_router(tutor_booking_router, prefix="/api/marketplace/tutor/coaching/booking-requests", tags=["Tutor Booking Requests"])
    app.include_router(student_booking_router, prefix="/api/marketplace/coaching", tags=["Student Booking Requests"])
    app.include_router(tutor_directory_router, prefix="/api/marketplace/coaching/tutors", tags=["Coaching Tutors"])

    return app
