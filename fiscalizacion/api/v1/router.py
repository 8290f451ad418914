from fastapi import APIRouter

from fiscalizacion.api.v1.endpoints import fiscalizacion

api_router = APIRouter(prefix="/api")

# Fiscalizacion (customs inspection registrations)
api_router.include_router(
    fiscalizacion.router,
    prefix="/fiscalizacion",
    tags=["Fiscalizacion"]
)
