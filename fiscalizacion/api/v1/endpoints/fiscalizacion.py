"""
Fiscalizacion API Endpoints - customs inspection registration.

API endpoints for:
- Preparing a registration (several guides or one guide)
- Applying a registration
- Soft-deleting a registration
"""
from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from fiscalizacion.database import get_db
from fiscalizacion.schemas.fiscalizacion import (
    PrepararRegistroRequest, PrepararRegistroResponse,
    PrepararRegistroIndividualRequest, PrepararRegistroIndividualResponse,
    AplicarRegistroRequest, AplicarRegistroResponse,
    EliminarRegistroResponse
)
from fiscalizacion.services.errors import FiscalizacionError
from fiscalizacion.services.fiscalizacion_service import FiscalizacionService
from fiscalizacion.services.registro_service import RegistroService

router = APIRouter()


# ============================================================================
# PREPARACION
# ============================================================================

@router.post(
    "/preparar-registro-multiple",
    response_model=PrepararRegistroResponse,
    status_code=status.HTTP_200_OK,
    summary="Prepare registration for several guides"
)
async def preparar_registro_multiple(
    data: PrepararRegistroRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Load the registration screen for several guides.

    Every guide must exist and have an active inspection action; the
    inspection type of the first guide applies to all of them.
    """
    service = FiscalizacionService(db)
    try:
        return await service.preparar_registro_multiple(data.guias_ids)
    except FiscalizacionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/preparar-registro-individual",
    response_model=PrepararRegistroIndividualResponse,
    status_code=status.HTTP_200_OK,
    summary="Prepare registration for one guide"
)
async def preparar_registro_individual(
    data: PrepararRegistroIndividualRequest,
    db: AsyncSession = Depends(get_db),
):
    """Load the registration screen for one guide, including its historical registrations."""
    service = FiscalizacionService(db)
    try:
        return await service.preparar_registro_individual(data.id_guia)
    except FiscalizacionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# ============================================================================
# REGISTRO
# ============================================================================

@router.post(
    "/aplicar-registro",
    response_model=AplicarRegistroResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply registration"
)
async def aplicar_registro(
    data: AplicarRegistroRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Apply the same results, complaint code and retention flags to every document.

    Documents without an active action are skipped and listed in
    `registrosOmitidos`.
    """
    service = RegistroService(db)
    try:
        return await service.aplicar_registro(data)
    except FiscalizacionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/registros/{id_registro}/{id_accion_fiscalizacion}",
    response_model=EliminarRegistroResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete registration"
)
async def eliminar_registro(
    id_registro: int = Path(..., ge=1, description="Registration ID"),
    id_accion_fiscalizacion: int = Path(..., ge=1, description="Inspection action ID"),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete an active registration identified by (registration id, action id)."""
    service = RegistroService(db)
    try:
        return await service.eliminar_registro(id_registro, id_accion_fiscalizacion)
    except FiscalizacionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
