"""
Fiscalizacion Schemas - request/response DTOs for inspection registration.

Schemas for:
- Preparing a registration for one or many guides
- Applying a registration (results + retention flags) to guides
- Soft-deleting a registration
"""
from datetime import datetime
from typing import Optional, List

from pydantic import Field

from fiscalizacion.db_types import NO
from fiscalizacion.schemas.base import BaseRequestSchema, BaseResponseSchema


# ============================================================================
# SHARED BLOCKS
# ============================================================================

class GuiaInfo(BaseResponseSchema):
    """Basic guide/document data."""
    id: int
    numero_documento: Optional[str] = None
    codigo_tipo_documento: Optional[str] = None


class TipoFiscalizacion(BaseResponseSchema):
    codigo: str
    nombre: str
    descripcion: Optional[str] = None


class ResultadoDisponible(BaseResponseSchema):
    """Selectable catalog result for the action's inspection type."""
    codigo: str
    descripcion: str
    libera_op_aduanera: str
    libera_op_transporte: str


class DatosIniciales(BaseResponseSchema):
    """Initial values of the registration form."""
    numero_denuncia: str = ""
    op_aduanera_retenida: str = NO
    op_transporte_retenida: str = NO


# ============================================================================
# PREPARAR REGISTRO (MULTIPLE)
# ============================================================================

class PrepararRegistroRequest(BaseRequestSchema):
    guias_ids: List[int] = Field(..., min_length=1, description="IDs of the guides to register")


class PrepararRegistroResponse(BaseResponseSchema):
    guias: List[GuiaInfo]
    tipo_fiscalizacion: TipoFiscalizacion
    solicitantes: str
    resultados_disponibles: List[ResultadoDisponible]
    datos_iniciales: DatosIniciales


# ============================================================================
# PREPARAR REGISTRO (INDIVIDUAL)
# ============================================================================

class PrepararRegistroIndividualRequest(BaseRequestSchema):
    id_guia: int = Field(..., ge=1, description="Guide ID")


class AccionFiscalizacion(BaseResponseSchema):
    id: int
    id_solicitante: Optional[int] = None
    nombre_solicitante: Optional[str] = None
    descripcion: Optional[str] = None
    fecha_planificada: Optional[datetime] = None
    fecha_ejecucion: Optional[datetime] = None


class RegistroHistorico(BaseResponseSchema):
    """Active registration of the action, with its aggregated results and observations."""
    id_registro: int
    fecha_ejecucion: str
    fecha_sys_registro: str
    resultados: str
    observaciones: str


class PrepararRegistroIndividualResponse(BaseResponseSchema):
    guia: GuiaInfo
    accion_fiscalizacion: Optional[AccionFiscalizacion] = None
    tipo_fiscalizacion: Optional[TipoFiscalizacion] = None
    solicitante: Optional[str] = None
    resultados_disponibles: List[ResultadoDisponible] = []
    registros_historicos: List[RegistroHistorico] = []
    datos_iniciales: DatosIniciales


# ============================================================================
# APLICAR REGISTRO
# ============================================================================

class DocumentoRegistro(BaseRequestSchema):
    id: int
    numero_documento: str = Field(..., min_length=1)
    codigo_tipo_documento: str = Field(..., min_length=1)


class ResultadoFiscalizacion(BaseRequestSchema):
    codigo_resultado: str = Field(..., min_length=1)
    # Stored truncated to 255 characters, never rejected for length
    observacion: Optional[str] = None


class AplicarRegistroRequest(BaseRequestSchema):
    """Same results, complaint code and flags are applied to every document."""
    documentos: List[DocumentoRegistro] = Field(..., min_length=1)
    resultados_ingresados: List[ResultadoFiscalizacion] = Field(..., min_length=1)
    codigo_denuncia: Optional[str] = None
    id_ejecutante: int
    nombre_ejecutante: str = Field(..., min_length=1)
    op_aduanera_retenida: Optional[bool] = False
    op_transporte_retenida: Optional[bool] = False


class ResultadoAplicado(BaseResponseSchema):
    codigo: str
    descripcion: str
    observacion: Optional[str] = None


class RegistroFiscalizacionCreado(BaseResponseSchema):
    id: int
    id_accion_fiscalizacion: int
    numero_doc_asociado: str
    codigo_tipo_documento: str
    fecha_ejecucion: datetime
    fecha_registro_sistema: datetime
    op_aduanera_retenida: str
    op_transporte_retenida: str
    estado_documento: str
    codigo_denuncia: Optional[str] = None
    resultados: List[ResultadoAplicado]


class AplicarRegistroResponse(BaseResponseSchema):
    success: bool
    message: str
    registros_creados: int
    registros: List[RegistroFiscalizacionCreado]
    # Documents without an active action, skipped instead of failing the batch
    registros_omitidos: List[int] = []


# ============================================================================
# ELIMINAR REGISTRO
# ============================================================================

class EliminarRegistroResponse(BaseResponseSchema):
    success: bool
    message: str
    id_registro_eliminado: int
    fecha_eliminacion: datetime
    id_accion_fiscalizacion: int
    numero_doc_asociado: str
