"""
Consultas Service - read-only lookups over the legacy inspection tables.

Lookups used by the preparation and registration workflows:
- Guide/document info
- Active inspection action of a document (through its active marks)
- Result catalog of an inspection type
- Historical registrations of an action
- Last active registration of an action for a document
"""
import logging
from typing import Optional, List

from sqlalchemy import select, func, and_, String
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from fiscalizacion.config import settings
from fiscalizacion.db_types import SI
from fiscalizacion.models.fiscalizacion import (
    DocDocumentoBase, OpFiscOperacion, OpFiscMarca, OpFiscTipoFiscalizacion,
    OpFiscAccionFiscalizacion, OpFiscResultado, OpFiscRegistroFiscalizacion
)
from fiscalizacion.schemas.fiscalizacion import (
    GuiaInfo, ResultadoDisponible, RegistroHistorico
)

logger = logging.getLogger(__name__)

FORMATO_FECHA_EJECUCION = "%d/%m/%Y"
FORMATO_FECHA_SISTEMA = "%d-%m-%Y %H:%M"


def funcion_almacenada(nombre: str):
    """
    Resolve a dotted stored function name ("pkg.sub.fn") to a ``func`` generator.

    The aggregation functions are opaque to this service; their output is
    passed through unchanged.
    """
    generador = func
    for parte in nombre.split("."):
        generador = getattr(generador, parte)
    return generador


class ConsultasService:
    """Service for lookups shared by the fiscalizacion workflows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def obtener_info_guia(self, id_guia: int) -> Optional[GuiaInfo]:
        """Get id, external number and type of a guide, or None if it does not exist."""
        result = await self.db.execute(
            select(
                DocDocumentoBase.id,
                DocDocumentoBase.numero_externo,
                DocDocumentoBase.tipo_documento,
            ).where(DocDocumentoBase.id == id_guia)
        )
        row = result.first()
        if row is None:
            return None

        return GuiaInfo(
            id=row.id,
            numero_documento=row.numero_externo,
            codigo_tipo_documento=row.tipo_documento,
        )

    async def obtener_accion_activa(self, id_documento: int) -> Optional[Row]:
        """
        Get the active inspection action of a document.

        The action is reached through an active mark of the document on the
        action's operation, joined to its inspection type. When several
        actions qualify the first row of the DISTINCT query is returned, so
        callers get an arbitrary qualifying action.

        Returns:
            Row with the action columns plus codigo_tipo, nombre_tipo and
            descripcion_tipo, or None.
        """
        accion = OpFiscAccionFiscalizacion
        tipo = OpFiscTipoFiscalizacion

        query = (
            select(
                accion.id,
                accion.fecha_planificada,
                accion.fecha_ejecucion,
                accion.id_solicitante,
                accion.nombre_solicitante,
                accion.descripcion,
                tipo.codigo.label("codigo_tipo"),
                tipo.nombre.label("nombre_tipo"),
                tipo.descripcion.label("descripcion_tipo"),
            )
            .select_from(accion)
            .join(OpFiscOperacion, OpFiscOperacion.id == accion.id_operacion)
            .join(
                OpFiscMarca,
                and_(
                    OpFiscMarca.id_operacion == OpFiscOperacion.id,
                    OpFiscMarca.id_documento == id_documento,
                    OpFiscMarca.activa == SI,
                )
            )
            .join(tipo, tipo.codigo == accion.codigo_tipo_fiscalizacion)
            .where(accion.activa == SI)
            .distinct()
            .limit(1)
        )

        result = await self.db.execute(query)
        return result.first()

    async def obtener_resultados_disponibles(self, codigo_tipo: str) -> List[ResultadoDisponible]:
        """Get active catalog results of an inspection type, ordered by description."""
        result = await self.db.execute(
            select(OpFiscResultado)
            .where(
                OpFiscResultado.codigo_tipo_fiscalizacion == codigo_tipo,
                OpFiscResultado.activa == SI,
            )
            .order_by(OpFiscResultado.descripcion)
        )
        return [
            ResultadoDisponible(
                codigo=r.codigo,
                descripcion=r.descripcion,
                libera_op_aduanera=r.libera_op_aduanera,
                libera_op_transporte=r.libera_op_transporte,
            )
            for r in result.scalars().all()
        ]

    async def obtener_registros_historicos(self, id_accion: int) -> List[RegistroHistorico]:
        """
        Get active registrations of an action ordered by associated document number.

        Results and observations come pre-concatenated from the stored
        aggregation functions.
        """
        registro = OpFiscRegistroFiscalizacion
        resultados = funcion_almacenada(settings.FUNCION_RESULTADOS)
        observaciones = funcion_almacenada(settings.FUNCION_OBSERVACIONES)

        result = await self.db.execute(
            select(
                registro.id,
                registro.fecha_ejecucion,
                registro.fecha_activa,
                resultados(
                    registro.id_accion_fiscalizacion, registro.id, type_=String
                ).label("resultados"),
                observaciones(
                    registro.id_accion_fiscalizacion, registro.id, type_=String
                ).label("observaciones"),
            )
            .where(
                registro.id_accion_fiscalizacion == id_accion,
                registro.activo == SI,
            )
            .order_by(registro.numero_doc_asociado)
        )

        return [
            RegistroHistorico(
                id_registro=row.id,
                fecha_ejecucion=_formatear(row.fecha_ejecucion, FORMATO_FECHA_EJECUCION),
                fecha_sys_registro=_formatear(row.fecha_activa, FORMATO_FECHA_SISTEMA),
                resultados=row.resultados or "",
                observaciones=row.observaciones or "",
            )
            for row in result.all()
        ]

    async def obtener_ultimo_registro(
        self,
        id_accion: int,
        id_documento: int
    ) -> Optional[OpFiscRegistroFiscalizacion]:
        """Get the most recent active registration of an action for one document."""
        result = await self.db.execute(
            select(OpFiscRegistroFiscalizacion)
            .where(
                OpFiscRegistroFiscalizacion.id_accion_fiscalizacion == id_accion,
                OpFiscRegistroFiscalizacion.id_documento_asociado == id_documento,
                OpFiscRegistroFiscalizacion.activo == SI,
            )
            .order_by(OpFiscRegistroFiscalizacion.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def obtener_descripcion_resultado(self, codigo: str) -> Optional[str]:
        """Get the description of an active catalog result."""
        result = await self.db.execute(
            select(OpFiscResultado.descripcion)
            .where(
                OpFiscResultado.codigo == codigo,
                OpFiscResultado.activa == SI,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()


def _formatear(fecha, formato: str) -> str:
    return fecha.strftime(formato) if fecha else ""
