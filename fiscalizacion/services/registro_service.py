"""
Registro Service - apply and soft-delete fiscalizacion registrations.

Apply writes, per document:
- one OPFISCREGISTROFISCALIZACI row, id numbered max+1 inside the action
- one OPFISCRESULTADOACCION row per entered result, id from the sequence
- the retention flags on the action

Every write commits on its own. A failure on one document aborts the rest
of the batch but keeps what earlier documents already committed.
"""
import logging
from datetime import datetime
from typing import List

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from fiscalizacion.db_types import (
    SI, NO, FECHA_DESACTIVACION_NULA, IDENTIFICACION_VEHICULO_NO_APLICA,
    OBSERVACION_MAX_LENGTH, to_flag
)
from fiscalizacion.models.fiscalizacion import (
    OpFiscAccionFiscalizacion, OpFiscRegistroFiscalizacion, OpFiscResultadoAccion
)
from fiscalizacion.schemas.fiscalizacion import (
    AplicarRegistroRequest, AplicarRegistroResponse, DocumentoRegistro,
    RegistroFiscalizacionCreado, ResultadoAplicado, EliminarRegistroResponse
)
from fiscalizacion.services.consultas_service import ConsultasService
from fiscalizacion.services.errors import (
    ValidacionError, RecursoNoEncontradoError, ErrorInternoFiscalizacion
)

logger = logging.getLogger(__name__)

# Echoed in the response only; the document table is not updated
ESTADO_DOCUMENTO_VISADO = "VIS"


class RegistroService:
    """Service for applying and deleting fiscalizacion registrations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.consultas = ConsultasService(db)

    # ========================================================================
    # APPLY
    # ========================================================================

    async def aplicar_registro(self, data: AplicarRegistroRequest) -> AplicarRegistroResponse:
        """
        Apply the same results and flags to every document.

        Documents without an active action are skipped and reported in
        registros_omitidos. Any error on a document raises
        ErrorInternoFiscalizacion; documents processed before it stay committed.
        """
        if not data.resultados_ingresados:
            raise ValidacionError(
                "Debe ingresar al menos un resultado en el registro",
            )

        logger.info(
            f"Aplicando registro para {len(data.documentos)} documento(s) "
            f"con {len(data.resultados_ingresados)} resultado(s)"
        )

        fecha_actual = datetime.now()
        registros: List[RegistroFiscalizacionCreado] = []
        omitidos: List[int] = []

        for documento in data.documentos:
            try:
                accion = await self.consultas.obtener_accion_activa(documento.id)
                if accion is None:
                    logger.warning(
                        f"Documento {documento.id} ({documento.numero_documento}) sin acción "
                        f"de fiscalización activa, se omite"
                    )
                    omitidos.append(documento.id)
                    continue

                registros.append(
                    await self._registrar_documento(documento, accion.id, data, fecha_actual)
                )
            except Exception as e:
                logger.exception(f"Error procesando documento {documento.numero_documento}")
                raise ErrorInternoFiscalizacion(
                    f"Error procesando documento {documento.numero_documento}: {e}",
                ) from e

        logger.info(f"Registro aplicado: {len(registros)} creados, {len(omitidos)} omitidos")

        return AplicarRegistroResponse(
            success=True,
            message="Registros de fiscalización aplicados exitosamente",
            registros_creados=len(registros),
            registros=registros,
            registros_omitidos=omitidos,
        )

    async def _registrar_documento(
        self,
        documento: DocumentoRegistro,
        id_accion: int,
        data: AplicarRegistroRequest,
        fecha_actual: datetime
    ) -> RegistroFiscalizacionCreado:
        """Insert the registration, its results and the action flags for one document."""
        op_aduanera = to_flag(data.op_aduanera_retenida)
        op_transporte = to_flag(data.op_transporte_retenida)

        id_registro = await self._siguiente_id_registro(id_accion)
        registro = await self._crear_registro(
            id_registro, id_accion, documento, data, op_aduanera, op_transporte, fecha_actual
        )
        logger.info(
            f"Registro {registro.id} creado para acción {id_accion}, "
            f"documento {documento.numero_documento}"
        )

        resultados = []
        for ingresado in data.resultados_ingresados:
            observacion = ingresado.observacion
            self.db.add(OpFiscResultadoAccion(
                id_registro_fiscalizacion=registro.id,
                id_accion_fiscalizacion=id_accion,
                codigo_resultado=ingresado.codigo_resultado,
                observacion=observacion[:OBSERVACION_MAX_LENGTH] if observacion else None,
                activo=SI,
                fecha_activo=fecha_actual,
                fecha_desactivo=FECHA_DESACTIVACION_NULA,
            ))
            await self.db.commit()

            descripcion = await self.consultas.obtener_descripcion_resultado(ingresado.codigo_resultado)
            resultados.append(ResultadoAplicado(
                codigo=ingresado.codigo_resultado,
                descripcion=descripcion or ingresado.codigo_resultado,
                observacion=observacion or None,
            ))

        await self.db.execute(
            update(OpFiscAccionFiscalizacion)
            .where(OpFiscAccionFiscalizacion.id == id_accion)
            .values(op_aduanera_retenida=op_aduanera, op_transporte_retenida=op_transporte)
        )
        await self.db.commit()
        logger.info(
            f"Acción {id_accion} actualizada: opAduaneraRetenida={op_aduanera}, "
            f"opTransporteRetenida={op_transporte}"
        )

        return RegistroFiscalizacionCreado(
            id=registro.id,
            id_accion_fiscalizacion=id_accion,
            numero_doc_asociado=documento.numero_documento,
            codigo_tipo_documento=documento.codigo_tipo_documento,
            fecha_ejecucion=fecha_actual,
            fecha_registro_sistema=fecha_actual,
            op_aduanera_retenida=op_aduanera,
            op_transporte_retenida=op_transporte,
            estado_documento=ESTADO_DOCUMENTO_VISADO,
            codigo_denuncia=registro.codigo_denuncia,
            resultados=resultados,
        )

    async def _siguiente_id_registro(self, id_accion: int) -> int:
        """
        Next registration id inside an action (max + 1).

        The action row stays locked FOR UPDATE until the commit that inserts
        the registration, so concurrent applies on one action serialize.
        """
        await self.db.execute(
            select(OpFiscAccionFiscalizacion.id)
            .where(OpFiscAccionFiscalizacion.id == id_accion)
            .with_for_update()
        )
        result = await self.db.execute(
            select(func.coalesce(func.max(OpFiscRegistroFiscalizacion.id), 0))
            .where(OpFiscRegistroFiscalizacion.id_accion_fiscalizacion == id_accion)
        )
        return result.scalar_one() + 1

    async def _crear_registro(
        self,
        id_registro: int,
        id_accion: int,
        documento: DocumentoRegistro,
        data: AplicarRegistroRequest,
        op_aduanera: str,
        op_transporte: str,
        fecha_actual: datetime
    ) -> OpFiscRegistroFiscalizacion:
        registro = OpFiscRegistroFiscalizacion(
            id=id_registro,
            id_accion_fiscalizacion=id_accion,
            numero_doc_asociado=documento.numero_documento,
            codigo_tipo_documento=documento.codigo_tipo_documento,
            id_documento_asociado=documento.id,
            identificacion_vehiculo=IDENTIFICACION_VEHICULO_NO_APLICA,
            fecha_ejecucion=fecha_actual,
            op_aduanera_retenida=op_aduanera,
            op_transporte_retenida=op_transporte,
            id_ejecutante=data.id_ejecutante,
            nombre_ejecutante=data.nombre_ejecutante,
            activo=SI,
            fecha_activa=fecha_actual,
            fecha_desactiva=FECHA_DESACTIVACION_NULA,
            fecha_modificacion=fecha_actual,
            codigo_denuncia=data.codigo_denuncia or None,
            total_bultos=None,
        )
        self.db.add(registro)
        # Releases the lock taken in _siguiente_id_registro
        await self.db.commit()
        return registro

    # ========================================================================
    # DELETE
    # ========================================================================

    async def eliminar_registro(self, id_registro: int, id_accion: int) -> EliminarRegistroResponse:
        """
        Soft-delete an active registration by its composite key.

        Sets ACTIVO='N' and the real deactivation date; result rows are left
        untouched. Raises RecursoNoEncontradoError when the registration is
        missing, belongs to another action or is already inactive.
        """
        logger.info(f"Eliminando registro {id_registro} de acción {id_accion}")

        try:
            result = await self.db.execute(
                select(OpFiscRegistroFiscalizacion).where(
                    OpFiscRegistroFiscalizacion.id == id_registro,
                    OpFiscRegistroFiscalizacion.id_accion_fiscalizacion == id_accion,
                    OpFiscRegistroFiscalizacion.activo == SI,
                )
            )
            registro = result.scalar_one_or_none()

            if registro is None:
                logger.warning(f"Registro {id_registro} de acción {id_accion} no existe o ya fue eliminado")
                raise RecursoNoEncontradoError(
                    f"El registro de fiscalización con ID {id_registro} y acción {id_accion} "
                    f"no existe o ya fue eliminado",
                )

            numero_doc_asociado = registro.numero_doc_asociado
            fecha_eliminacion = datetime.now()

            update_result = await self.db.execute(
                update(OpFiscRegistroFiscalizacion)
                .where(
                    OpFiscRegistroFiscalizacion.id == id_registro,
                    OpFiscRegistroFiscalizacion.id_accion_fiscalizacion == id_accion,
                    OpFiscRegistroFiscalizacion.activo == SI,
                )
                .values(activo=NO, fecha_desactiva=fecha_eliminacion)
                .execution_options(synchronize_session=False)
            )

            if update_result.rowcount == 0:
                raise RecursoNoEncontradoError(
                    f"No se pudo eliminar el registro {id_registro} (acción {id_accion}). "
                    f"Puede que ya esté eliminado.",
                )

            await self.db.commit()

        except RecursoNoEncontradoError:
            raise
        except Exception as e:
            logger.exception(f"Error al eliminar registro {id_registro} de acción {id_accion}")
            raise ErrorInternoFiscalizacion(
                f"Error al eliminar el registro de fiscalización: {e}",
            ) from e

        logger.info(f"Registro {id_registro} de acción {id_accion} eliminado")

        return EliminarRegistroResponse(
            success=True,
            message="Registro de fiscalización eliminado exitosamente",
            id_registro_eliminado=id_registro,
            fecha_eliminacion=fecha_eliminacion,
            id_accion_fiscalizacion=id_accion,
            numero_doc_asociado=numero_doc_asociado,
        )
