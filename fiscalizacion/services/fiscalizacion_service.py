"""
Fiscalizacion Service - preparation of inspection registrations.

Builds the payload of the registration screen for:
- Several guides at once (all guides must have an active action)
- A single guide (a guide without an active action is not an error)
"""
import logging
from collections import Counter
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from fiscalizacion.db_types import NO
from fiscalizacion.schemas.fiscalizacion import (
    PrepararRegistroResponse, PrepararRegistroIndividualResponse,
    TipoFiscalizacion, AccionFiscalizacion, DatosIniciales
)
from fiscalizacion.services.consultas_service import ConsultasService
from fiscalizacion.services.errors import RecursoNoEncontradoError

logger = logging.getLogger(__name__)

SEPARADOR_SOLICITANTES = " / "


def consolidar_solicitantes(nombres: List[Optional[str]]) -> str:
    """
    Join requester names for display, each one prefixed by " / ".

    Names that appear more than once are listed first (once each), then the
    names that appear exactly once. Missing names are ignored.

        >>> consolidar_solicitantes(["A", "A", "B"])
        ' / A / B'
    """
    conteo = Counter(n for n in nombres if n is not None)
    if not conteo:
        return ""

    repetidos = [n for n, veces in conteo.items() if veces > 1]
    unicos = [n for n, veces in conteo.items() if veces == 1]
    return "".join(SEPARADOR_SOLICITANTES + n for n in repetidos + unicos)


class FiscalizacionService:
    """Service for preparing fiscalizacion registrations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.consultas = ConsultasService(db)

    async def _obtener_guia(self, id_guia: int):
        guia = await self.consultas.obtener_info_guia(id_guia)
        if guia is None:
            raise RecursoNoEncontradoError(
                f"Guía con ID {id_guia} no encontrada",
            )
        return guia

    async def preparar_registro_multiple(self, guias_ids: List[int]) -> PrepararRegistroResponse:
        """
        Prepare a registration for several guides.

        Fails with RecursoNoEncontradoError when any guide or any guide's
        active action is missing. The inspection type of the first guide is
        used for the whole batch and its catalog is fetched once.
        """
        logger.info(f"Preparando registro múltiple para guías {guias_ids}")

        guias = []
        solicitantes = []
        tipo: Optional[TipoFiscalizacion] = None

        for id_guia in guias_ids:
            guias.append(await self._obtener_guia(id_guia))

            accion = await self.consultas.obtener_accion_activa(id_guia)
            if accion is None:
                raise RecursoNoEncontradoError(
                    f"No se encontró acción de fiscalización activa para guía {id_guia}",
                )

            if tipo is None:
                tipo = TipoFiscalizacion(codigo=accion.codigo_tipo, nombre=accion.nombre_tipo)

            solicitantes.append(accion.nombre_solicitante)

        resultados = await self.consultas.obtener_resultados_disponibles(tipo.codigo)

        logger.info(
            f"Registro múltiple preparado: {len(guias)} guías, "
            f"tipo {tipo.codigo}, {len(resultados)} resultados disponibles"
        )

        return PrepararRegistroResponse(
            guias=guias,
            tipo_fiscalizacion=tipo,
            solicitantes=consolidar_solicitantes(solicitantes),
            resultados_disponibles=resultados,
            datos_iniciales=DatosIniciales(),
        )

    async def preparar_registro_individual(self, id_guia: int) -> PrepararRegistroIndividualResponse:
        """
        Prepare a registration for one guide.

        Without an active action the response carries null action data and
        empty lists. Otherwise it includes the catalog, the action's
        historical registrations and form defaults taken from the last
        registration of this guide.
        """
        logger.info(f"Preparando registro individual para guía {id_guia}")

        guia = await self._obtener_guia(id_guia)

        accion = await self.consultas.obtener_accion_activa(id_guia)
        if accion is None:
            logger.info(f"Guía {id_guia} sin acción de fiscalización activa")
            return PrepararRegistroIndividualResponse(
                guia=guia,
                datos_iniciales=DatosIniciales(),
            )

        resultados = await self.consultas.obtener_resultados_disponibles(accion.codigo_tipo)
        historicos = await self.consultas.obtener_registros_historicos(accion.id)

        ultimo = await self.consultas.obtener_ultimo_registro(accion.id, id_guia)
        if ultimo is not None:
            datos_iniciales = DatosIniciales(
                numero_denuncia=ultimo.codigo_denuncia or "",
                op_aduanera_retenida=ultimo.op_aduanera_retenida or NO,
                op_transporte_retenida=ultimo.op_transporte_retenida or NO,
            )
        else:
            datos_iniciales = DatosIniciales()

        logger.info(
            f"Registro individual preparado: guía {id_guia}, acción {accion.id}, "
            f"{len(historicos)} registros históricos"
        )

        return PrepararRegistroIndividualResponse(
            guia=guia,
            accion_fiscalizacion=AccionFiscalizacion(
                id=accion.id,
                id_solicitante=accion.id_solicitante,
                nombre_solicitante=accion.nombre_solicitante,
                descripcion=accion.descripcion,
                fecha_planificada=accion.fecha_planificada,
                fecha_ejecucion=accion.fecha_ejecucion,
            ),
            tipo_fiscalizacion=TipoFiscalizacion(
                codigo=accion.codigo_tipo,
                nombre=accion.nombre_tipo,
                descripcion=accion.descripcion_tipo,
            ),
            solicitante=consolidar_solicitantes([accion.nombre_solicitante]),
            resultados_disponibles=resultados,
            registros_historicos=historicos,
            datos_iniciales=datos_iniciales,
        )
