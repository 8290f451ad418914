import os
from datetime import datetime

# Settings are read at import time; the real engine is never used by the tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fiscalizacion.config import settings
from fiscalizacion.database import create_engine_for, get_db, init_db
from fiscalizacion.db_types import SI, NO, FECHA_DESACTIVACION_NULA
from fiscalizacion.main import create_app
from fiscalizacion.models import (
    DocDocumentoBase, OpFiscOperacion, OpFiscMarca, OpFiscTipoFiscalizacion,
    OpFiscAccionFiscalizacion, OpFiscResultado, OpFiscRegistroFiscalizacion,
    OpFiscResultadoAccion
)

ACCION_COURIER = 10
ACCION_SOTO = 20
FECHA_ACTIVA_REGISTRO = datetime(2025, 11, 14, 10, 30, 45)
FECHA_EJECUCION_REGISTRO = datetime(2025, 11, 14, 9, 0)


def resultados_udf(id_accion, id_registro):
    return f"R{id_accion}.{id_registro}"


def observaciones_udf(id_accion, id_registro):
    return None


@pytest.fixture
async def engine(tmp_path, monkeypatch):
    """Per-test SQLite database with the stored aggregation functions registered."""
    monkeypatch.setattr(settings, "FUNCION_RESULTADOS", "gtime_get_resultado")
    monkeypatch.setattr(settings, "FUNCION_OBSERVACIONES", "gtime_get_observacion")

    test_engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path}/fiscalizacion.db")

    @event.listens_for(test_engine.sync_engine, "connect")
    def _registrar_funciones(dbapi_connection, connection_record):
        dbapi_connection.create_function("gtime_get_resultado", 2, resultados_udf)
        dbapi_connection.create_function("gtime_get_observacion", 2, observaciones_udf)

    await init_db(test_engine)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def seeded(session_factory):
    """
    Guides 101/102 share action 10 (Ana Pérez, type COUR), guide 104 has
    action 20 (Luis Soto, type PORT), guide 103 only has an inactive mark.
    Action 10 already holds an active registration 1 for guide 101 and an
    inactive registration 2.
    """
    async with session_factory() as session:
        session.add_all([
            DocDocumentoBase(id=101, numero_externo="GT-0001", tipo_documento="GTIME", activo=SI),
            DocDocumentoBase(id=102, numero_externo="GT-0002", tipo_documento="GTIME", activo=SI),
            DocDocumentoBase(id=103, numero_externo="GT-0003", tipo_documento="GTIME", activo=SI),
            DocDocumentoBase(id=104, numero_externo="GT-0004", tipo_documento="GTIME", activo=SI),
            OpFiscTipoFiscalizacion(codigo="COUR", nombre="Fiscalización Courier",
                                    descripcion="Revisión de envíos courier", activa=SI),
            OpFiscTipoFiscalizacion(codigo="PORT", nombre="Fiscalización Puerto",
                                    descripcion="Inspección de carga portuaria", activa=SI),
            OpFiscOperacion(id=1, descripcion="Operativo courier", activa=SI),
            OpFiscOperacion(id=2, descripcion="Operativo puerto", activa=SI),
        ])
        await session.flush()

        session.add_all([
            OpFiscMarca(id=1, id_documento=101, id_operacion=1, activa=SI),
            OpFiscMarca(id=2, id_documento=102, id_operacion=1, activa=SI),
            OpFiscMarca(id=3, id_documento=103, id_operacion=2, activa=NO),
            OpFiscMarca(id=4, id_documento=104, id_operacion=2, activa=SI),
            OpFiscAccionFiscalizacion(
                id=ACCION_COURIER, id_operacion=1, codigo_tipo_fiscalizacion="COUR",
                fecha_planificada=datetime(2025, 11, 10), id_solicitante=7,
                nombre_solicitante="Ana Pérez", descripcion="Revisión documental",
                op_aduanera_retenida=NO, op_transporte_retenida=NO,
                activa=SI, fecha_activa=datetime(2025, 11, 1),
                fecha_desactiva=FECHA_DESACTIVACION_NULA,
            ),
            OpFiscAccionFiscalizacion(
                id=ACCION_SOTO, id_operacion=2, codigo_tipo_fiscalizacion="PORT",
                id_solicitante=8, nombre_solicitante="Luis Soto",
                op_aduanera_retenida=NO, op_transporte_retenida=NO,
                activa=SI, fecha_activa=datetime(2025, 11, 1),
                fecha_desactiva=FECHA_DESACTIVACION_NULA,
            ),
            OpFiscResultado(codigo="CONF", descripcion="Conforme", codigo_tipo_fiscalizacion="COUR",
                            libera_op_aduanera=SI, libera_op_transporte=SI,
                            activa=SI, fecha_activa=datetime(2025, 1, 1)),
            OpFiscResultado(codigo="CERT", descripcion="Certificado presentado",
                            codigo_tipo_fiscalizacion="COUR",
                            libera_op_aduanera=SI, libera_op_transporte=NO,
                            activa=SI, fecha_activa=datetime(2025, 1, 1)),
            OpFiscResultado(codigo="OLD", descripcion="Anulado", codigo_tipo_fiscalizacion="COUR",
                            libera_op_aduanera=NO, libera_op_transporte=NO,
                            activa=NO, fecha_activa=datetime(2020, 1, 1)),
            OpFiscResultado(codigo="PINS", descripcion="Inspección portuaria", codigo_tipo_fiscalizacion="PORT",
                            libera_op_aduanera=NO, libera_op_transporte=NO,
                            activa=SI, fecha_activa=datetime(2025, 1, 1)),
        ])
        await session.flush()

        for id_registro, activo in ((1, SI), (2, NO)):
            session.add(OpFiscRegistroFiscalizacion(
                id=id_registro, id_accion_fiscalizacion=ACCION_COURIER,
                numero_doc_asociado="GT-0001", codigo_tipo_documento="GTIME",
                id_documento_asociado=101, identificacion_vehiculo=" ",
                fecha_ejecucion=FECHA_EJECUCION_REGISTRO,
                op_aduanera_retenida=SI, op_transporte_retenida=NO,
                id_ejecutante=7, nombre_ejecutante="Ana Pérez",
                activo=activo, fecha_activa=FECHA_ACTIVA_REGISTRO,
                fecha_desactiva=FECHA_DESACTIVACION_NULA, codigo_denuncia="DEN-1",
            ))
        await session.flush()

        session.add(OpFiscResultadoAccion(
            id_registro_fiscalizacion=1, id_accion_fiscalizacion=ACCION_COURIER,
            codigo_resultado="CONF", observacion="Sin novedad", activo=SI,
            fecha_activo=FECHA_ACTIVA_REGISTRO, fecha_desactivo=FECHA_DESACTIVACION_NULA,
        ))
        await session.commit()


@pytest.fixture
def app(session_factory, seeded):
    application = create_app()

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = _get_test_db
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fetch_all(session_factory, seeded):
    """Run a select in a fresh session and return its scalars, to inspect persisted state."""
    async def _fetch(statement):
        async with session_factory() as session:
            result = await session.execute(statement)
            return result.scalars().all()
    return _fetch
