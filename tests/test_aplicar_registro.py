import pytest
from sqlalchemy import select

from fiscalizacion.db_types import FECHA_DESACTIVACION_NULA
from fiscalizacion.models import (
    OpFiscAccionFiscalizacion, OpFiscRegistroFiscalizacion, OpFiscResultadoAccion
)
from fiscalizacion.schemas.fiscalizacion import AplicarRegistroRequest, DocumentoRegistro
from fiscalizacion.services.errors import ValidacionError
from fiscalizacion.services.registro_service import RegistroService
from tests.conftest import ACCION_COURIER, ACCION_SOTO

URL = "/api/fiscalizacion/aplicar-registro"


def payload(documentos=None, resultados=None, **extra):
    body = {
        "documentos": documentos or [
            {"id": 101, "numeroDocumento": "GT-0001", "codigoTipoDocumento": "GTIME"},
        ],
        "resultadosIngresados": resultados if resultados is not None else [
            {"codigoResultado": "CONF", "observacion": "Todo en orden"},
        ],
        "idEjecutante": 55,
        "nombreEjecutante": "Pedro Rojas",
    }
    body.update(extra)
    return body


def registros_de(id_accion):
    return (
        select(OpFiscRegistroFiscalizacion)
        .where(OpFiscRegistroFiscalizacion.id_accion_fiscalizacion == id_accion)
        .order_by(OpFiscRegistroFiscalizacion.id)
    )


def resultados_de(id_accion, id_registro):
    return (
        select(OpFiscResultadoAccion)
        .where(
            OpFiscResultadoAccion.id_accion_fiscalizacion == id_accion,
            OpFiscResultadoAccion.id_registro_fiscalizacion == id_registro,
        )
        .order_by(OpFiscResultadoAccion.id)
    )


async def test_aplicar_creates_registration_and_results(client, fetch_all):
    response = await client.post(URL, json=payload(
        resultados=[
            {"codigoResultado": "CONF", "observacion": "Todo en orden"},
            {"codigoResultado": "XYZ"},
        ],
        codigoDenuncia="DEN-77",
        opAduaneraRetenida=True,
    ))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Registros de fiscalización aplicados exitosamente"
    assert body["registrosCreados"] == 1
    assert body["registrosOmitidos"] == []

    creado = body["registros"][0]
    # Inactive registration 2 still counts for numbering
    assert creado["id"] == 3
    assert creado["idAccionFiscalizacion"] == ACCION_COURIER
    assert creado["numeroDocAsociado"] == "GT-0001"
    assert creado["codigoTipoDocumento"] == "GTIME"
    assert creado["opAduaneraRetenida"] == "S"
    assert creado["opTransporteRetenida"] == "N"
    assert creado["estadoDocumento"] == "VIS"
    assert creado["codigoDenuncia"] == "DEN-77"
    assert creado["resultados"] == [
        {"codigo": "CONF", "descripcion": "Conforme", "observacion": "Todo en orden"},
        # Unknown code falls back to itself
        {"codigo": "XYZ", "descripcion": "XYZ", "observacion": None},
    ]

    registros = await fetch_all(registros_de(ACCION_COURIER))
    nuevo = registros[-1]
    assert nuevo.id == 3
    assert nuevo.id_documento_asociado == 101
    assert nuevo.identificacion_vehiculo == " "
    assert nuevo.activo == "S"
    assert nuevo.fecha_desactiva == FECHA_DESACTIVACION_NULA
    assert nuevo.fecha_modificacion == nuevo.fecha_activa
    assert nuevo.id_ejecutante == 55
    assert nuevo.nombre_ejecutante == "Pedro Rojas"
    assert nuevo.total_bultos is None

    resultados = await fetch_all(resultados_de(ACCION_COURIER, 3))
    assert [r.codigo_resultado for r in resultados] == ["CONF", "XYZ"]
    assert all(r.activo == "S" for r in resultados)
    assert all(r.fecha_desactivo == FECHA_DESACTIVACION_NULA for r in resultados)
    assert resultados[0].id != resultados[1].id

    acciones = await fetch_all(
        select(OpFiscAccionFiscalizacion).where(OpFiscAccionFiscalizacion.id == ACCION_COURIER)
    )
    assert acciones[0].op_aduanera_retenida == "S"
    assert acciones[0].op_transporte_retenida == "N"


async def test_aplicar_numbers_registrations_per_action(client):
    response = await client.post(URL, json=payload(documentos=[
        {"id": 101, "numeroDocumento": "GT-0001", "codigoTipoDocumento": "GTIME"},
        {"id": 102, "numeroDocumento": "GT-0002", "codigoTipoDocumento": "GTIME"},
        {"id": 104, "numeroDocumento": "GT-0004", "codigoTipoDocumento": "GTIME"},
    ]))

    assert response.status_code == 201
    ids = [(r["idAccionFiscalizacion"], r["id"]) for r in response.json()["registros"]]
    assert ids == [(ACCION_COURIER, 3), (ACCION_COURIER, 4), (ACCION_SOTO, 1)]


async def test_aplicar_truncates_long_observation(client, fetch_all):
    observacion = "x" * 300

    response = await client.post(URL, json=payload(
        resultados=[{"codigoResultado": "CERT", "observacion": observacion}],
    ))

    assert response.status_code == 201
    # Echoed as received
    assert response.json()["registros"][0]["resultados"][0]["observacion"] == observacion

    resultados = await fetch_all(resultados_de(ACCION_COURIER, 3))
    assert len(resultados[0].observacion) == 255


async def test_aplicar_rejects_empty_results_before_writing(client, fetch_all):
    antes = await fetch_all(select(OpFiscRegistroFiscalizacion))

    response = await client.post(URL, json=payload(resultados=[]))

    assert response.status_code == 400
    assert response.json()["detail"][0]["campo"] == "resultadosIngresados"
    assert len(await fetch_all(select(OpFiscRegistroFiscalizacion))) == len(antes)


async def test_aplicar_service_rejects_empty_results(session_factory, seeded):
    data = AplicarRegistroRequest.model_construct(
        documentos=[DocumentoRegistro(id=101, numero_documento="GT-0001", codigo_tipo_documento="GTIME")],
        resultados_ingresados=[],
        codigo_denuncia=None,
        id_ejecutante=55,
        nombre_ejecutante="Pedro Rojas",
        op_aduanera_retenida=False,
        op_transporte_retenida=False,
    )

    async with session_factory() as session:
        with pytest.raises(ValidacionError) as exc_info:
            await RegistroService(session).aplicar_registro(data)

    assert exc_info.value.message == "Debe ingresar al menos un resultado en el registro"


async def test_aplicar_reports_documents_without_action(client, fetch_all):
    response = await client.post(URL, json=payload(documentos=[
        {"id": 103, "numeroDocumento": "GT-0003", "codigoTipoDocumento": "GTIME"},
        {"id": 101, "numeroDocumento": "GT-0001", "codigoTipoDocumento": "GTIME"},
    ]))

    assert response.status_code == 201
    body = response.json()
    assert body["registrosCreados"] == 1
    assert body["registrosOmitidos"] == [103]
    assert body["registros"][0]["numeroDocAsociado"] == "GT-0001"


async def test_aplicar_empty_complaint_code_is_stored_as_null(client, fetch_all):
    response = await client.post(URL, json=payload(codigoDenuncia=""))

    assert response.status_code == 201
    assert response.json()["registros"][0]["codigoDenuncia"] is None
    registros = await fetch_all(registros_de(ACCION_COURIER))
    assert registros[-1].codigo_denuncia is None


async def test_aplicar_failure_keeps_previous_documents(client, fetch_all, monkeypatch):
    original = RegistroService._crear_registro
    llamadas = {"n": 0}

    async def falla_en_segundo(self, *args, **kwargs):
        llamadas["n"] += 1
        if llamadas["n"] == 2:
            raise RuntimeError("ORA-00001: unique constraint violated")
        return await original(self, *args, **kwargs)

    monkeypatch.setattr(RegistroService, "_crear_registro", falla_en_segundo)

    response = await client.post(URL, json=payload(documentos=[
        {"id": 101, "numeroDocumento": "GT-0001", "codigoTipoDocumento": "GTIME"},
        {"id": 104, "numeroDocumento": "GT-0004", "codigoTipoDocumento": "GTIME"},
    ]))

    assert response.status_code == 500
    assert response.json()["detail"] == (
        "Error procesando documento GT-0004: ORA-00001: unique constraint violated"
    )

    # First document stays committed
    registros = await fetch_all(registros_de(ACCION_COURIER))
    assert [r.id for r in registros] == [1, 2, 3]
    assert len(await fetch_all(resultados_de(ACCION_COURIER, 3))) == 1
    assert await fetch_all(registros_de(ACCION_SOTO)) == []


async def test_aplicar_then_preparar_returns_new_defaults(client):
    response = await client.post(URL, json=payload(
        codigoDenuncia="DEN-99",
        opAduaneraRetenida=False,
        opTransporteRetenida=True,
    ))
    assert response.status_code == 201

    response = await client.post(
        "/api/fiscalizacion/preparar-registro-individual",
        json={"idGuia": 101},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["datosIniciales"] == {
        "numeroDenuncia": "DEN-99",
        "opAduaneraRetenida": "N",
        "opTransporteRetenida": "S",
    }
    assert sorted(r["idRegistro"] for r in body["registrosHistoricos"]) == [1, 3]


async def test_aplicar_validation_error_shape(client):
    response = await client.post(URL, json={"documentos": [], "resultadosIngresados": []})

    assert response.status_code == 400
    campos = {e["campo"] for e in response.json()["detail"]}
    assert {"documentos", "resultadosIngresados", "idEjecutante", "nombreEjecutante"} <= campos
