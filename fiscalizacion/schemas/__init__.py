# Schemas module
from fiscalizacion.schemas.fiscalizacion import (
    GuiaInfo,
    TipoFiscalizacion,
    ResultadoDisponible,
    DatosIniciales,
    PrepararRegistroRequest,
    PrepararRegistroResponse,
    PrepararRegistroIndividualRequest,
    PrepararRegistroIndividualResponse,
    AccionFiscalizacion,
    RegistroHistorico,
    DocumentoRegistro,
    ResultadoFiscalizacion,
    AplicarRegistroRequest,
    AplicarRegistroResponse,
    ResultadoAplicado,
    RegistroFiscalizacionCreado,
    EliminarRegistroResponse,
)
