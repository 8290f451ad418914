# Models module
from fiscalizacion.models.fiscalizacion import (
    DocDocumentoBase,
    OpFiscOperacion,
    OpFiscMarca,
    OpFiscTipoFiscalizacion,
    OpFiscAccionFiscalizacion,
    OpFiscResultado,
    OpFiscRegistroFiscalizacion,
    OpFiscResultadoAccion,
)

__all__ = [
    "DocDocumentoBase",
    "OpFiscOperacion",
    "OpFiscMarca",
    "OpFiscTipoFiscalizacion",
    "OpFiscAccionFiscalizacion",
    "OpFiscResultado",
    "OpFiscRegistroFiscalizacion",
    "OpFiscResultadoAccion",
]
