# Services module
from fiscalizacion.services.consultas_service import ConsultasService
from fiscalizacion.services.fiscalizacion_service import FiscalizacionService
from fiscalizacion.services.registro_service import RegistroService

__all__ = [
    "ConsultasService",
    "FiscalizacionService",
    "RegistroService",
]
