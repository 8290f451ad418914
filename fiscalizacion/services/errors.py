"""Exceptions raised by the fiscalizacion services and mapped to HTTP status codes by the endpoints."""


class FiscalizacionError(Exception):
    """Base exception for fiscalizacion workflows."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidacionError(FiscalizacionError):
    """Invalid input detected by a workflow."""
    status_code = 400


class RecursoNoEncontradoError(FiscalizacionError):
    """Guide, action or registration not found."""
    status_code = 404


class ErrorInternoFiscalizacion(FiscalizacionError):
    """Unexpected failure while processing; wraps the original message."""
    status_code = 500
