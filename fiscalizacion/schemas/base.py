"""
Base Schema Classes for Pydantic Models

The legacy front end speaks camelCase JSON while the Python side uses
snake_case; every schema inherits the alias generator from these bases.

RULE: All response schemas MUST inherit from BaseResponseSchema and all request
bodies from BaseRequestSchema.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas.

    Features:
    - camelCase aliases on the wire (``numero_documento`` -> ``numeroDocumento``)
    - from_attributes for building from ORM rows
    - population by field name inside services

    Usage:
        class GuiaInfo(BaseResponseSchema):
            id: int
            numero_documento: str
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        # Allow population by field name or alias
        populate_by_name=True,
    )


class BaseRequestSchema(BaseModel):
    """
    Base class for request bodies.

    Accepts camelCase keys from the front end; unknown keys are ignored
    (forward compatibility).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )
