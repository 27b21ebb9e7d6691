"""
Shared schema base classes.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base schema that speaks camelCase on the wire
    (`coverImage`, `isDefault`, ...) and snake_case in Python.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Generic success envelope."""

    success: bool = True
    message: str
