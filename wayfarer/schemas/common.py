"""
Wayfarer Backend - Shared Schema Building Blocks
==================================================

What:  Base model and small shared response shapes.
Why:   The browser client speaks camelCase JSON while Python code uses
       snake_case. Every schema derives from CamelModel so aliases are
       generated once instead of per field.
How:   alias_generator=to_camel; populate_by_name lets services construct
       models with snake_case keywords. FastAPI serializes response models
       by alias, so clients only ever see camelCase.
"""

from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _stringify_object_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


# Document ids arrive from PyMongo as ObjectId and leave the API as hex strings
ObjectIdStr = Annotated[str, BeforeValidator(_stringify_object_id)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ErrorResponse(CamelModel):
    """
    Standard error response format for all API errors.

    Example:
        {
            "error": "Forbidden - You can only edit your own spots",
            "code": "forbidden",
            "requestId": "a1b2c3d4"
        }
    """
    error: str = Field(description="Human-readable error message")
    code: str = Field(description="Machine-readable error code")
    details: dict | None = Field(default=None, description="Additional error context")
    request_id: str | None = Field(default=None, description="Request ID for debugging")
