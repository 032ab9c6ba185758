"""
Request validation against pydantic schemas.

Validators never raise for bad input. They return either Valid(value)
or a 400 Terminal listing every field violation:

    {"field": "slug", "message": "String should match pattern '^[a-z0-9-]+$'"}

Query strings arrive as text, so numeric fields are coerced ("2" -> 2)
by pydantic's lax mode. Non-coercible values fail validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Generic, Literal, Mapping, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from one_engine.api.pagination import PaginationParams
from one_engine.api.responses import ErrorCodes, Terminal, errors

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[SchemaT]):
    """Successfully validated, typed and defaulted input."""

    value: SchemaT


def field_errors(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten a pydantic ValidationError into field path + message pairs."""
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def _validate(
    raw: Any,
    schema: type[SchemaT],
    message: str,
) -> Valid[SchemaT] | Terminal:
    try:
        return Valid(schema.model_validate(raw))
    except ValidationError as e:
        return errors.bad_request(message, field_errors(e))


def validate_query(request: Request, schema: type[SchemaT]) -> Valid[SchemaT] | Terminal:
    """Validate URL query parameters. Repeated keys keep their last value."""
    return _validate(dict(request.query_params), schema, "Invalid query parameters")


async def validate_body(request: Request, schema: type[SchemaT]) -> Valid[SchemaT] | Terminal:
    """Parse the JSON body, then validate it."""
    try:
        raw = await request.json()
    except ValueError:
        return errors.bad_request("Invalid JSON body", code=ErrorCodes.INVALID_INPUT)

    return _validate(raw, schema, "Validation failed")


def validate_params(params: Mapping[str, Any], schema: type[SchemaT]) -> Valid[SchemaT] | Terminal:
    """Validate path parameters."""
    return _validate(dict(params), schema, "Invalid route parameters")


# =============================================================================
# Common schemas
# =============================================================================


class ApiModel(BaseModel):
    """Request schema base: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


ActiveFlag = Literal["true", "false"]

Amount = Annotated[float, Field(gt=0)]


def parse_flag(value: ActiveFlag | None) -> bool | None:
    """Map a "true"/"false" query flag to bool (None when absent)."""
    if value is None:
        return None
    return value == "true"


class PaginationQuery(ApiModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] = "desc"

    def to_params(self) -> PaginationParams:
        return PaginationParams(
            page=self.page,
            limit=self.limit,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
        )
