"""Shared Pydantic building blocks for request and response bodies."""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class APIModel(BaseModel):
    """camelCase on the wire, snake_case in Python; readable from ORM rows."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PartialUpdate(APIModel):
    """Update bodies: only fields the client actually sent are applied.

    Fields named in `not_null` back NOT NULL columns, so an explicit `null`
    for them is rejected instead of reaching the database.
    """

    not_null: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _check_sent_fields(self) -> "PartialUpdate":
        if not self.model_fields_set:
            msg = "At least one field must be provided"
            raise ValueError(msg)
        nulled = [
            type(self).model_fields[name].alias or name
            for name in self.not_null
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            msg = f"{', '.join(nulled)} cannot be null"
            raise ValueError(msg)
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, by_alias=False)


class PaginationMeta(APIModel):
    total: int
    pages: int
    page: int
    limit: int


class ApiResponse(APIModel, Generic[T]):
    """Envelope used by the library endpoints."""

    status: str = "success"
    data: T
    message: str | None = None
