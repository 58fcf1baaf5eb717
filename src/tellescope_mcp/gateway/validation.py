"""Argument validation for the two fetch operations.

Raw tool arguments are parsed into one of two pydantic models so the
dispatcher never inspects an untyped argument bag.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .backend import PageQuery
from .errors import ValidationError
from .naming import Operation


class FetchOneArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    operation: ClassVar[Operation] = Operation.FETCH_ONE

    id: StrictStr = Field(description="Resource ID to fetch")


_OPTIONAL_PAGE_FIELDS = frozenset({"filter", "limit", "cursor", "lastId"})


class FetchPageArgs(BaseModel):
    """Page query arguments. Unknown fields are kept and forwarded to the backend."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    operation: ClassVar[Operation] = Operation.FETCH_PAGE

    filter: dict[str, Any] | None = Field(default=None, description="Filter criteria")
    limit: StrictInt | None = Field(default=None, description="Maximum number of items to return")
    cursor: StrictStr | None = Field(
        default=None,
        validation_alias=AliasChoices("cursor", "lastId"),
        description="ID of the last item from the previous page",
    )

    @field_validator("limit")
    @classmethod
    def _positive_limit(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = {k: v for k, v in data.items() if not (k in _OPTIONAL_PAGE_FIELDS and v is None)}
            if "cursor" in data:
                data.pop("lastId", None)
        return data

    def to_query(self) -> PageQuery:
        query: dict[str, Any] = {}
        if self.filter is not None:
            query["filter"] = self.filter
        if self.limit is not None:
            query["limit"] = self.limit
        if self.cursor is not None:
            query["cursor"] = self.cursor
        query.update(self.model_extra or {})
        return query  # type: ignore[return-value]


FetchArgs = FetchOneArgs | FetchPageArgs

_MODELS: dict[Operation, type[FetchOneArgs] | type[FetchPageArgs]] = {
    Operation.FETCH_ONE: FetchOneArgs,
    Operation.FETCH_PAGE: FetchPageArgs,
}


def _problems(exc: PydanticValidationError) -> list[tuple[str, str]]:
    problems: list[tuple[str, str]] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        problems.append((field, error["msg"]))
    return problems


def validate_arguments(tool_name: str, operation: Operation, arguments: Any) -> FetchArgs:
    """Parse raw call arguments for ``operation``.

    ``None`` is treated as an empty mapping.

    Raises:
        ValidationError: naming each missing or invalid field.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ValidationError(tool_name, [("", f"arguments must be an object, got {type(arguments).__name__}")])

    model = _MODELS[operation]
    try:
        return model.model_validate(dict(arguments))
    except PydanticValidationError as exc:
        raise ValidationError(tool_name, _problems(exc)) from exc
