from typing import Any, ClassVar

from pydantic import (
    BaseModel,
    ConfigDict,
    SerializerFunctionWrapHandler,
    model_serializer,
)

__all__ = ["_BaseModel", "_OpenModel"]


class _BaseModel(BaseModel):
    """Immutable model: unknown keys are dropped, and aliases are used on output.

    Fields with a JSON alias (e.g. `label-value`) can be populated by either name.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        frozen=True,
        validate_default=True,
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
    )


class _OpenModel(_BaseModel):
    """A `_BaseModel` that keeps unknown keys.

    Unknown keys are free-form data: an explicit `null` is kept on output even
    when dumping with `exclude_none=True`, which only drops unset known fields.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    @model_serializer(mode="wrap")
    def _keep_null_extras(
        self, handler: SerializerFunctionWrapHandler
    ) -> dict[str, Any]:
        data = handler(self)
        for key, value in (self.model_extra or {}).items():
            if value is None:
                data.setdefault(key, None)
        return data
