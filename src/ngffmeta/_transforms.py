"""Coordinate transformation models.

A coordinate transformation maps array indices to physical coordinates (as
specified by the "axes" of a multiscale). Scale and translation transforms carry
either an inline vector (one value per axis) or a `path` to a binary array holding
that vector. Sequences chain any number of non-sequence steps, applied in order.
"""

from typing import TYPE_CHECKING, Annotated, ClassVar, Literal, TypeAlias

from annotated_types import MinLen
from pydantic import Field, model_validator
from typing_extensions import Self

from ._base import _BaseModel

__all__ = [  # noqa: RUF022  (don't resort, this is used for docs ordering)
    "CoordinateTransformation",
    "TransformationStep",
    "IdentityTransformation",
    "ScaleTransformation",
    "TranslationTransformation",
    "SequenceTransformation",
]

Vector: TypeAlias = Annotated[tuple[float, ...], MinLen(1)]


class IdentityTransformation(_BaseModel):
    """The identity transformation; leaves coordinates untouched."""

    type: Literal["identity"] = "identity"

    @property
    def ndim(self) -> int:
        """Identity matches any number of dimensions."""
        return 0


class _VectorTransformation(_BaseModel):
    vector_key: ClassVar[str]
    if TYPE_CHECKING:
        path: str | None

    @property
    def vector(self) -> tuple[float, ...] | None:
        """The inline vector, or None if this transformation is path-backed."""
        return getattr(self, self.vector_key)

    @property
    def ndim(self) -> int:
        """Number of dimensions in this transformation (0 if path-backed)."""
        vector = self.vector
        return 0 if vector is None else len(vector)

    @model_validator(mode="after")
    def _check_vector_or_path(self) -> Self:
        if (self.vector is None) == (self.path is None):
            raise ValueError(
                f"A {self.vector_key} transformation must have exactly one of "
                f"'{self.vector_key}' or 'path'."
            )
        return self


class ScaleTransformation(_VectorTransformation):
    """Maps array indices to physical coordinates via scaling.

    Scale values represent physical size per pixel. For example, a scale of
    `[0.5, 0.5]` means each pixel is 0.5 units wide in physical space.
    """

    vector_key: ClassVar[str] = "scale"

    type: Literal["scale"] = "scale"
    scale: Vector | None = Field(
        default=None,
        description="Scaling factor for each dimension in physical units per pixel",
    )
    path: str | None = Field(
        default=None,
        description="Path to a binary array holding the scale vector",
    )


class TranslationTransformation(_VectorTransformation):
    """Translates the coordinate system origin in physical space."""

    vector_key: ClassVar[str] = "translation"

    type: Literal["translation"] = "translation"
    translation: Vector | None = Field(
        default=None,
        description="Translation offset for each dimension in physical units",
    )
    path: str | None = Field(
        default=None,
        description="Path to a binary array holding the translation vector",
    )


TransformationStep: TypeAlias = Annotated[
    IdentityTransformation | ScaleTransformation | TranslationTransformation,
    Field(discriminator="type"),
]


class SequenceTransformation(_BaseModel):
    """An ordered chain of transformations, applied first to last.

    Sequences never nest: every step is an identity, scale or translation.
    """

    type: Literal["sequence"] = "sequence"
    transformations: tuple[TransformationStep, ...] = Field(
        description="The steps of this sequence, in order of application"
    )

    @property
    def ndim(self) -> int:
        from ._algebra import rank

        return rank(self)


CoordinateTransformation: TypeAlias = Annotated[
    IdentityTransformation
    | ScaleTransformation
    | TranslationTransformation
    | SequenceTransformation,
    Field(discriminator="type"),
]

AnyTransformation: TypeAlias = (
    IdentityTransformation
    | ScaleTransformation
    | TranslationTransformation
    | SequenceTransformation
)
StepTransformation: TypeAlias = (
    IdentityTransformation | ScaleTransformation | TranslationTransformation
)
