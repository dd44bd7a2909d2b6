from typing import Any

from pydantic import Field

from ._algebra import chain, effective_scale
from ._axis import Axis
from ._base import _BaseModel
from ._transforms import (
    CoordinateTransformation,
    ScaleTransformation,
    SequenceTransformation,
    TranslationTransformation,
)

__all__ = [  # noqa: RUF022  (don't resort, this is used for docs ordering)
    "Multiscale",
    "Dataset",
]


class Dataset(_BaseModel):
    """One level of a resolution pyramid: an array and its placement in space."""

    path: str = Field(description="Array path, relative to the multiscale group")
    coordinateTransformations: tuple[CoordinateTransformation, ...] = Field(
        description="Maps array indices to physical coordinates, in list order"
    )

    def _first(self, cls: type) -> Any:
        transforms = self.coordinateTransformations
        return next((t for t in transforms if isinstance(t, cls)), None)

    @property
    def scale_transform(self) -> ScaleTransformation | None:
        """The first scale in the (unflattened) list, if any."""
        return self._first(ScaleTransformation)

    @property
    def translation_transform(self) -> TranslationTransformation | None:
        """The first translation in the (unflattened) list, if any."""
        return self._first(TranslationTransformation)

    @property
    def transform(self) -> SequenceTransformation:
        """All transformations of this level as one flat sequence.

        Raises `IncompatibleRank` if they disagree in dimensionality.
        """
        return chain(self.coordinateTransformations)

    @property
    def effective_scale(self) -> tuple[float, ...] | None:
        """Overall per-axis scale of this level, or None if it cannot be known."""
        return effective_scale(self.transform)


class Multiscale(_BaseModel):
    """An image stored at one or more resolutions, finest first."""

    name: str | None = None
    axes: tuple[Axis, ...]
    coordinateTransformations: tuple[CoordinateTransformation, ...] | None = Field(
        default=None,
        description="Applied after the transformations of every dataset",
    )
    datasets: tuple[Dataset, ...]
    type: str | None = Field(  # SHOULD
        default=None, description="Downscaling method, e.g. 'gaussian'"
    )
    metadata: dict[str, Any] | None = Field(  # SHOULD
        default=None, description="Free-form details about the downscaling method"
    )

    @property
    def ndim(self) -> int:
        return len(self.axes)

    @property
    def axis_names(self) -> tuple[str, ...]:
        return tuple(ax.name for ax in self.axes)

    def level_transform(self, index: int) -> SequenceTransformation:
        """Array-to-physical transformation of dataset `index`.

        The dataset's own transformations, followed by the multiscale-wide ones.
        """
        return chain(
            (
                *self.datasets[index].coordinateTransformations,
                *(self.coordinateTransformations or ()),
            )
        )
