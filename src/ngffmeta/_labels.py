"""Segmentation metadata: the `image-label` entity of a label image group.

A label image is a multiscale image of integer label values. Its `image-label`
metadata gives display colors and arbitrary properties per label value, and
points back at the image that was segmented.
"""

from typing import Annotated

from annotated_types import Interval, Len
from pydantic import Field

from ._base import _BaseModel, _OpenModel

__all__ = [  # noqa: RUF022  (don't resort, this is used for docs ordering)
    "ImageLabel",
    "LabelColor",
    "LabelProperty",
    "LabelSource",
]

Uint8 = Annotated[int, Interval(ge=0, le=255)]
RGBA = Annotated[tuple[Uint8, ...], Len(min_length=4, max_length=4)]


class LabelColor(_BaseModel):
    label_value: int = Field(alias="label-value")
    rgba: RGBA | None = Field(default=None, description="[red, green, blue, alpha]")


class LabelProperty(_OpenModel):
    """Free-form properties of one label value.

    Any key besides `label-value` is kept, e.g.
    `{"label-value": 1, "area (pixels)": 1200, "class": "foo"}`.
    """

    label_value: int = Field(alias="label-value")


class LabelSource(_BaseModel):
    image: str | None = Field(
        default=None,
        description="Path to the segmented image, relative to the label image",
    )


class ImageLabel(_BaseModel):
    """Display and annotation metadata of a label image."""

    version: str | None = None
    colors: tuple[LabelColor, ...] | None = None
    properties: tuple[LabelProperty, ...] | None = None
    source: LabelSource | None = None

    @property
    def color_map(self) -> dict[int, tuple[int, ...]]:
        """Mapping of label value to RGBA, for colors that define one."""
        return {c.label_value: c.rgba for c in self.colors or () if c.rgba is not None}

    def repeated_label_values(self) -> dict[str, list[tuple[int, int]]]:
        """Label values listed more than once, per list.

        Returns a mapping of "colors"/"properties" to `(first_index, index)`
        pairs, one for every repeated entry.
        """
        out: dict[str, list[tuple[int, int]]] = {}
        for key, items in (("colors", self.colors), ("properties", self.properties)):
            first: dict[int, int] = {}
            for i, item in enumerate(items or ()):
                j = first.setdefault(item.label_value, i)
                if j != i:
                    out.setdefault(key, []).append((j, i))
        return out
