"""The top-level document: every OME metadata entity found in one attributes dict.

Here are the documents you might encounter (shown with 0.4 style versions):

1. Image group: `{"multiscales": [...], "omero": {...}}`
2. Label image group: `{"multiscales": [...], "image-label": {...}}`
3. Labels group: `{"labels": ["cells", "nuclei"]}`
4. Plate group: `{"plate": {...}}`
5. Well group: `{"well": {...}}`
6. bioformats2raw root: `{"bioformats2raw.layout": 3}`, and its OME group
   `{"series": ["0", "1"]}`

In 0.5 documents, the same keys live in an "ome" namespace, next to a single
top-level "version".
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, JsonValue, model_validator

from ._base import _BaseModel
from ._labels import ImageLabel
from ._multiscale import Multiscale
from ._omero import Omero
from ._plate import Plate, Well
from ._schemas import SpecVersion

__all__ = ["BIOFORMATS2RAW_LAYOUT", "GroupKind", "OMEDocument"]

BIOFORMATS2RAW_LAYOUT = 3
"""The only bioformats2raw layout version defined by the specification."""

GroupKind = Literal[
    "image", "label-image", "labels", "plate", "well", "bioformats2raw", "series"
]


class OMEDocument(_BaseModel):
    """All OME-NGFF metadata found in the attributes of one zarr group.

    Every entity is optional: a document holds whatever keys were present. The
    `version` selects the schema the document was decoded (and is validated)
    with, while `declared_version` is the version string the source actually
    contained (None if it had none).
    """

    version: SpecVersion = Field(
        default=SpecVersion.STABLE,
        description="The specification version this document follows",
    )
    declared_version: str | None = Field(
        default=None,
        description=(
            "The version string found in the source document, if any. "
            "Defaults to `version` when constructing a document directly."
        ),
    )
    multiscales: tuple[Multiscale, ...] | None = None
    omero: Omero | JsonValue = Field(
        default=None,
        union_mode="left_to_right",
        description=(
            "Transitional OMERO rendering metadata. Kept as raw JSON if malformed."
        ),
    )
    labels: tuple[str, ...] | None = Field(
        default=None,
        description="Paths to the label images of a labels group",
    )
    image_label: ImageLabel | None = Field(default=None, alias="image-label")
    plate: Plate | None = None
    well: Well | None = None
    series: tuple[str, ...] | None = Field(
        default=None,
        description="bioformats2raw OME group: paths of the images, in OME-XML order",
    )
    bioformats2raw_layout: JsonValue = Field(
        default=None,
        alias="bioformats2raw.layout",
        description="Transitional marker added by bioformats2raw (expected to be 3)",
    )
    extensions: dict[str, JsonValue] = Field(
        default_factory=dict,
        description="Unrecognized top-level keys, preserved verbatim",
    )

    @model_validator(mode="before")
    @classmethod
    def _default_declared_version(cls, data: Any) -> Any:
        if isinstance(data, dict) and "declared_version" not in data:
            version = data.get("version", SpecVersion.STABLE)
            data = {**data, "declared_version": str(SpecVersion(version))}
        return data

    @property
    def kinds(self) -> tuple[GroupKind, ...]:
        """The kinds of zarr group this document describes."""
        kinds: list[GroupKind] = []
        if self.multiscales is not None:
            kinds.append("label-image" if self.image_label is not None else "image")
        if self.labels is not None:
            kinds.append("labels")
        if self.plate is not None:
            kinds.append("plate")
        if self.well is not None:
            kinds.append("well")
        if self.bioformats2raw_layout is not None:
            kinds.append("bioformats2raw")
        if self.series is not None:
            kinds.append("series")
        return tuple(kinds)

    @property
    def is_empty(self) -> bool:
        return not self.kinds and self.omero is None and self.image_label is None
