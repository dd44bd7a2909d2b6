"""High-content screening layout: the `plate` and `well` entities.

A plate group lists a grid of named rows and columns and the wells present in
it; each well group lists its fields of view. Cross-references between them
(indices into the grid, acquisition ids) are checked by the validator, not here,
so that a document with a dangling reference still decodes.
"""

from collections import Counter

from pydantic import Field, NonNegativeInt, PositiveInt

from ._base import _BaseModel

__all__ = [  # noqa: RUF022  (don't resort, this is used for docs ordering)
    "Plate",
    "Row",
    "Column",
    "PlateWell",
    "Acquisition",
    "Well",
    "FieldOfView",
]


class Acquisition(_BaseModel):
    """One imaging run over the plate, referenced by id from well images."""

    id: NonNegativeInt = Field(description="Identifier, unique within the plate")
    maximumfieldcount: PositiveInt | None = Field(
        default=None,
        description="Upper bound on the fields of view any well has in this run",
    )
    name: str | None = None
    description: str | None = None
    starttime: NonNegativeInt | None = Field(
        default=None, description="Epoch timestamp at which the run started"
    )
    endtime: NonNegativeInt | None = Field(
        default=None, description="Epoch timestamp at which the run ended"
    )


class Row(_BaseModel):
    name: str = Field(description="Row label, e.g. 'A'")


class Column(_BaseModel):
    name: str = Field(description="Column label, e.g. '1'")


class PlateWell(_BaseModel):
    """Position of one well in the plate grid, and the group holding it.

    Not to be confused with [`Well`][ngffmeta.Well], the metadata of the well
    group itself.
    """

    path: str = Field(description="'<row name>/<column name>', e.g. 'A/1'")
    rowIndex: NonNegativeInt = Field(description="Index into `Plate.rows`")
    columnIndex: NonNegativeInt = Field(description="Index into `Plate.columns`")

    @property
    def position(self) -> tuple[int, int]:
        return (self.rowIndex, self.columnIndex)


class Plate(_BaseModel):
    """Grid layout of a multi-well plate."""

    name: str | None = None
    rows: tuple[Row, ...]
    columns: tuple[Column, ...]
    wells: tuple[PlateWell, ...] = Field(
        description="The wells present on the plate; a sparse plate lists fewer"
    )
    field_count: PositiveInt | None = Field(
        default=None,
        description="Upper bound on the fields of view of any well",
    )
    acquisitions: tuple[Acquisition, ...] | None = None

    @property
    def acquisition_ids(self) -> frozenset[int]:
        return frozenset(a.id for a in self.acquisitions or ())

    def well_at(self, row: str, column: str) -> PlateWell | None:
        """Return the well at the given row and column names, if listed."""
        return next((w for w in self.wells if w.path == f"{row}/{column}"), None)

    def expected_path(self, well: PlateWell) -> str | None:
        """The path implied by the indices of `well`, or None if out of range."""
        if well.rowIndex >= len(self.rows) or well.columnIndex >= len(self.columns):
            return None
        return f"{self.rows[well.rowIndex].name}/{self.columns[well.columnIndex].name}"


class FieldOfView(_BaseModel):
    path: str = Field(description="Path of the image group, relative to the well")
    acquisition: int | None = Field(
        default=None,
        description="Id of the plate acquisition this image belongs to",
    )


class Well(_BaseModel):
    """The fields of view imaged in one well."""

    images: tuple[FieldOfView, ...]

    def fields_per_acquisition(self) -> Counter[int | None]:
        """Number of fields of view in each acquisition (None: unassigned)."""
        return Counter(image.acquisition for image in self.images)
