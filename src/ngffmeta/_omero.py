"""Transitional OMERO rendering settings (the `omero` key of an image group).

Modelled loosely on OMERO's ImgData:
https://omero.readthedocs.io/en/stable/developers/Web/WebGateway.html#imgdata

Unknown keys are kept on every model. A block that does not fit at all is kept
as raw JSON on the document instead of failing the decode.
"""

import re
from typing import Literal

from ._base import _OpenModel

__all__ = ["Omero", "OmeroChannel", "OmeroRenderingDefs", "OmeroWindow"]

HEX_COLOR_RE = re.compile(r"^[0-9A-Fa-f]{6}$")


class OmeroWindow(_OpenModel):
    """Display range `start..end`, inside the data range `min..max`."""

    start: float
    end: float
    min: float | None = None
    max: float | None = None

    @property
    def is_within_range(self) -> bool:
        low = self.start if self.min is None else self.min
        high = self.end if self.max is None else self.max
        # inverted windows (end < start) are allowed
        return all(low <= v <= high for v in (self.start, self.end))


class OmeroChannel(_OpenModel):
    label: str | None = None
    color: str | None = None
    window: OmeroWindow | None = None
    family: str | None = None
    active: bool | None = None
    inverted: bool | None = None
    coefficient: float | None = None

    @property
    def rgb(self) -> tuple[int, int, int] | None:
        """The color as integers, or None if it is missing or not 6 hex digits."""
        if self.color is None or not HEX_COLOR_RE.match(self.color):
            return None
        r, g, b = (int(self.color[i : i + 2], 16) for i in (0, 2, 4))
        return (r, g, b)


class OmeroRenderingDefs(_OpenModel):
    model: Literal["color", "greyscale"] | str | None = None
    defaultT: int | None = None
    defaultZ: int | None = None
    projection: str | None = None


class Omero(_OpenModel):
    channels: tuple[OmeroChannel, ...]
    id: int | None = None
    name: str | None = None
    version: str | None = None
    rdefs: OmeroRenderingDefs | None = None
