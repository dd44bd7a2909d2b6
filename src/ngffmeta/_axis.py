"""Axes of a multiscale image.

The `type` of an axis selects its class. Any type other than "space", "time" or
"channel" (including a missing one) gives a `CustomAxis`.
"""

from typing import Annotated, Any, ClassVar, Literal, TypeAlias

from pydantic import Discriminator, Field, Tag

from ._base import _BaseModel

__all__ = [
    "SPACE_UNITS",
    "TIME_UNITS",
    "Axis",
    "AxisKind",
    "ChannelAxis",
    "CustomAxis",
    "SpaceAxis",
    "TimeAxis",
]

# the SI prefixes used by UDUNITS-2 for the units OME-NGFF recommends
_SI_PREFIXES = (
    "yocto", "zepto", "atto", "femto", "pico", "nano", "micro", "milli", "centi",
    "deci", "", "hecto", "kilo", "mega", "giga", "tera", "peta", "exa", "zetta",
    "yotta",
)  # fmt: skip

SPACE_UNITS: frozenset[str] = frozenset(
    {f"{p}meter" for p in _SI_PREFIXES}
    | {"angstrom", "foot", "inch", "mile", "parsec", "yard"}
)
TIME_UNITS: frozenset[str] = frozenset(
    {f"{p}second" for p in _SI_PREFIXES} | {"minute", "hour", "day"}
)

AxisKind: TypeAlias = Literal["space", "time", "other"]
"""How an axis counts towards the axis rules: channel and custom axes are 'other'."""


class _AxisBase(_BaseModel):
    kind: ClassVar[AxisKind] = "other"
    known_units: ClassVar[frozenset[str] | None] = None

    name: str = Field(description="Name of the axis, unique within a multiscale")
    type: str | None = None  # SHOULD
    unit: str | None = None  # SHOULD be one of `known_units`, if defined

    @property
    def has_known_unit(self) -> bool:
        """False if `unit` is set but not in the vocabulary for this axis type."""
        if self.unit is None or self.known_units is None:
            return True
        return self.unit in self.known_units


# unit is kept as a plain string on every axis: unknown units are reported by the
# validator, never rejected while decoding.


class SpaceAxis(_AxisBase):
    kind: ClassVar[AxisKind] = "space"
    known_units: ClassVar[frozenset[str] | None] = SPACE_UNITS

    type: Literal["space"] = "space"


class TimeAxis(_AxisBase):
    kind: ClassVar[AxisKind] = "time"
    known_units: ClassVar[frozenset[str] | None] = TIME_UNITS

    type: Literal["time"] = "time"


class ChannelAxis(_AxisBase):
    type: Literal["channel"] = "channel"


class CustomAxis(_AxisBase):
    """An axis of any other type, or without a type."""


def _axis_discriminator(v: Any) -> str:
    t = v.get("type") if isinstance(v, dict) else getattr(v, "type", None)
    return t if t in ("space", "time", "channel") else "custom"


Axis: TypeAlias = Annotated[
    Annotated[SpaceAxis, Tag("space")]
    | Annotated[TimeAxis, Tag("time")]
    | Annotated[ChannelAxis, Tag("channel")]
    | Annotated[CustomAxis, Tag("custom")],
    Discriminator(_axis_discriminator),
]
