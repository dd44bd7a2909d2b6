"""Fatal errors raised while decoding documents or composing transformations.

Semantic problems with a structurally valid document are never raised; they are
collected in a [`ValidationReport`][ngffmeta.ValidationReport] instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "DecodeError",
    "IncompatibleRank",
    "MalformedField",
    "NGFFError",
    "UnsupportedVersion",
]


class NGFFError(Exception):
    """Base class for all errors raised by ngffmeta."""


class DecodeError(NGFFError, ValueError):
    """A JSON document could not be turned into an `OMEDocument`."""


class MalformedField(DecodeError):
    """A required field is missing, or a field has the wrong type.

    Attributes
    ----------
    entity : str
        Name of the entity being built, e.g. "Multiscales" or "Plate".
    field : str
        Dotted location of the offending field, relative to the entity.
    reason : str
        Human readable description of the problem.
    loc : tuple[int | str, ...]
        Full location of the field within the decoded document.
    """

    def __init__(
        self,
        entity: str,
        field: str,
        reason: str,
        loc: tuple[int | str, ...] = (),
    ) -> None:
        self.entity = entity
        self.field = field
        self.reason = reason
        self.loc = loc
        where = f"{entity}.{field}" if field else entity
        super().__init__(f"{where}: {reason}")


class UnsupportedVersion(DecodeError):
    """The requested or detected specification version is not available."""

    def __init__(self, version: object, available: Sequence[str] = ()) -> None:
        self.version = version
        msg = f"Unsupported OME-NGFF version: {version!r}."
        if available:
            msg += f" Available versions: {', '.join(available)}"
        super().__init__(msg)


class IncompatibleRank(NGFFError, ValueError):
    """Coordinate transformations of different dimensionality were combined."""

    def __init__(self, *ranks: int) -> None:
        self.ranks = ranks
        super().__init__(
            "Inconsistent dimensionalities: " + ", ".join(str(r) for r in ranks)
        )
