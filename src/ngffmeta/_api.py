from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ._codec import canonicalize_document, decode, encode
from ._validator import validate_document

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._document import OMEDocument
    from ._plate import Plate
    from ._report import ValidationReport
    from ._schemas import SpecVersion

__all__ = ["parse", "parse_and_validate", "serialize", "validate", "write"]


def parse(
    attrs: Mapping[str, Any], version_hint: SpecVersion | str | None = None
) -> OMEDocument:
    """Parse the (already JSON-decoded) attributes of a zarr group.

    Parameters
    ----------
    attrs : Mapping[str, Any]
        A `.zattrs` dict, a dict using the 0.5 "ome" namespace, or a whole
        zarr.json group document.
    version_hint : SpecVersion | str | None
        Force a specification version instead of detecting it.

    Returns
    -------
    OMEDocument
        The typed document. It is structurally sound, but has not been
        checked for semantic problems; see `validate`.

    Raises
    ------
    MalformedField
        If a required field is missing or a field has the wrong shape.
    UnsupportedVersion
        If the version is unknown or disabled.
    """
    return decode(attrs, version_hint)


def validate(doc: OMEDocument, *, plate: Plate | None = None) -> ValidationReport:
    """Check all invariants of `doc`, returning a report of every issue found.

    Pass `plate` to check a well-only document against the plate that owns it.
    """
    return validate_document(doc, plate=plate)


def serialize(doc: OMEDocument) -> dict[str, Any]:
    """Convert `doc` to a JSON-compatible dict, preserving its transformations."""
    return encode(doc)


def parse_and_validate(
    attrs: Mapping[str, Any], version_hint: SpecVersion | str | None = None
) -> tuple[OMEDocument, ValidationReport]:
    """Parse `attrs` and validate the resulting document.

    Structural problems raise (see `parse`); semantic problems are returned in
    the report. Call `report.raise_if_invalid()` to turn errors into an
    exception.

    Examples
    --------
    >>> doc, report = parse_and_validate(
    ...     {"labels": ["cells"]}
    ... )  # doctest: +SKIP
    >>> report.is_valid  # doctest: +SKIP
    True
    """
    doc = decode(attrs, version_hint)
    return doc, validate_document(doc)


def write(doc: OMEDocument) -> dict[str, Any]:
    """Convert `doc` to its canonical JSON-compatible form.

    Unlike `serialize`, every explicit sequence transformation is
    canonicalized first (identities dropped, adjacent scales and translations
    merged).
    """
    return encode(canonicalize_document(doc))
