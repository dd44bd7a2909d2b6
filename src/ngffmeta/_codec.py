"""Conversion between JSON attribute trees and `OMEDocument` instances.

`decode` selects the schema for a document (from a hint or by detection),
builds each present entity, and raises the first structural problem as a
`MalformedField`. Semantic problems are left to the validator.

`encode` is the reverse. Keys are emitted in a fixed order, and the version is
written where the document's schema puts it: inside each of `multiscales`,
`plate` and `well` for 0.4 (at the top level if there is none of them), once
at the top level for 0.5.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from ._algebra import canonicalize
from ._document import OMEDocument
from ._errors import MalformedField
from ._labels import ImageLabel
from ._multiscale import Multiscale
from ._omero import Omero
from ._plate import Plate, Well
from ._schemas import declared_version, detect, get_schema, unwrap_attributes
from ._transforms import SequenceTransformation

if TYPE_CHECKING:
    from ._schemas import SchemaDescriptor, SpecVersion
    from ._transforms import AnyTransformation

__all__ = ["canonicalize_document", "decode", "encode"]

DOCUMENT = "OMEDocument"

# JSON key -> (entity name used in errors, model)
_MODELS: dict[str, tuple[str, type[BaseModel]]] = {
    "multiscales": ("Multiscales", Multiscale),
    "image-label": ("ImageLabel", ImageLabel),
    "plate": ("Plate", Plate),
    "well": ("Well", Well),
}
# single entities: JSON key -> python attribute
_ENTITIES = {"image-label": "image_label", "plate": "plate", "well": "well"}
# JSON key -> (entity name used in errors, python attribute)
_PATH_LISTS: dict[str, tuple[str, str]] = {
    "labels": ("Labels", "labels"),
    "series": ("Series", "series"),
}
_PATH_LIST_ADAPTER = TypeAdapter(list[str])


def decode(
    attrs: Mapping[str, Any], version_hint: SpecVersion | str | None = None
) -> OMEDocument:
    """Build an `OMEDocument` from a JSON attributes tree.

    Parameters
    ----------
    attrs : Mapping[str, Any]
        The attributes of a zarr group: a `.zattrs` document, attributes using the
        0.5 "ome" namespace, or a whole zarr.json group document.
    version_hint : SpecVersion | str | None
        Decode with this version instead of detecting it. A declared version that
        disagrees with the hint is reported by the validator as a warning.

    Raises
    ------
    MalformedField
        If a required field is missing or a field has the wrong shape.
    UnsupportedVersion
        If the version is unknown, or disabled by configuration.
    """
    if not isinstance(attrs, Mapping):
        raise MalformedField(
            DOCUMENT, "", f"Input should be a JSON object, got {type(attrs).__name__}"
        )
    attrs = unwrap_attributes(attrs)
    version = detect(attrs) if version_hint is None else version_hint
    schema = get_schema(version)
    declared = declared_version(attrs)

    fields: dict[str, Any] = {
        "version": schema.version,
        "declared_version": None if declared is None else str(declared),
    }

    if (multiscales := attrs.get("multiscales")) is not None:
        if not isinstance(multiscales, list):
            raise MalformedField(
                "Multiscales", "", "Input should be a valid list", ("multiscales",)
            )
        fields["multiscales"] = tuple(
            _build(schema, "multiscales", ms, ("multiscales", i))
            for i, ms in enumerate(multiscales)
        )

    for key, attr in _ENTITIES.items():
        if (data := attrs.get(key)) is not None:
            fields[attr] = _build(schema, key, data, (key,))

    for key, (entity, attr) in _PATH_LISTS.items():
        if (data := attrs.get(key)) is not None:
            try:
                fields[attr] = tuple(_PATH_LIST_ADAPTER.validate_python(data))
            except ValidationError as e:
                raise _malformed(entity, e, (key,)) from e

    # transitional: never fail, keep the raw JSON if it does not fit the model
    if (omero := attrs.get("omero")) is not None:
        try:
            fields["omero"] = Omero.model_validate(omero)
        except ValidationError:
            fields["omero"] = omero
    if "bioformats2raw.layout" in attrs:
        fields["bioformats2raw_layout"] = attrs["bioformats2raw.layout"]

    # "version" is consumed by detection, whatever the schema says
    known = schema.recognized_keys | {"version"}
    fields["extensions"] = {k: v for k, v in attrs.items() if k not in known}

    try:
        return OMEDocument.model_validate(fields)
    except ValidationError as e:  # pragma: no cover
        raise _malformed(DOCUMENT, e) from e


def _build(
    schema: SchemaDescriptor,
    key: str,
    data: Any,
    loc: tuple[int | str, ...],
) -> Any:
    entity, model = _MODELS[key]
    if not isinstance(data, Mapping):
        raise MalformedField(
            entity,
            "",
            f"Input should be a valid dictionary, got {type(data).__name__}",
            loc,
        )
    for name in sorted(schema.required_fields.get(key, ())):
        if name not in data:
            raise MalformedField(entity, name, "Field required", (*loc, name))
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise _malformed(entity, e, loc) from e


def _malformed(
    entity: str, error: ValidationError, loc: tuple[int | str, ...] = ()
) -> MalformedField:
    """Convert the first error of a pydantic `ValidationError`."""
    first = error.errors()[0]
    field = ".".join(str(x) for x in first["loc"])
    return MalformedField(entity, field, first["msg"], (*loc, *first["loc"]))


# ------------------------------------------------------------------------------
# encoding
# ------------------------------------------------------------------------------


def encode(doc: OMEDocument) -> dict[str, Any]:
    """Convert `doc` back to a JSON attributes tree.

    Keys are emitted in a fixed order: `version` (0.5), `multiscales`, `omero`,
    `labels`, `image-label`, `plate`, `well`, `series`, `bioformats2raw.layout`,
    then any unrecognized keys that were preserved while decoding. Fields that
    are None are omitted. No version is written for a document that was decoded
    without one. A 0.4 document with no entity to carry its version gets it at
    the top level.
    """
    schema = get_schema(doc.version)
    per_entity = schema.version_location == "entity" and _has_version_carrier(doc)
    version = doc.declared_version
    entity_version = version if per_entity else None

    out: dict[str, Any] = {}
    if version is not None and not per_entity:
        out["version"] = version
    if doc.multiscales is not None:
        out["multiscales"] = [
            _with_version(_dump(ms), entity_version) for ms in doc.multiscales
        ]
    if doc.omero is not None:
        omero = doc.omero
        out["omero"] = _dump(omero) if isinstance(omero, Omero) else omero
    if doc.labels is not None:
        out["labels"] = list(doc.labels)
    if doc.image_label is not None:
        out["image-label"] = _dump(doc.image_label)
    if doc.plate is not None:
        out["plate"] = _with_version(_dump(doc.plate), entity_version)
    if doc.well is not None:
        out["well"] = _with_version(_dump(doc.well), entity_version)
    if doc.series is not None:
        out["series"] = list(doc.series)
    if doc.bioformats2raw_layout is not None:
        out["bioformats2raw.layout"] = doc.bioformats2raw_layout
    for key, value in doc.extensions.items():
        out.setdefault(key, value)
    return out


def _has_version_carrier(doc: OMEDocument) -> bool:
    if doc.multiscales or doc.plate is not None or doc.well is not None:
        return True
    # image-label keeps its own version
    label = doc.image_label
    return label is not None and label.version == doc.declared_version


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude_none=True, by_alias=True)


def _with_version(data: dict[str, Any], version: str | None) -> dict[str, Any]:
    if version is not None:
        data["version"] = version
    return data


# ------------------------------------------------------------------------------
# canonicalization
# ------------------------------------------------------------------------------


def canonicalize_document(doc: OMEDocument) -> OMEDocument:
    """Return a copy of `doc` with every sequence transformation canonicalized.

    Only explicit `sequence` transformations are rewritten (see
    `ngffmeta.canonicalize`); plain scale/translation lists are left alone.
    Two documents describing the same transformations compare equal after
    canonicalization.

    Raises
    ------
    IncompatibleRank
        If a sequence mixes transformations of different dimensionality.
    """
    if doc.multiscales is None:
        return doc
    multiscales = tuple(
        ms.model_copy(
            update={
                "datasets": tuple(
                    ds.model_copy(
                        update={
                            "coordinateTransformations": _canonical_list(
                                ds.coordinateTransformations
                            )
                        }
                    )
                    for ds in ms.datasets
                ),
                "coordinateTransformations": (
                    None
                    if ms.coordinateTransformations is None
                    else _canonical_list(ms.coordinateTransformations)
                ),
            }
        )
        for ms in doc.multiscales
    )
    return doc.model_copy(update={"multiscales": multiscales})


def _canonical_list(
    transforms: tuple[AnyTransformation, ...],
) -> tuple[AnyTransformation, ...]:
    return tuple(
        canonicalize(t) if isinstance(t, SequenceTransformation) else t
        for t in transforms
    )

