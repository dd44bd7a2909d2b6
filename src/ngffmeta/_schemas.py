"""Descriptors of the two supported OME-NGFF specification generations.

The same value model is shared by both versions. What differs is described by
a `SchemaDescriptor`, selected by the `SpecVersion` tag:

- where the version string lives (inside each entity for 0.4, at the top of the
  attributes for 0.5),
- which keys are required in each entity,
- which coordinate transformation types are recognized, and whether the strict
  "one scale, optionally followed by one translation" ordering applies.

https://ngff.openmicroscopy.org/0.4
https://ngff.openmicroscopy.org/0.5
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from . import _config
from ._errors import MalformedField, UnsupportedVersion

__all__ = [
    "DRAFT",
    "STABLE",
    "SchemaDescriptor",
    "SpecVersion",
    "declared_version",
    "detect",
    "get_schema",
    "unwrap_attributes",
]


class SpecVersion(str, Enum):
    """The specification generations this package understands."""

    STABLE = "0.4"
    DRAFT = "0.5"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class SchemaDescriptor:
    """Everything that distinguishes one specification version from another."""

    version: SpecVersion
    version_strings: frozenset[str]
    version_location: Literal["entity", "document"]
    required: frozenset[str]
    optional: frozenset[str]
    transitional: frozenset[str]
    required_fields: Mapping[str, frozenset[str]]
    allowed_transformations: frozenset[str]
    strict_transformation_order: bool

    @property
    def recognized_keys(self) -> frozenset[str]:
        """All top-level keys with a meaning in this version."""
        keys = set(self.required | self.optional | self.transitional)
        if self.version_location == "document":
            keys.add("version")
        return frozenset(keys)


_REQUIRED_FIELDS: Mapping[str, frozenset[str]] = {
    "multiscales": frozenset({"axes", "datasets"}),
    "plate": frozenset({"rows", "columns", "wells"}),
    "well": frozenset({"images"}),
    "labels": frozenset(),
    "image-label": frozenset(),
    "series": frozenset(),
}
_ENTITIES = frozenset(_REQUIRED_FIELDS)
_TRANSITIONAL = frozenset({"omero", "bioformats2raw.layout"})

STABLE = SchemaDescriptor(
    version=SpecVersion.STABLE,
    version_strings=frozenset({"0.4"}),
    version_location="entity",
    required=frozenset(),
    optional=_ENTITIES,
    transitional=_TRANSITIONAL,
    required_fields=_REQUIRED_FIELDS,
    allowed_transformations=frozenset({"scale", "translation"}),
    strict_transformation_order=True,
)

DRAFT = SchemaDescriptor(
    version=SpecVersion.DRAFT,
    version_strings=frozenset({"0.5"}),
    version_location="document",
    required=frozenset(),
    optional=_ENTITIES,
    transitional=_TRANSITIONAL,
    required_fields=_REQUIRED_FIELDS,
    allowed_transformations=frozenset(
        {"identity", "scale", "translation", "sequence"}
    ),
    strict_transformation_order=False,
)

_SCHEMAS: dict[SpecVersion, SchemaDescriptor] = {
    SpecVersion.STABLE: STABLE,
    SpecVersion.DRAFT: DRAFT,
}

# entities that carry their own "version" key in 0.4 documents, in lookup order
VERSIONED_ENTITIES = ("multiscales", "plate", "well", "image-label")


def get_schema(version: SpecVersion | str) -> SchemaDescriptor:
    """Return the schema descriptor for `version`.

    Raises
    ------
    UnsupportedVersion
        If `version` is unknown or disabled with `NGFFMETA_VERSIONS`.
    """
    spec_version = _to_spec_version(version)
    enabled = _config.enabled_versions()
    if spec_version not in enabled:
        raise UnsupportedVersion(
            spec_version.value, sorted(v.value for v in enabled)
        )
    return _SCHEMAS[spec_version]


def _to_spec_version(version: SpecVersion | str) -> SpecVersion:
    if isinstance(version, SpecVersion):
        return version
    for schema in _SCHEMAS.values():
        if version in schema.version_strings:
            return schema.version
    raise UnsupportedVersion(version, sorted(v.value for v in SpecVersion))


def unwrap_attributes(attrs: Mapping[str, Any]) -> dict[str, Any]:
    """Return the flat OME attributes found in `attrs`.

    Accepts plain `.zattrs` style attributes, attributes using the 0.5 "ome"
    namespace, and whole zarr.json group documents (with an "attributes" key).
    Keys next to the "ome" namespace are kept (they are not OME metadata).

    Raises
    ------
    MalformedField
        If the zarr.json "attributes" or the "ome" namespace is not an object.
    """
    if "attributes" in attrs and ("zarr_format" in attrs or "node_type" in attrs):
        attrs = attrs["attributes"] or {}
        _check_object(attrs, "attributes")
    if "ome" not in attrs:
        return dict(attrs)
    ome = attrs["ome"]
    _check_object(ome, "ome")
    return {**{k: v for k, v in attrs.items() if k != "ome"}, **ome}


def _check_object(value: Any, key: str) -> None:
    if not isinstance(value, Mapping):
        raise MalformedField(
            "OMEDocument",
            key,
            f"Input should be a JSON object, got {type(value).__name__}",
            (key,),
        )


def declared_version(attrs: Mapping[str, Any]) -> Any:
    """Return the version declared by `attrs`, or None if there is none.

    The top-level "version" key wins. Otherwise, the first version found in
    `multiscales`, `plate`, `well` or `image-label` is used.
    """
    attrs = unwrap_attributes(attrs)
    if attrs.get("version") is not None:
        return attrs["version"]
    for key in VERSIONED_ENTITIES:
        entity = attrs.get(key)
        candidates = entity if isinstance(entity, list) else [entity]
        for item in candidates:
            if isinstance(item, Mapping) and item.get("version") is not None:
                return item["version"]
    return None


def detect(attrs: Mapping[str, Any]) -> SpecVersion:
    """Detect the specification version of an attributes document.

    Documents without any version are assumed to be `SpecVersion.STABLE`; the
    validator reports that as a warning, never as an error.

    Raises
    ------
    UnsupportedVersion
        If the declared version is not one of the known versions.
    """
    version = declared_version(attrs)
    if version is None:
        return SpecVersion.STABLE
    if not isinstance(version, str):
        raise UnsupportedVersion(version, sorted(v.value for v in SpecVersion))
    return _to_spec_version(version)
