"""Typed models, validation and serialization of OME-NGFF metadata."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ngffmeta")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "uninstalled"

from ._algebra import (
    apply,
    apply_inverse,
    canonicalize,
    chain,
    compose,
    effective_scale,
    rank,
    steps,
)
from ._api import parse, parse_and_validate, serialize, validate, write
from ._axis import Axis, ChannelAxis, CustomAxis, SpaceAxis, TimeAxis
from ._codec import canonicalize_document, decode, encode
from ._document import OMEDocument
from ._errors import (
    DecodeError,
    IncompatibleRank,
    MalformedField,
    NGFFError,
    UnsupportedVersion,
)
from ._labels import ImageLabel, LabelColor, LabelProperty, LabelSource
from ._multiscale import Dataset, Multiscale
from ._omero import Omero, OmeroChannel, OmeroRenderingDefs, OmeroWindow
from ._plate import Acquisition, Column, FieldOfView, Plate, PlateWell, Row, Well
from ._report import (
    IssueType,
    NGFFValidationError,
    NGFFValidationWarning,
    ValidationReport,
)
from ._schemas import DRAFT, STABLE, SchemaDescriptor, SpecVersion, detect, get_schema
from ._transforms import (
    CoordinateTransformation,
    IdentityTransformation,
    ScaleTransformation,
    SequenceTransformation,
    TranslationTransformation,
)

__all__ = [
    "DRAFT",
    "STABLE",
    "Acquisition",
    "Axis",
    "ChannelAxis",
    "Column",
    "CoordinateTransformation",
    "CustomAxis",
    "Dataset",
    "DecodeError",
    "FieldOfView",
    "IdentityTransformation",
    "ImageLabel",
    "IncompatibleRank",
    "IssueType",
    "LabelColor",
    "LabelProperty",
    "LabelSource",
    "MalformedField",
    "Multiscale",
    "NGFFError",
    "NGFFValidationError",
    "NGFFValidationWarning",
    "OMEDocument",
    "Omero",
    "OmeroChannel",
    "OmeroRenderingDefs",
    "OmeroWindow",
    "Plate",
    "PlateWell",
    "Row",
    "ScaleTransformation",
    "SchemaDescriptor",
    "SequenceTransformation",
    "SpaceAxis",
    "SpecVersion",
    "TimeAxis",
    "TranslationTransformation",
    "UnsupportedVersion",
    "ValidationReport",
    "Well",
    "apply",
    "apply_inverse",
    "canonicalize",
    "canonicalize_document",
    "chain",
    "compose",
    "decode",
    "detect",
    "effective_scale",
    "encode",
    "get_schema",
    "parse",
    "parse_and_validate",
    "rank",
    "serialize",
    "steps",
    "validate",
    "write",
]
