"""Semantic validation of decoded OME-NGFF documents.

The validator walks every populated entity of an `OMEDocument` and collects
issues in a `ValidationReport`. It never stops at the first problem, and it
never raises for a structurally valid document. Cross-entity rules (e.g. a
well's acquisitions must exist in its plate) are checked on the whole document.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import TYPE_CHECKING, Any, TypeAlias

from pydantic import ValidationError

from ._algebra import steps
from ._document import BIOFORMATS2RAW_LAYOUT
from ._omero import Omero
from ._report import IssueType, ValidationReport
from ._schemas import get_schema
from ._transforms import (
    ScaleTransformation,
    SequenceTransformation,
    TranslationTransformation,
)
from ._util import check_fov_name, check_node_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._axis import Axis
    from ._document import OMEDocument
    from ._labels import ImageLabel
    from ._multiscale import Multiscale
    from ._plate import Plate, Well
    from ._schemas import SchemaDescriptor
    from ._transforms import AnyTransformation

__all__ = ["DocumentValidator", "validate_document"]

Loc: TypeAlias = tuple[int | str, ...]

PLATE_INDEX_RE = re.compile(r"^[A-Za-z0-9]+$")
WELL_PATH_RE = re.compile(r"^[A-Za-z0-9]+/[A-Za-z0-9]+$")


def validate_document(
    doc: OMEDocument, *, plate: Plate | None = None
) -> ValidationReport:
    """Check every invariant of `doc` and return the issues found.

    Parameters
    ----------
    doc : OMEDocument
        The decoded document to validate.
    plate : Plate | None
        The plate owning the well in `doc`, when the plate lives in another
        document. Ignored if `doc` has a plate of its own.

    Raises
    ------
    UnsupportedVersion
        If the version of `doc` is disabled by configuration.
    """
    return DocumentValidator.validate_document(doc, plate=plate)


class DocumentValidator:
    """Visitor checking a document against the rules of its schema version."""

    __slots__ = ("schema",)

    def __init__(self, schema: SchemaDescriptor) -> None:
        self.schema = schema

    @classmethod
    def validate_document(
        cls, doc: OMEDocument, *, plate: Plate | None = None
    ) -> ValidationReport:
        """Entry point: select the schema for `doc` and visit all its entities."""
        validator = cls(get_schema(doc.version))
        return validator.visit_document(doc, plate=plate)

    # ------------------------------------------------------------------
    # document
    # ------------------------------------------------------------------

    def visit_document(
        self, doc: OMEDocument, *, plate: Plate | None = None
    ) -> ValidationReport:
        result = ValidationReport()

        if doc.declared_version is None:
            result.add_warning(
                IssueType.version_missing,
                (),
                "No OME-NGFF version found in the document; "
                f"assuming version {self.schema.version}.",
            )
        elif doc.declared_version not in self.schema.version_strings:
            result.add_warning(
                IssueType.version_mismatch,
                ("version",),
                f"The document declares version {doc.declared_version!r} but was "
                f"decoded as version {self.schema.version}.",
                ctx={
                    "expected": str(self.schema.version),
                    "found": doc.declared_version,
                },
            )

        for key in doc.extensions:
            result.add_warning(
                IssueType.extension_key_unknown,
                (key,),
                f"Unknown key {key!r} is not part of the OME-NGFF "
                f"{self.schema.version} specification.",
            )

        if doc.is_empty:
            result.add_warning(
                IssueType.document_empty,
                (),
                "The document does not contain any OME-NGFF metadata.",
            )

        for i, multiscale in enumerate(doc.multiscales or ()):
            result = result.merge(self.visit_multiscale(multiscale, ("multiscales", i)))

        if doc.omero is not None:
            result = result.merge(
                self.visit_omero(doc.omero, ("omero",), doc.multiscales or ())
            )

        if doc.labels is not None:
            result = result.merge(self.visit_labels(doc.labels, ("labels",)))

        if doc.image_label is not None:
            result = result.merge(
                self.visit_image_label(doc.image_label, ("image-label",))
            )
            if doc.multiscales is None:
                result.add_warning(
                    IssueType.image_label_without_multiscales,
                    ("image-label",),
                    "A label image SHOULD also contain 'multiscales' metadata.",
                )

        if doc.plate is not None:
            result = result.merge(self.visit_plate(doc.plate, ("plate",)))

        if doc.well is not None:
            owner = doc.plate if doc.plate is not None else plate
            result = result.merge(self.visit_well(doc.well, ("well",), owner))

        if doc.bioformats2raw_layout is not None:
            layout = doc.bioformats2raw_layout
            if isinstance(layout, bool) or layout != BIOFORMATS2RAW_LAYOUT:
                result.add_warning(
                    IssueType.bf2raw_layout_invalid,
                    ("bioformats2raw.layout",),
                    f"Unsupported bioformats2raw layout {layout!r}; only "
                    f"{BIOFORMATS2RAW_LAYOUT} is defined. The marker was ignored.",
                    ctx={"expected": BIOFORMATS2RAW_LAYOUT, "found": layout},
                )

        if doc.series is not None and not doc.series:
            result.add_error(
                IssueType.series_empty,
                ("series",),
                "The 'series' list must contain at least one image path.",
            )

        return result

    # ------------------------------------------------------------------
    # multiscales
    # ------------------------------------------------------------------

    def visit_multiscale(self, multiscale: Multiscale, loc: Loc) -> ValidationReport:
        result = self._check_axes(multiscale.axes, (*loc, "axes"))
        ndim = multiscale.ndim

        if not multiscale.datasets:
            result.add_error(
                IssueType.datasets_empty,
                (*loc, "datasets"),
                "A multiscale must contain at least one dataset.",
            )

        seen_paths: dict[str, Loc] = {}
        previous: tuple[Loc, tuple[float, ...]] | None = None
        for i, dataset in enumerate(multiscale.datasets):
            ds_loc: Loc = (*loc, "datasets", i)

            if dataset.path in seen_paths:
                result.add_error(
                    IssueType.dataset_path_duplicate,
                    (*ds_loc, "path"),
                    f"Dataset path {dataset.path!r} is used more than once.",
                    ctx={"locs": [seen_paths[dataset.path], (*ds_loc, "path")]},
                )
            else:
                seen_paths[dataset.path] = (*ds_loc, "path")
            self._check_node_name(
                result, dataset.path, (*ds_loc, "path"), IssueType.dataset_path_invalid
            )

            consistent = self._check_transforms(
                result,
                dataset.coordinateTransformations,
                (*ds_loc, "coordinateTransformations"),
                ndim,
                require_scale=True,
            )
            if not consistent:
                previous = None
                continue

            scale = dataset.effective_scale
            if scale is None:
                if _has_scale(dataset.coordinateTransformations):
                    result.add_warning(
                        IssueType.scale_unknown,
                        (*ds_loc, "coordinateTransformations"),
                        "The scale of this dataset is stored in a binary array; the "
                        "ordering of resolution levels could not be checked.",
                    )
                previous = None
                continue

            if previous is not None and not _is_coarser(scale, previous[1]):
                result.add_error(
                    IssueType.scale_not_increasing,
                    ds_loc,
                    "The datasets are not ordered from highest to lowest resolution: "
                    "each level's scale must be at least that of the previous level "
                    "on every axis, and larger on at least one.",
                    ctx={"previous": previous[1], "found": scale},
                )
            previous = (ds_loc, scale)

        if multiscale.coordinateTransformations is not None:
            self._check_transforms(
                result,
                multiscale.coordinateTransformations,
                (*loc, "coordinateTransformations"),
                ndim,
                require_scale=False,
            )

        return result

    def _check_axes(self, axes: Sequence[Axis], loc: Loc) -> ValidationReport:
        result = ValidationReport()

        # The "axes" MUST contain 2 to 5 entries
        if not 2 <= len(axes) <= 5:
            result.add_error(
                IssueType.axis_count,
                loc,
                f"There must be between 2 and 5 axes. Found {len(axes)}.",
            )

        # names MUST be unique within the list.
        seen: dict[str, int] = {}
        for i, ax in enumerate(axes):
            if ax.name in seen:
                result.add_error(
                    IssueType.axis_name_duplicate,
                    (*loc, i, "name"),
                    f"Axis names must be unique. Found duplicate {ax.name!r}.",
                    ctx={"locs": [(*loc, seen[ax.name], "name"), (*loc, i, "name")]},
                )
            else:
                seen[ax.name] = i

        # MUST contain 2 or 3 entries of "type:space", MAY contain one additional
        # entry of "type:time" and MAY contain one additional entry of
        # "type:channel" or a null / custom type.
        counts = Counter(ax.kind for ax in axes)
        if not 2 <= counts["space"] <= 3:
            result.add_error(
                IssueType.axis_type_count,
                loc,
                "There must be 2 or 3 axes of type 'space'.",
                ctx={"found": counts["space"]},
            )
        if counts["time"] > 1:
            result.add_error(
                IssueType.axis_type_count,
                loc,
                "There can be at most 1 axis of type 'time'.",
                ctx={"found": counts["time"]},
            )
        if counts["other"] > 1:
            result.add_error(
                IssueType.axis_type_count,
                loc,
                "There can be at most 1 axis of type 'channel' or of a custom type.",
                ctx={"found": counts["other"]},
            )

        # The entries MUST be ordered by "type" where the "time" axis must come first
        # (if present), followed by the "channel" or custom axis (if present) and the
        # axes of type "space".
        order = {"time": 0, "other": 1, "space": 2}
        kinds = [order[ax.kind] for ax in axes]
        if kinds != sorted(kinds):
            result.add_error(
                IssueType.axis_order,
                loc,
                "Axes are not in the required order by type. "
                "Order must be [time,] [channel,] space.",
                ctx={"found": [ax.type for ax in axes]},
            )

        # units SHOULD be one of the units defined by UDUNITS-2
        for i, ax in enumerate(axes):
            if not ax.has_known_unit:
                result.add_warning(
                    IssueType.axis_unit_unknown,
                    (*loc, i, "unit"),
                    f"Unit {ax.unit!r} is not a recognized {ax.type} unit.",
                )
        return result

    def _check_transforms(
        self,
        result: ValidationReport,
        transforms: Sequence[AnyTransformation],
        loc: Loc,
        ndim: int,
        *,
        require_scale: bool,
    ) -> bool:
        """Check a list of transformations, adding issues to `result`.

        Returns True if all transformations agree with the number of axes, i.e. if
        the list can be composed.
        """
        allowed = self.schema.allowed_transformations
        consistent = True
        for j, t in enumerate(transforms):
            if t.type not in allowed:
                result.add_error(
                    IssueType.transform_unsupported,
                    (*loc, j),
                    f"Transformation type {t.type!r} is not supported in version "
                    f"{self.schema.version}.",
                    ctx={"expected": sorted(allowed), "found": t.type},
                )
            nested = isinstance(t, SequenceTransformation)
            for k, step in enumerate(steps(t)):
                # The length of the scale and translation array MUST be the same as
                # the length of "axes".
                if step.ndim and step.ndim != ndim:
                    consistent = False
                    step_loc: Loc = (*loc, j, "transformations", k) if nested else (
                        *loc,
                        j,
                    )
                    result.add_error(
                        IssueType.transform_ndim_mismatch,
                        step_loc,
                        f"The length of the transformation ({step.ndim}) does not "
                        f"match the number of axes ({ndim}).",
                    )

        flat = [s for t in transforms for s in steps(t)]
        n_scales = sum(isinstance(s, ScaleTransformation) for s in flat)

        if not self.schema.strict_transformation_order:
            if require_scale and not n_scales:
                result.add_error(
                    IssueType.scale_missing,
                    loc,
                    "There must be at least one scale transformation.",
                )
            return consistent

        # [the list of transforms] MUST contain exactly one scale transformation
        if require_scale and n_scales != 1 or n_scales > 1:
            result.add_error(
                IssueType.scale_missing if not n_scales else IssueType.transform_count,
                loc,
                "There must be exactly one scale transformation in the list of "
                f"transforms. Found {n_scales}.",
            )

        # It MAY contain exactly one translation
        translations = [
            j for j, t in enumerate(transforms)
            if isinstance(t, TranslationTransformation)
        ]
        if len(translations) > 1:
            result.add_error(
                IssueType.transform_count,
                loc,
                "There can be at most one translation transformation. "
                f"Found {len(translations)}.",
            )

        # If translation is given it MUST be listed after scale to ensure that it is
        # given in physical coordinates.
        scales = [
            j for j, t in enumerate(transforms) if isinstance(t, ScaleTransformation)
        ]
        if translations and scales and translations[0] < scales[0]:
            result.add_error(
                IssueType.transform_order,
                (*loc, translations[0]),
                "If a translation transformation is given, it must be listed after "
                "the scale transformation.",
            )
        return consistent

    def _check_node_name(
        self, result: ValidationReport, name: str, loc: Loc, invalid: IssueType
    ) -> None:
        try:
            risky = check_node_name(name)
        except ValueError as e:
            result.add_error(invalid, loc, str(e))
            return
        if risky:
            result.add_warning(
                IssueType.node_name_risky,
                loc,
                f"The name {name!r} contains potentially risky characters when used "
                f"as a zarr node: {sorted(risky)}. Consider using only alphanumeric "
                "characters, dots (.), underscores (_), or hyphens (-).",
            )

    # ------------------------------------------------------------------
    # transitional: omero
    # ------------------------------------------------------------------

    def visit_omero(
        self, omero: Omero | Any, loc: Loc, multiscales: Sequence[Multiscale]
    ) -> ValidationReport:
        # everything here is a warning: omero must never block validation
        result = ValidationReport()
        if not isinstance(omero, Omero):
            try:
                Omero.model_validate(omero)
            except ValidationError as e:
                result.add_warning(
                    IssueType.omero_malformed,
                    loc,
                    "The 'omero' metadata does not have the expected structure and "
                    f"was ignored ({e.error_count()} problem(s)).",
                    ctx={
                        "errors": [
                            {"loc": err["loc"], "msg": err["msg"]} for err in e.errors()
                        ]
                    },
                )
            return result

        n_channels = len(omero.channels)
        has_channel_axis = any(
            ax.type == "channel" for ms in multiscales for ax in ms.axes
        )
        if multiscales and not has_channel_axis and n_channels > 1:
            result.add_warning(
                IssueType.omero_channel_count,
                (*loc, "channels"),
                f"'omero' describes {n_channels} channels, but the image has no "
                "channel axis.",
            )

        for i, channel in enumerate(omero.channels):
            ch_loc: Loc = (*loc, "channels", i)
            if channel.color is not None and channel.rgb is None:
                result.add_warning(
                    IssueType.omero_color_invalid,
                    (*ch_loc, "color"),
                    f"Channel color {channel.color!r} is not a 6 digit hex string.",
                )
            window = channel.window
            if window is not None and not window.is_within_range:
                result.add_warning(
                    IssueType.omero_window_invalid,
                    (*ch_loc, "window"),
                    "Channel window start/end must lie within min/max.",
                    ctx={"found": window.model_dump()},
                )
        return result

    # ------------------------------------------------------------------
    # labels
    # ------------------------------------------------------------------

    def visit_labels(self, labels: Sequence[str], loc: Loc) -> ValidationReport:
        result = ValidationReport()
        if not labels:
            result.add_error(
                IssueType.labels_empty,
                loc,
                "The 'labels' list must contain at least one label image path.",
            )
        seen: dict[str, int] = {}
        for i, path in enumerate(labels):
            if path in seen:
                result.add_error(
                    IssueType.label_path_duplicate,
                    (*loc, i),
                    f"Label path {path!r} is listed more than once.",
                    ctx={"locs": [(*loc, seen[path]), (*loc, i)]},
                )
            else:
                seen[path] = i
            self._check_node_name(result, path, (*loc, i), IssueType.label_path_invalid)
        return result

    def visit_image_label(
        self, image_label: ImageLabel, loc: Loc
    ) -> ValidationReport:
        result = ValidationReport()
        for key, pairs in image_label.repeated_label_values().items():
            items = getattr(image_label, key)
            for first, i in pairs:
                result.add_error(
                    IssueType.label_value_duplicate,
                    (*loc, key, i, "label-value"),
                    f"Label value {items[i].label_value} appears more than once "
                    f"in {key!r}.",
                    ctx={"locs": [(*loc, key, first), (*loc, key, i)]},
                )
        return result

    # ------------------------------------------------------------------
    # plate & well
    # ------------------------------------------------------------------

    def visit_plate(self, plate: Plate, loc: Loc) -> ValidationReport:
        result = ValidationReport()

        for key, indices in (("rows", plate.rows), ("columns", plate.columns)):
            if not indices:
                result.add_error(
                    IssueType.plate_index_empty,
                    (*loc, key),
                    f"A plate must define at least one entry in {key!r}.",
                )
            seen_names: dict[str, int] = {}
            for i, index in enumerate(indices):
                if not PLATE_INDEX_RE.match(index.name):
                    result.add_error(
                        IssueType.plate_index_name_invalid,
                        (*loc, key, i, "name"),
                        f"Name {index.name!r} must be alphanumeric "
                        f"(pattern {PLATE_INDEX_RE.pattern}).",
                    )
                if index.name in seen_names:
                    result.add_error(
                        IssueType.plate_index_duplicate,
                        (*loc, key, i, "name"),
                        f"Name {index.name!r} is used more than once in {key!r}.",
                        ctx={
                            "locs": [
                                (*loc, key, seen_names[index.name], "name"),
                                (*loc, key, i, "name"),
                            ]
                        },
                    )
                else:
                    seen_names[index.name] = i

        seen_ids: dict[int, int] = {}
        for i, acq in enumerate(plate.acquisitions or ()):
            acq_loc: Loc = (*loc, "acquisitions", i)
            if acq.id in seen_ids:
                result.add_error(
                    IssueType.plate_acquisition_duplicate,
                    (*acq_loc, "id"),
                    f"Acquisition id {acq.id} is used more than once.",
                    ctx={
                        "locs": [
                            (*loc, "acquisitions", seen_ids[acq.id], "id"),
                            (*acq_loc, "id"),
                        ]
                    },
                )
            else:
                seen_ids[acq.id] = i
            if (
                acq.starttime is not None
                and acq.endtime is not None
                and acq.endtime < acq.starttime
            ):
                result.add_error(
                    IssueType.acquisition_time_order,
                    acq_loc,
                    f"Acquisition {acq.id} ends before it starts.",
                    ctx={"starttime": acq.starttime, "endtime": acq.endtime},
                )

        if not plate.wells:
            result.add_error(
                IssueType.plate_wells_empty,
                (*loc, "wells"),
                "A plate must list at least one well.",
            )

        seen_paths: dict[str, Loc] = {}
        seen_positions: dict[tuple[int, int], Loc] = {}
        for i, well in enumerate(plate.wells):
            well_loc: Loc = (*loc, "wells", i)
            if not WELL_PATH_RE.match(well.path):
                result.add_error(
                    IssueType.well_path_invalid,
                    (*well_loc, "path"),
                    f"Well path {well.path!r} must have the form '<row>/<column>' "
                    f"(pattern {WELL_PATH_RE.pattern}).",
                )

            if well.path in seen_paths:
                first = seen_paths[well.path]
                result.add_error(
                    IssueType.well_path_duplicate,
                    (*well_loc, "path"),
                    f"Well path {well.path!r} appears more than once: at "
                    f"{'.'.join(map(str, first))} and {'.'.join(map(str, well_loc))}.",
                    ctx={"locs": [first, well_loc]},
                )
            else:
                seen_paths[well.path] = well_loc

            position = well.position
            if position in seen_positions:
                result.add_error(
                    IssueType.well_index_duplicate,
                    well_loc,
                    f"Well {well.path!r} uses the same rowIndex/columnIndex pair "
                    f"{position} as another well.",
                    ctx={"locs": [seen_positions[position], well_loc]},
                )
            else:
                seen_positions[position] = well_loc

            in_range = True
            if well.rowIndex >= len(plate.rows):
                in_range = False
                result.add_error(
                    IssueType.well_index_out_of_range,
                    (*well_loc, "rowIndex"),
                    f"Well {well.path} has rowIndex {well.rowIndex} "
                    f"but only {len(plate.rows)} rows exist",
                )
            if well.columnIndex >= len(plate.columns):
                in_range = False
                result.add_error(
                    IssueType.well_index_out_of_range,
                    (*well_loc, "columnIndex"),
                    f"Well {well.path} has columnIndex {well.columnIndex} "
                    f"but only {len(plate.columns)} columns exist",
                )
            expected = plate.expected_path(well) if in_range else None
            if expected is not None and well.path != expected:
                result.add_error(
                    IssueType.well_path_mismatch,
                    (*well_loc, "path"),
                    f"Well path {well.path!r} does not match the row and column "
                    f"at its indices ({expected!r}).",
                    ctx={"expected": expected, "found": well.path},
                )
        return result

    def visit_well(
        self, well: Well, loc: Loc, plate: Plate | None = None
    ) -> ValidationReport:
        result = ValidationReport()
        if not well.images:
            result.add_error(
                IssueType.well_empty,
                (*loc, "images"),
                "A well must contain at least one field of view.",
            )

        seen: dict[str, int] = {}
        for i, image in enumerate(well.images):
            path_loc: Loc = (*loc, "images", i, "path")
            if image.path in seen:
                result.add_error(
                    IssueType.fov_path_duplicate,
                    path_loc,
                    f"Field of view path {image.path!r} is used more than once.",
                    ctx={
                        "locs": [(*loc, "images", seen[image.path], "path"), path_loc]
                    },
                )
            else:
                seen[image.path] = i
            try:
                risky = check_fov_name(image.path)
            except ValueError as e:
                result.add_error(IssueType.fov_path_invalid, path_loc, str(e))
            else:
                if risky:
                    result.add_warning(
                        IssueType.fov_path_risky,
                        path_loc,
                        f"The field of view path {image.path!r} contains characters "
                        f"outside of [A-Za-z0-9]: {sorted(risky)}. These may not be "
                        "supported by strictly compliant tools.",
                    )

        if plate is not None:
            result = result.merge(self._check_well_in_plate(well, loc, plate))
        return result

    def _check_well_in_plate(
        self, well: Well, loc: Loc, plate: Plate
    ) -> ValidationReport:
        result = ValidationReport()

        if plate.field_count is not None and len(well.images) > plate.field_count:
            result.add_error(
                IssueType.field_count_exceeded,
                (*loc, "images"),
                f"The well has {len(well.images)} fields of view, more than the "
                f"plate's field_count ({plate.field_count}).",
            )

        if plate.acquisitions is None:
            return result

        known = {a.id: a for a in plate.acquisitions}
        for i, image in enumerate(well.images):
            img_loc: Loc = (*loc, "images", i, "acquisition")
            if image.acquisition is None:
                if len(known) > 1:
                    result.add_error(
                        IssueType.acquisition_required,
                        img_loc,
                        "An acquisition id is required when the plate has more "
                        "than one acquisition.",
                    )
            elif image.acquisition not in known:
                result.add_error(
                    IssueType.acquisition_not_found,
                    img_loc,
                    f"Acquisition {image.acquisition} is not defined in the plate.",
                    ctx={"expected": sorted(known), "found": image.acquisition},
                )

        for acq_id, count in well.fields_per_acquisition().items():
            if acq_id not in known:
                continue
            limit = known[acq_id].maximumfieldcount
            if limit is not None and count > limit:
                result.add_error(
                    IssueType.field_count_exceeded,
                    (*loc, "images"),
                    f"The well has {count} fields of view for acquisition {acq_id}, "
                    f"more than its maximumfieldcount ({limit}).",
                )
        return result


def _is_coarser(scale: Sequence[float], previous: Sequence[float]) -> bool:
    """True if `scale` is no finer than `previous` on any axis, coarser on one."""
    pairs = list(zip(scale, previous, strict=True))
    return all(s >= p for s, p in pairs) and any(s > p for s, p in pairs)


def _has_scale(transforms: Sequence[AnyTransformation]) -> bool:
    return any(isinstance(s, ScaleTransformation) for t in transforms for s in steps(t))
