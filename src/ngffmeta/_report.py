"""Structured results of semantic validation.

Validation never raises for a structurally valid document: every problem is
collected as an issue in a `ValidationReport`. Callers decide what to do with
it, e.g. `report.raise_if_invalid()` or `report.emit_warnings()`.
"""

from __future__ import annotations

import textwrap
import warnings
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Literal

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "IssueDetails",
    "IssueType",
    "NGFFValidationError",
    "NGFFValidationWarning",
    "Severity",
    "ValidationReport",
]

Severity = Literal["error", "warning"]
Loc = tuple[int | str, ...]


class IssueDetails(TypedDict):
    severity: Severity
    """Whether this issue makes the document non-conformant ("error") or not."""
    type: str
    """
    The type of issue that occurred, an identifier designed for programmatic use
    that will change rarely or never.
    """
    loc: Loc
    """Tuple of str and ints identifying where in the metadata the issue occurred."""
    msg: str
    """A human readable message."""
    ctx: NotRequired[dict[str, Any]]
    """
    Additional context about the issue.

    Common context fields:
    - expected: What was expected (type, value, or state)
    - found: What was actually found
    - locs: Other locations involved (e.g. the first of two duplicates)
    """


class IssueType(Enum):
    acquisition_not_found = auto()
    acquisition_required = auto()
    acquisition_time_order = auto()
    axis_count = auto()
    axis_name_duplicate = auto()
    axis_order = auto()
    axis_type_count = auto()
    axis_unit_unknown = auto()
    bf2raw_layout_invalid = auto()
    dataset_path_duplicate = auto()
    dataset_path_invalid = auto()
    datasets_empty = auto()
    document_empty = auto()
    extension_key_unknown = auto()
    field_count_exceeded = auto()
    fov_path_duplicate = auto()
    fov_path_invalid = auto()
    fov_path_risky = auto()
    image_label_without_multiscales = auto()
    label_path_duplicate = auto()
    label_path_invalid = auto()
    label_value_duplicate = auto()
    labels_empty = auto()
    node_name_risky = auto()
    omero_channel_count = auto()
    omero_color_invalid = auto()
    omero_malformed = auto()
    omero_window_invalid = auto()
    plate_acquisition_duplicate = auto()
    plate_index_duplicate = auto()
    plate_index_empty = auto()
    plate_index_name_invalid = auto()
    plate_wells_empty = auto()
    scale_missing = auto()
    scale_not_increasing = auto()
    scale_unknown = auto()
    series_empty = auto()
    transform_ndim_mismatch = auto()
    transform_order = auto()
    transform_count = auto()
    transform_unsupported = auto()
    version_mismatch = auto()
    version_missing = auto()
    well_empty = auto()
    well_index_duplicate = auto()
    well_index_out_of_range = auto()
    well_path_duplicate = auto()
    well_path_invalid = auto()
    well_path_mismatch = auto()

    def __str__(self) -> str:
        return self.name


def entity_path(loc: Loc) -> str:
    """Format a location as a dotted path (e.g., "plate.wells.0.path")."""
    return ".".join(str(x) for x in loc)


def _format_issue(issue: IssueDetails) -> str:
    ctx = issue.get("ctx", {})
    # "expected" and "found" lead, other context keys follow in insertion order
    keys = [k for k in ("expected", "found") if k in ctx]
    keys += [k for k in ctx if k not in keys]
    extra = "".join(f", {k}={ctx[k]!r}" for k in keys)
    body = textwrap.indent(f"{issue['msg']} [type={issue['type']}{extra}]", "  ")
    return f"{entity_path(issue['loc']) or '<document>'}\n{body}"


class _IssueListMixin:
    """Shared by the error and the warning: a pydantic-style multi-line message.

    ```
    2 validation error(s) for OME-NGFF document
    plate.wells.0.rowIndex
      Well A/1 has rowIndex 3 but only 1 rows exist [type=well_index_out_of_range]
    ...
    ```
    """

    _noun: str
    _issues: list[IssueDetails]

    title = "OME-NGFF document"

    def _init_issues(self, issues: list[IssueDetails]) -> str:
        self._issues = issues
        lines = [f"{len(issues)} validation {self._noun} for {self.title}"]
        lines.extend(_format_issue(i) for i in issues)
        return "\n".join(lines)

    def _details(self, include_context: bool) -> list[IssueDetails]:
        if include_context:
            return list(self._issues)
        return [
            {k: v for k, v in i.items() if k != "ctx"}  # type: ignore[misc]
            for i in self._issues
        ]


class NGFFValidationError(_IssueListMixin, ValueError):
    """Raised by `ValidationReport.raise_if_invalid` for a non-conformant document."""

    _noun = "error(s)"

    def __init__(self, errors: list[IssueDetails]) -> None:
        super().__init__(self._init_issues(errors))

    def errors(self, *, include_context: bool = True) -> list[IssueDetails]:
        """The errors that made validation fail, optionally without their `ctx`."""
        return self._details(include_context)


class NGFFValidationWarning(_IssueListMixin, UserWarning):
    """Emitted by `ValidationReport.emit_warnings` for SHOULD-level issues.

    None of the listed issues make the document non-conformant.
    """

    _noun = "warning(s)"

    def __init__(self, warnings_list: list[IssueDetails]) -> None:
        super().__init__(self._init_issues(warnings_list))

    def warnings(self, *, include_context: bool = True) -> list[IssueDetails]:
        """The recommendations that were not followed."""
        return self._details(include_context)


@dataclass(slots=True)
class ValidationReport:
    """Result of validating a document: every issue found, in discovery order."""

    issues: list[IssueDetails] = field(default_factory=list)

    def merge(self, other: ValidationReport) -> ValidationReport:
        """Merge this report with another, combining their issues."""
        return ValidationReport(issues=self.issues + other.issues)

    def _add(
        self,
        severity: Severity,
        issue_type: IssueType,
        loc: Loc,
        msg: str,
        ctx: dict[str, Any] | None,
    ) -> ValidationReport:
        issue: IssueDetails = {
            "severity": severity,
            "type": str(issue_type),
            "loc": loc,
            "msg": msg,
        }
        if ctx is not None:
            issue["ctx"] = ctx
        self.issues.append(issue)
        return self

    def add_error(
        self,
        issue_type: IssueType,
        loc: Loc,
        msg: str,
        *,
        ctx: dict[str, Any] | None = None,
    ) -> ValidationReport:
        """Add an error (a MUST violation) and return self for chaining.

        Parameters
        ----------
        issue_type : IssueType
            The type of error that occurred.
        loc : tuple[int | str, ...]
            Location tuple identifying where in the metadata the error occurred.
        msg : str
            Human-readable error message.
        ctx : dict[str, Any] | None
            Additional context about the error.
        """
        return self._add("error", issue_type, loc, msg, ctx)

    def add_warning(
        self,
        issue_type: IssueType,
        loc: Loc,
        msg: str,
        *,
        ctx: dict[str, Any] | None = None,
    ) -> ValidationReport:
        """Add a warning and return self for chaining.

        Warnings are for SHOULD directives and informational notices:
        recommendations that don't invalidate the document.
        """
        return self._add("warning", issue_type, loc, msg, ctx)

    def errors(self) -> list[IssueDetails]:
        return [i for i in self.issues if i["severity"] == "error"]

    def warnings(self) -> list[IssueDetails]:
        return [i for i in self.issues if i["severity"] == "warning"]

    def has_errors(self) -> bool:
        return any(i["severity"] == "error" for i in self.issues)

    @property
    def is_valid(self) -> bool:
        """Return True if no errors were found (warnings don't affect validity)."""
        return not self.has_errors()

    def raise_if_invalid(self) -> None:
        """Raise `NGFFValidationError` if any errors were found."""
        if errors := self.errors():
            raise NGFFValidationError(errors)

    def emit_warnings(self, stacklevel: int = 2) -> None:
        """Issue all warnings of this report as one `NGFFValidationWarning`."""
        if issues := self.warnings():
            warnings.warn(NGFFValidationWarning(issues), stacklevel=stacklevel + 1)
