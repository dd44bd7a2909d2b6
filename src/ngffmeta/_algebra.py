"""Composition and canonicalization of coordinate transformations.

Transformations are applied left to right within a sequence (the first step is
applied first), matching the order of a `coordinateTransformations` list.
"""

from __future__ import annotations

import math
import operator
from typing import TYPE_CHECKING

from ._errors import IncompatibleRank
from ._transforms import (
    IdentityTransformation,
    ScaleTransformation,
    SequenceTransformation,
    TranslationTransformation,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ._transforms import AnyTransformation, StepTransformation

__all__ = [
    "apply",
    "apply_inverse",
    "canonicalize",
    "chain",
    "compose",
    "effective_scale",
    "rank",
    "steps",
]


def steps(t: AnyTransformation) -> tuple[StepTransformation, ...]:
    """Return the flat tuple of non-sequence steps making up `t`."""
    if isinstance(t, SequenceTransformation):
        return t.transformations
    return (t,)


def rank(t: AnyTransformation) -> int:
    """Return the number of axes `t` operates on.

    Identity (and path-backed steps, whose vectors are not known) have rank 0,
    which is compatible with any rank.

    Raises
    ------
    IncompatibleRank
        If the steps of a sequence disagree about their dimensionality.
    """
    known = sorted({s.ndim for s in steps(t) if s.ndim})
    if len(known) > 1:
        raise IncompatibleRank(*known)
    return known[0] if known else 0


def compose(a: AnyTransformation, b: AnyTransformation) -> SequenceTransformation:
    """Return the transformation that applies `b` first, then `a`.

    Nested sequences are flattened into a single ordered chain.

    Raises
    ------
    IncompatibleRank
        If `a` and `b` operate on a different number of axes.
    """
    rank_a, rank_b = rank(a), rank(b)
    if rank_a and rank_b and rank_a != rank_b:
        raise IncompatibleRank(rank_b, rank_a)
    return SequenceTransformation(transformations=(*steps(b), *steps(a)))


def chain(transforms: Iterable[AnyTransformation]) -> SequenceTransformation:
    """Compose a list of transformations, applied in the order given.

    This is how a `coordinateTransformations` list is interpreted.
    """
    result = SequenceTransformation(transformations=())
    for t in transforms:
        result = compose(t, result)
    return result


def canonicalize(t: AnyTransformation) -> AnyTransformation:
    """Reduce `t` to its minimal equivalent form.

    - identity steps are dropped
    - adjacent inline scales are merged by elementwise product
    - adjacent inline translations are merged by elementwise sum

    The order of non-commuting steps is preserved. An empty result is an
    `IdentityTransformation`, a single step is returned on its own.
    """
    rank(t)  # raises on inconsistent sequences
    out: list[StepTransformation] = []
    for step in steps(t):
        if isinstance(step, IdentityTransformation):
            continue
        prev = out[-1] if out else None
        if (
            prev is not None
            and type(prev) is type(step)
            and prev.vector is not None  # type: ignore[union-attr]
            and step.vector is not None
        ):
            is_scale = isinstance(step, ScaleTransformation)
            op = operator.mul if is_scale else operator.add
            merged = tuple(map(op, prev.vector, step.vector))  # type: ignore
            out[-1] = type(step)(**{step.vector_key: merged})
        else:
            out.append(step)

    if not out:
        return IdentityTransformation()
    if len(out) == 1:
        return out[0]
    return SequenceTransformation(transformations=tuple(out))


def effective_scale(t: AnyTransformation) -> tuple[float, ...] | None:
    """Return the overall scale factor per axis of `t`.

    This is the elementwise product of every scale step. Returns None if `t`
    contains no scale, or if any scale is path-backed (and thus unknown).
    """
    scales = [s for s in steps(t) if isinstance(s, ScaleTransformation)]
    if not scales or any(s.scale is None for s in scales):
        return None
    ndim = rank(t)
    return tuple(
        math.prod(s.scale[i] for s in scales)  # type: ignore[index]
        for i in range(ndim)
    )


def _check_coord(t: AnyTransformation, coord: Sequence[float]) -> list[float]:
    ndim = rank(t)
    if ndim and ndim != len(coord):
        raise IncompatibleRank(len(coord), ndim)
    for step in steps(t):
        if isinstance(step, (ScaleTransformation, TranslationTransformation)):
            if step.vector is None:
                raise ValueError(
                    f"Cannot apply a path-backed {step.type} transformation "
                    f"({step.path!r}) without loading its data."
                )
    return list(coord)


def apply(t: AnyTransformation, coord: Sequence[float]) -> tuple[float, ...]:
    """Map a point from array index space to physical space."""
    out = _check_coord(t, coord)
    for step in steps(t):
        if isinstance(step, IdentityTransformation):
            continue
        vec: tuple[float, ...] = step.vector  # type: ignore[assignment]
        if isinstance(step, ScaleTransformation):
            out = [c * s for c, s in zip(out, vec, strict=True)]
        else:
            out = [c + s for c, s in zip(out, vec, strict=True)]
    return tuple(out)


def apply_inverse(t: AnyTransformation, coord: Sequence[float]) -> tuple[float, ...]:
    """Map a point from physical space back to array index space."""
    out = _check_coord(t, coord)
    for step in reversed(steps(t)):
        if isinstance(step, IdentityTransformation):
            continue
        vec: tuple[float, ...] = step.vector  # type: ignore[assignment]
        if isinstance(step, ScaleTransformation):
            out = [c / s for c, s in zip(out, vec, strict=True)]
        else:
            out = [c - s for c, s in zip(out, vec, strict=True)]
    return tuple(out)
