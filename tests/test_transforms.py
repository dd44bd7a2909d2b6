from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from ngffmeta import (
    CoordinateTransformation,
    IdentityTransformation,
    IncompatibleRank,
    ScaleTransformation,
    SequenceTransformation,
    TranslationTransformation,
    apply,
    apply_inverse,
    canonicalize,
    chain,
    compose,
    effective_scale,
    rank,
    steps,
)

CT = TypeAdapter(CoordinateTransformation)


def Scale(*v: float) -> ScaleTransformation:  # noqa: N802
    return ScaleTransformation(scale=v)


def Translation(*v: float) -> TranslationTransformation:  # noqa: N802
    return TranslationTransformation(translation=v)


@pytest.mark.parametrize(
    "data, cls",
    [
        ({"type": "identity"}, IdentityTransformation),
        ({"type": "scale", "scale": [1, 2, 3]}, ScaleTransformation),
        ({"type": "scale", "path": "path/to/scale"}, ScaleTransformation),
        ({"type": "translation", "translation": [0.5]}, TranslationTransformation),
        (
            {"type": "translation", "path": "path/to/whatever"},
            TranslationTransformation,
        ),
        (
            {
                "type": "sequence",
                "transformations": [{"type": "scale", "scale": [2, 2]}],
            },
            SequenceTransformation,
        ),
    ],
)
def test_valid_transformations(data: dict, cls: type) -> None:
    assert isinstance(CT.validate_python(data), cls)


@pytest.mark.parametrize(
    "data, msg",
    [
        ({"type": "scale"}, "exactly one of 'scale' or 'path'"),
        (
            {"type": "scale", "scale": [1.0], "path": "p"},
            "exactly one of 'scale' or 'path'",
        ),
        ({"type": "translation"}, "exactly one of 'translation' or 'path'"),
        ({"type": "scale", "scale": []}, "at least 1 item"),
        ({"type": "rotation", "rotation": [1]}, "does not match any of the expected"),
        # sequences do not nest
        (
            {
                "type": "sequence",
                "transformations": [{"type": "sequence", "transformations": []}],
            },
            "does not match any of the expected tags",
        ),
    ],
)
def test_invalid_transformations(data: dict, msg: str) -> None:
    with pytest.raises(ValidationError, match=msg):
        CT.validate_python(data)


def test_vector_and_ndim() -> None:
    assert Scale(1, 2, 3).vector == (1, 2, 3)
    assert Scale(1, 2, 3).ndim == 3
    assert ScaleTransformation(path="s").ndim == 0
    assert ScaleTransformation(path="s").vector is None
    assert IdentityTransformation().ndim == 0
    seq = SequenceTransformation(transformations=(Scale(1, 2), Translation(0, 1)))
    assert seq.ndim == 2


def test_path_is_serialized_after_vector_key() -> None:
    data = ScaleTransformation(path="p").model_dump(exclude_none=True)
    assert list(data) == ["type", "path"]
    data = Scale(1.0).model_dump(exclude_none=True)
    assert list(data) == ["type", "scale"]


# ------------------------------------------------------------------------------
# algebra
# ------------------------------------------------------------------------------


def test_steps_flattens() -> None:
    s = Scale(1, 2)
    assert steps(s) == (s,)
    seq = SequenceTransformation(transformations=(s, Translation(1, 1)))
    assert steps(seq) == (s, Translation(1, 1))


def test_rank() -> None:
    assert rank(Scale(1, 2, 3)) == 3
    assert rank(IdentityTransformation()) == 0
    assert rank(TranslationTransformation(path="x")) == 0
    seq = SequenceTransformation(
        transformations=(IdentityTransformation(), Scale(1, 2))
    )
    assert rank(seq) == 2
    bad = SequenceTransformation(transformations=(Scale(1, 2), Translation(1, 2, 3)))
    with pytest.raises(IncompatibleRank):
        rank(bad)


def test_compose_applies_second_argument_first() -> None:
    result = compose(Scale(2, 2), Translation(1, 1))
    assert isinstance(result, SequenceTransformation)
    assert result.transformations == (Translation(1, 1), Scale(2, 2))
    assert apply(result, (0, 0)) == (2.0, 2.0)


def test_compose_flattens_sequences() -> None:
    inner = SequenceTransformation(transformations=(Scale(2, 2), Translation(1, 1)))
    result = compose(inner, Scale(3, 3))
    assert result.transformations == (Scale(3, 3), Scale(2, 2), Translation(1, 1))


def test_compose_incompatible_rank() -> None:
    with pytest.raises(IncompatibleRank, match="2, 3"):
        compose(Scale(1, 1, 1), Translation(1, 1))


def test_compose_with_identity_and_path() -> None:
    assert rank(compose(IdentityTransformation(), Scale(1, 2, 3))) == 3
    assert rank(compose(ScaleTransformation(path="p"), Scale(1, 2))) == 2


def test_chain_applies_in_list_order() -> None:
    result = chain([Scale(2, 2), Translation(1, 1)])
    assert result.transformations == (Scale(2, 2), Translation(1, 1))
    assert apply(result, (1, 1)) == (3.0, 3.0)
    assert chain([]).transformations == ()


def test_canonicalize_compose_scale_translation() -> None:
    result = canonicalize(compose(Scale(2, 2), Translation(1, 1)))
    assert isinstance(result, SequenceTransformation)
    assert result.transformations == (Translation(1, 1), Scale(2, 2))


@pytest.mark.parametrize(
    "steps_in, expected",
    [
        ((), IdentityTransformation()),
        (
            (IdentityTransformation(), IdentityTransformation()),
            IdentityTransformation(),
        ),
        ((Scale(1, 2), IdentityTransformation()), Scale(1, 2)),
        ((Scale(1, 2), Scale(3, 4)), Scale(3, 8)),
        ((Translation(1, 2), Translation(3, 4)), Translation(4, 6)),
        (
            (Scale(2, 2), IdentityTransformation(), Scale(2, 2), Translation(1, 1)),
            SequenceTransformation(transformations=(Scale(4, 4), Translation(1, 1))),
        ),
        (
            (Scale(2, 2), Translation(1, 1), Scale(2, 2)),
            SequenceTransformation(
                transformations=(Scale(2, 2), Translation(1, 1), Scale(2, 2))
            ),
        ),
        # path-backed steps are never merged
        (
            (ScaleTransformation(path="a"), Scale(2, 2)),
            SequenceTransformation(
                transformations=(ScaleTransformation(path="a"), Scale(2, 2))
            ),
        ),
    ],
)
def test_canonicalize(steps_in: tuple, expected: object) -> None:
    seq = SequenceTransformation(transformations=steps_in)
    assert canonicalize(seq) == expected


def test_canonicalize_is_idempotent() -> None:
    seq = SequenceTransformation(
        transformations=(Scale(2, 3), Scale(2, 1), Translation(1, 1), Translation(1, 1))
    )
    once = canonicalize(seq)
    assert canonicalize(once) == once


def test_canonicalize_preserves_mapping() -> None:
    seq = SequenceTransformation(
        transformations=(Scale(2, 3), Translation(1, -1), Translation(0.5, 0.5))
    )
    point = (3.0, 4.0)
    assert apply(canonicalize(seq), point) == apply(seq, point)


def test_canonicalize_rejects_inconsistent_ranks() -> None:
    seq = SequenceTransformation(transformations=(Scale(2, 3), Translation(1, 1, 1)))
    with pytest.raises(IncompatibleRank):
        canonicalize(seq)


def test_effective_scale() -> None:
    assert effective_scale(Scale(2, 3)) == (2, 3)
    seq = chain([Scale(2, 3), Translation(1, 1), Scale(2, 0.5)])
    assert effective_scale(seq) == (4, 1.5)
    assert effective_scale(Translation(1, 1)) is None
    assert effective_scale(chain([ScaleTransformation(path="p"), Scale(2, 2)])) is None


def test_apply_and_inverse() -> None:
    t = chain([Scale(0.5, 2), Translation(10, 20)])
    assert apply(t, (4, 3)) == (12.0, 26.0)
    assert apply_inverse(t, (12, 26)) == (4.0, 3.0)
    assert apply(IdentityTransformation(), (1, 2, 3)) == (1, 2, 3)


def test_apply_errors() -> None:
    with pytest.raises(IncompatibleRank):
        apply(Scale(1, 2), (1, 2, 3))
    with pytest.raises(ValueError, match="path-backed"):
        apply(ScaleTransformation(path="p"), (1, 2))
