from __future__ import annotations

from typing import Any

import pytest
from conftest import issue_types, load_example, multiscale_v04, scale_dataset

from ngffmeta import Multiscale, apply, parse, validate


def _v05(**overrides: Any) -> dict[str, Any]:
    ms = multiscale_v04(**overrides)
    ms.pop("version")
    return {"version": "0.5", "multiscales": [ms]}


def _errors(attrs: dict) -> list[str]:
    return issue_types(validate(parse(attrs)), "error")


def test_example_image_is_valid() -> None:
    doc = parse(load_example("v04/image.json"))
    report = validate(doc)
    assert report.issues == []

    (ms,) = doc.multiscales or ()
    assert isinstance(ms, Multiscale)
    assert ms.axis_names == ("t", "c", "z", "y", "x")
    assert ms.ndim == 5
    assert [ds.effective_scale for ds in ms.datasets] == [
        (1, 1, 0.5, 0.5, 0.5),
        (1, 1, 1, 1, 1),
        (1, 1, 2, 2, 2),
    ]
    assert ms.type == "gaussian"


def test_dataset_helpers() -> None:
    ms = Multiscale.model_validate(
        multiscale_v04(datasets=[scale_dataset("0", 1, 2, translation=(5, 6))])
    )
    (ds,) = ms.datasets
    assert ds.scale_transform is not None
    assert ds.scale_transform.scale == (1, 2)
    assert ds.translation_transform is not None
    assert ds.translation_transform.translation == (5, 6)
    assert ds.transform.transformations == ds.coordinateTransformations


def test_level_transform() -> None:
    ms = Multiscale.model_validate(
        multiscale_v04(
            coordinateTransformations=[{"type": "translation", "translation": [1, 1]}]
        )
    )
    t = ms.level_transform(1)
    assert [type(s).__name__ for s in t.transformations] == [
        "ScaleTransformation",
        "TranslationTransformation",
    ]
    assert apply(t, (3, 4)) == (7.0, 9.0)


VALID_V04: list[dict[str, Any]] = [
    multiscale_v04(),
    multiscale_v04(datasets=[scale_dataset("0", 1, 1, translation=(0.5, 0.5))]),
    # increasing on one axis only
    multiscale_v04(datasets=[scale_dataset("0", 1, 1), scale_dataset("1", 1, 2)]),
    # global transforms: scale is optional
    multiscale_v04(
        coordinateTransformations=[{"type": "translation", "translation": [1, 1]}]
    ),
    multiscale_v04(coordinateTransformations=[{"type": "scale", "scale": [1, 1]}]),
    # path-backed scale
    multiscale_v04(
        datasets=[
            {
                "path": "0",
                "coordinateTransformations": [{"type": "scale", "path": "scale0"}],
            }
        ]
    ),
]


@pytest.mark.parametrize("ms", VALID_V04)
def test_valid_v04_multiscales(ms: dict) -> None:
    assert _errors({"multiscales": [ms]}) == []


INVALID_V04: list[tuple[dict, str]] = [
    # no datasets
    (multiscale_v04(datasets=[]), "datasets_empty"),
    # duplicate paths
    (
        multiscale_v04(datasets=[scale_dataset("0", 1, 1), scale_dataset("0", 2, 2)]),
        "dataset_path_duplicate",
    ),
    # invalid zarr node name
    (multiscale_v04(datasets=[scale_dataset("a//b", 1, 1)]), "dataset_path_invalid"),
    (multiscale_v04(datasets=[scale_dataset("..", 1, 1)]), "dataset_path_invalid"),
    # wrong dimensionality
    (multiscale_v04(datasets=[scale_dataset("0", 1, 1, 1)]), "transform_ndim_mismatch"),
    (
        multiscale_v04(datasets=[scale_dataset("0", 1, 1, translation=(1, 1, 1))]),
        "transform_ndim_mismatch",
    ),
    # no scale
    (
        multiscale_v04(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {"type": "translation", "translation": [1, 1]}
                    ],
                }
            ]
        ),
        "scale_missing",
    ),
    # two scales
    (
        multiscale_v04(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {"type": "scale", "scale": [1, 1]},
                        {"type": "scale", "scale": [1, 1]},
                    ],
                }
            ]
        ),
        "transform_count",
    ),
    # two translations
    (
        multiscale_v04(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {"type": "scale", "scale": [1, 1]},
                        {"type": "translation", "translation": [1, 1]},
                        {"type": "translation", "translation": [1, 1]},
                    ],
                }
            ]
        ),
        "transform_count",
    ),
    # translation before scale
    (
        multiscale_v04(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {"type": "translation", "translation": [1, 1]},
                        {"type": "scale", "scale": [1, 1]},
                    ],
                }
            ]
        ),
        "transform_order",
    ),
    # identity and sequence are not part of 0.4
    (
        multiscale_v04(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {"type": "scale", "scale": [1, 1]},
                        {"type": "identity"},
                    ],
                }
            ]
        ),
        "transform_unsupported",
    ),
    # levels not getting coarser
    (
        multiscale_v04(datasets=[scale_dataset("0", 2, 2), scale_dataset("1", 1, 1)]),
        "scale_not_increasing",
    ),
    (
        multiscale_v04(datasets=[scale_dataset("0", 1, 1), scale_dataset("1", 1, 1)]),
        "scale_not_increasing",
    ),
    (
        multiscale_v04(datasets=[scale_dataset("0", 1, 2), scale_dataset("1", 2, 1)]),
        "scale_not_increasing",
    ),
    # global transforms
    (
        multiscale_v04(coordinateTransformations=[{"type": "scale", "scale": [1]}]),
        "transform_ndim_mismatch",
    ),
    (
        multiscale_v04(
            coordinateTransformations=[
                {"type": "translation", "translation": [1, 1]},
                {"type": "scale", "scale": [1, 1]},
            ]
        ),
        "transform_order",
    ),
]


@pytest.mark.parametrize("ms, expected", INVALID_V04)
def test_invalid_v04_multiscales(ms: dict, expected: str) -> None:
    assert expected in _errors({"multiscales": [ms]})


def test_scale_not_increasing_details() -> None:
    ms = multiscale_v04(
        datasets=[
            scale_dataset("0", 1, 1),
            scale_dataset("1", 2, 2),
            scale_dataset("2", 2, 1),
        ]
    )
    report = validate(parse({"multiscales": [ms]}))
    (issue,) = report.errors()
    assert issue["type"] == "scale_not_increasing"
    assert issue["loc"] == ("multiscales", 0, "datasets", 2)
    assert issue["ctx"] == {"previous": (2, 2), "found": (2, 1)}


def test_path_backed_scale_warns_and_resets_ordering() -> None:
    ms = multiscale_v04(
        datasets=[
            scale_dataset("0", 4, 4),
            {
                "path": "1",
                "coordinateTransformations": [{"type": "scale", "path": "s1"}],
            },
            scale_dataset("2", 1, 1),
        ]
    )
    report = validate(parse({"multiscales": [ms]}))
    assert report.is_valid
    assert issue_types(report) == ["scale_unknown"]


def test_risky_dataset_path_warns(monkeypatch: pytest.MonkeyPatch) -> None:
    attrs = {"multiscales": [multiscale_v04(datasets=[scale_dataset("s 0", 1, 1)])]}
    report = validate(parse(attrs))
    assert report.is_valid
    assert issue_types(report, "warning") == ["node_name_risky"]

    monkeypatch.setenv("NGFFMETA_ALLOW_RISKY_NODE_NAMES", "1")
    assert validate(parse(attrs)).issues == []


# ------------------------------------------------------------------------------
# 0.5
# ------------------------------------------------------------------------------


def test_example_v05_image_is_valid() -> None:
    doc = parse(load_example("v05/image.json"))
    assert validate(doc).issues == []
    (ms,) = doc.multiscales or ()
    assert [ds.effective_scale for ds in ms.datasets] == [
        (1, 0.5, 0.25, 0.25),
        (1, 0.5, 0.5, 0.5),
    ]


VALID_V05: list[dict[str, Any]] = [
    _v05(),
    # translation first is allowed in 0.5
    _v05(
        datasets=[
            {
                "path": "0",
                "coordinateTransformations": [
                    {"type": "translation", "translation": [1, 1]},
                    {"type": "scale", "scale": [1, 1]},
                ],
            }
        ]
    ),
    # several scales and identities
    _v05(
        datasets=[
            {
                "path": "0",
                "coordinateTransformations": [
                    {"type": "scale", "scale": [1, 1]},
                    {"type": "identity"},
                    {"type": "scale", "scale": [0.5, 0.5]},
                ],
            },
            scale_dataset("1", 1, 1),
        ]
    ),
    # the scale may live inside a sequence
    _v05(
        datasets=[
            {
                "path": "0",
                "coordinateTransformations": [
                    {
                        "type": "sequence",
                        "transformations": [{"type": "scale", "scale": [1, 1]}],
                    }
                ],
            }
        ]
    ),
]


@pytest.mark.parametrize("attrs", VALID_V05)
def test_valid_v05_multiscales(attrs: dict) -> None:
    assert validate(parse(attrs)).issues == []


INVALID_V05: list[tuple[dict, str]] = [
    (
        _v05(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [{"type": "identity"}],
                }
            ]
        ),
        "scale_missing",
    ),
    (
        _v05(
            datasets=[
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {
                            "type": "sequence",
                            "transformations": [
                                {"type": "scale", "scale": [1, 1]},
                                {"type": "translation", "translation": [1, 1, 1]},
                            ],
                        }
                    ],
                }
            ]
        ),
        "transform_ndim_mismatch",
    ),
    (
        _v05(datasets=[scale_dataset("0", 2, 2), scale_dataset("1", 1, 1)]),
        "scale_not_increasing",
    ),
]


@pytest.mark.parametrize("attrs, expected", INVALID_V05)
def test_invalid_v05_multiscales(attrs: dict, expected: str) -> None:
    assert expected in _errors(attrs)


def test_nested_ndim_mismatch_location() -> None:
    attrs = _v05(
        datasets=[
            {
                "path": "0",
                "coordinateTransformations": [
                    {"type": "scale", "scale": [1, 1]},
                    {
                        "type": "sequence",
                        "transformations": [
                            {"type": "identity"},
                            {"type": "translation", "translation": [1, 1, 1]},
                        ],
                    },
                ],
            }
        ]
    )
    (issue,) = validate(parse(attrs)).errors()
    assert issue["type"] == "transform_ndim_mismatch"
    assert issue["loc"] == (
        "multiscales",
        0,
        "datasets",
        0,
        "coordinateTransformations",
        1,
        "transformations",
        1,
    )
