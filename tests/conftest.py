from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from ngffmeta import ValidationReport

DATA = Path(__file__).parent / "data"
EXAMPLE_DOCUMENTS = sorted(DATA.rglob("*.json"))

_ENV_VARS = (
    "NGFFMETA_VERSIONS",
    "NGFFMETA_ALLOW_RISKY_NODE_NAMES",
    "NGFFMETA_STRICT_FOV_NAMES",
    "NGFFMETA_IGNORE_RISKY_FOV_NAMES",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure the tests never see configuration from the calling shell."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def load_example(path: Path | str) -> dict[str, Any]:
    return json.loads((DATA / path).read_text())


def issue_types(report: ValidationReport, severity: str | None = None) -> list[str]:
    return [
        i["type"]
        for i in report.issues
        if severity is None or i["severity"] == severity
    ]


def multiscale_v04(**overrides: Any) -> dict[str, Any]:
    """A minimal, valid 0.4 multiscale, with any key replaced."""
    ms: dict[str, Any] = {
        "version": "0.4",
        "axes": [
            {"name": "y", "type": "space", "unit": "micrometer"},
            {"name": "x", "type": "space", "unit": "micrometer"},
        ],
        "datasets": [
            {
                "path": "0",
                "coordinateTransformations": [{"type": "scale", "scale": [1, 1]}],
            },
            {
                "path": "1",
                "coordinateTransformations": [{"type": "scale", "scale": [2, 2]}],
            },
        ],
    }
    ms.update(overrides)
    return ms


def scale_dataset(path: str, *scale: float, translation: Any = None) -> dict:
    transforms: list[dict] = [{"type": "scale", "scale": list(scale)}]
    if translation is not None:
        transforms.append({"type": "translation", "translation": list(translation)})
    return {"path": path, "coordinateTransformations": transforms}
