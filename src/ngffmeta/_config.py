"""Runtime configuration read from environment variables.

Values are read every time they are needed, so tests (and callers) can change
them with `os.environ` or `monkeypatch.setenv` without reloading the package.

- `NGFFMETA_VERSIONS`: comma separated list of enabled specification versions.
  Accepts "stable", "draft", "0.4", "0.5" or "both". Defaults to "both".
- `NGFFMETA_ALLOW_RISKY_NODE_NAMES`: suppress warnings about risky zarr node names.
- `NGFFMETA_STRICT_FOV_NAMES`: require strictly alphanumeric field-of-view paths.
- `NGFFMETA_IGNORE_RISKY_FOV_NAMES`: suppress the non-alphanumeric FOV warning.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ngffmeta._schemas import SpecVersion

VERSIONS_ENV = "NGFFMETA_VERSIONS"
ALLOW_RISKY_NODE_NAMES_ENV = "NGFFMETA_ALLOW_RISKY_NODE_NAMES"
STRICT_FOV_NAMES_ENV = "NGFFMETA_STRICT_FOV_NAMES"
IGNORE_RISKY_FOV_NAMES_ENV = "NGFFMETA_IGNORE_RISKY_FOV_NAMES"

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def enabled_versions() -> frozenset[SpecVersion]:
    """Return the specification versions enabled by `NGFFMETA_VERSIONS`.

    Raises
    ------
    ValueError
        If the variable names an unknown version.
    """
    from ngffmeta._schemas import SpecVersion

    raw = os.getenv(VERSIONS_ENV, "").strip().lower()
    if not raw or raw in ("both", "all"):
        return frozenset(SpecVersion)

    aliases = {
        "stable": SpecVersion.STABLE,
        "draft": SpecVersion.DRAFT,
        **{v.value: v for v in SpecVersion},
    }
    enabled: set[SpecVersion] = set()
    for token in raw.split(","):
        if not (token := token.strip()):
            continue
        if token not in aliases:
            raise ValueError(
                f"Invalid value in {VERSIONS_ENV}: {token!r}. "
                f"Expected one of {sorted(aliases)} or 'both'."
            )
        enabled.add(aliases[token])
    return frozenset(enabled)


def allow_risky_node_names() -> bool:
    return _flag(ALLOW_RISKY_NODE_NAMES_ENV)


def strict_fov_names() -> bool:
    return _flag(STRICT_FOV_NAMES_ENV)


def ignore_risky_fov_names() -> bool:
    return _flag(IGNORE_RISKY_FOV_NAMES_ENV)
