import re

from ngffmeta import _config

BAD_NODE_RE = re.compile(r"^(?:|\.+|__.*|.*\/.*)$")
"""Regular expression matching invalid Zarr node names.

- must not be the empty string ("")
- must not include the character "/"
- must not be a string composed only of period characters, e.g. "." or ".."
- must not start with the reserved prefix "__"
"""

STRICT_FOV_RE = re.compile(r"^[A-Za-z0-9]+$")
RELAXED_FOV_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def check_node_name(path: str, allow_sep: str | None = "/") -> set[str]:
    """Check that `path` is a valid Zarr node name.

    "risky" names include characters outside of the set [A-Za-z0-9._-], which may
    cause issues on some filesystems or when used in URLs.

    set NGFFMETA_ALLOW_RISKY_NODE_NAMES=1 to never report risky characters.

    Parameters
    ----------
    path : str
        The Zarr node name to check.
    allow_sep : str | None, optional
        If provided, allows the path to *include* this separator character, in which
        case parts will be checked separately. Use when you want to allow a string
        to represent a nested path within a Zarr store, by default "/".

    Returns
    -------
    set[str]
        The risky characters found in the name (empty if none).

    Raises
    ------
    ValueError
        If the name (or one of its parts) is not a valid Zarr node name.
    """
    parts = path.split(allow_sep) if allow_sep else [path]
    risky: set[str] = set()
    for part in parts:
        if BAD_NODE_RE.match(part):
            raise ValueError(
                f"The name {path!r} is not a valid Zarr node name. See "
                "https://zarr-specs.readthedocs.io/en/latest/v3/core/index.html#node-names"
            )
        # note, we allow '/' here to support nested paths within a Zarr store
        # using logical paths rather than file system paths.
        risky.update(re.findall(r"[^A-Za-z0-9._-]", part))
    if _config.allow_risky_node_names():
        return set()
    return risky


def check_fov_name(path: str) -> set[str]:
    """Check a field-of-view path.

    OME-NGFF states that FOV names should be alphanumeric only: [A-Za-z0-9].
    This is overly restrictive, so we allow a relaxed set of characters [A-Za-z0-9._-]
    but report the extra characters so they can be surfaced as warnings.

    set NGFFMETA_STRICT_FOV_NAMES=1 to enforce strict compliance.
    set NGFFMETA_IGNORE_RISKY_FOV_NAMES=1 to never report non-alphanumeric characters.

    Returns
    -------
    set[str]
        The non-alphanumeric characters found in the name (empty if none).

    Raises
    ------
    ValueError
        If the name does not match the relaxed (or strict) pattern.
    """
    if _config.strict_fov_names() and not STRICT_FOV_RE.match(path):
        raise ValueError(f"String should match pattern {STRICT_FOV_RE.pattern}.")
    if not RELAXED_FOV_RE.match(path):
        raise ValueError(f"String should match pattern {RELAXED_FOV_RE.pattern}.")
    if _config.ignore_risky_fov_names():
        return set()
    return set(re.findall(r"[^A-Za-z0-9]", path))
