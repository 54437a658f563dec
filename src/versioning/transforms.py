"""Derivation rules that turn a declared version into the comparable one.

Packages whose declared version carries extra build data (``1.2.3,4567``)
name one of these keywords to say which part is the real version.
"""

from typing import Callable, Dict

from .models import ConfigurationError


def _parts(version: str) -> list:
    return version.split(",")[0].split(":")[0].split(".")


def _join(parts: list, count: int) -> str:
    return ".".join(parts[:count])


TRANSFORMS: Dict[str, Callable[[str], str]] = {
    "before_comma": lambda v: v.split(",", 1)[0],
    "after_comma": lambda v: v.split(",", 1)[1] if "," in v else "",
    "before_colon": lambda v: v.split(":", 1)[0],
    "after_colon": lambda v: v.split(":", 1)[1] if ":" in v else "",
    "major": lambda v: _join(_parts(v), 1),
    "minor": lambda v: _parts(v)[1] if len(_parts(v)) > 1 else "",
    "patch": lambda v: _parts(v)[2] if len(_parts(v)) > 2 else "",
    "major_minor": lambda v: _join(_parts(v), 2),
    "major_minor_patch": lambda v: _join(_parts(v), 3),
    "no_dots": lambda v: v.replace(".", ""),
    "dots_to_underscores": lambda v: v.replace(".", "_"),
    "dots_to_hyphens": lambda v: v.replace(".", "-"),
}


def apply_transform(version: str, keyword: str) -> str:
    """Apply the named transform to ``version``.

    Raises:
        ConfigurationError: for an unknown keyword.
    """
    try:
        transform = TRANSFORMS[keyword.strip().lower()]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown version transform {keyword!r}") from exc
    return transform(version)
