"""Ordered version values parsed from loosely-structured version strings.

A version string is split into numeric and alphabetic tokens, e.g.
``"v2.0.0-beta3"`` becomes ``2, 0, 0, beta, 3``. Tokens are compared left
to right:

* numeric tokens compare numerically, text tokens lexically;
* the pre-release words ``dev < alpha < beta < pre < preview < rc`` rank
  below every number, any other text ranks above every number;
* missing positions in the shorter version count as ``0``, so ``1.0`` and
  ``1.0.0`` are equal, ``1.0.1`` > ``1.0``, ``1.0b`` > ``1.0`` and
  ``1.0-rc1`` < ``1.0``;
* zero components directly before a pre-release word are dropped as well,
  so ``1.0-rc`` and ``1.0.0-rc`` are equal.

A leading ``v`` before a digit is ignored.

``HeadVersion`` represents a development-branch commit. It only supports
equality by commit id; ordering it against anything raises
``ComparisonMisuseError``.
"""
from __future__ import annotations

import re
from typing import Any, Tuple, Union

_TOKEN_PATTERN = re.compile(r"\d+|[a-z]+")
_V_PREFIX = re.compile(r"^v(?=\d)")

PRERELEASE_ORDER = ("dev", "alpha", "beta", "pre", "preview", "rc")

_RANK_PRERELEASE = 0
_RANK_NUMERIC = 1
_RANK_TEXT = 2

Token = Tuple[int, Union[int, str]]
_PADDING: Token = (_RANK_NUMERIC, 0)


class ComparisonMisuseError(TypeError):
    """Raised when a HEAD commit version is ordered against another version."""


def _tokenize(raw: str) -> Tuple[Token, ...]:
    text = _V_PREFIX.sub("", raw.strip().lower())
    tokens = []
    for piece in _TOKEN_PATTERN.findall(text):
        if piece.isdigit():
            tokens.append((_RANK_NUMERIC, int(piece)))
        elif piece in PRERELEASE_ORDER:
            # Zero components before a pre-release word carry no weight: 1.0.0-rc == 1-rc.
            while len(tokens) > 1 and tokens[-1] == (_RANK_NUMERIC, 0):
                tokens.pop()
            tokens.append((_RANK_PRERELEASE, PRERELEASE_ORDER.index(piece)))
        else:
            tokens.append((_RANK_TEXT, piece))

    if not tokens:
        # Unparseable input still yields a comparable single-token version.
        return ((_RANK_TEXT, raw.strip()),)

    while len(tokens) > 1 and tokens[-1] == (_RANK_NUMERIC, 0):
        tokens.pop()
    return tuple(tokens)


class Version:
    """Immutable, totally ordered version value."""

    __slots__ = ("_raw", "_tokens")

    def __init__(self, raw: str):
        if isinstance(raw, Version):
            raw = raw.to_string()
        if raw is None:
            raise TypeError("Version string must not be None")
        object.__setattr__(self, "_raw", str(raw))
        object.__setattr__(self, "_tokens", _tokenize(str(raw)))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Version is immutable")

    @classmethod
    def parse(cls, raw: str) -> "Version":
        """Parse ``raw`` into a Version; never fails for string input."""
        return cls(raw)

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._tokens

    @property
    def is_head(self) -> bool:
        return False

    def is_blank(self) -> bool:
        return not self._raw.strip()

    def to_string(self) -> str:
        return self._raw

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"Version({self._raw!r})"

    def __hash__(self) -> int:
        return hash(self._tokens)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeadVersion):
            return False
        if isinstance(other, Version):
            return self._tokens == other._tokens
        return NotImplemented

    def _cmp(self, other: object) -> int:
        if isinstance(other, HeadVersion):
            raise ComparisonMisuseError(
                f"Cannot order {self!r} against HEAD commit {other.commit!r}"
            )
        if not isinstance(other, Version):
            raise TypeError(f"Cannot compare Version with {type(other).__name__}")
        left, right = self._tokens, other._tokens
        for i in range(max(len(left), len(right))):
            a = left[i] if i < len(left) else _PADDING
            b = right[i] if i < len(right) else _PADDING
            if a != b:
                return -1 if a < b else 1
        return 0

    def __lt__(self, other: "Version") -> bool:
        return self._cmp(other) < 0

    def __le__(self, other: "Version") -> bool:
        return self._cmp(other) <= 0

    def __gt__(self, other: "Version") -> bool:
        return self._cmp(other) > 0

    def __ge__(self, other: "Version") -> bool:
        return self._cmp(other) >= 0


class HeadVersion:
    """A development-branch version identified only by its commit id."""

    __slots__ = ("_commit",)

    def __init__(self, commit: str):
        if not commit or not str(commit).strip():
            raise ValueError("HEAD version requires a commit id")
        object.__setattr__(self, "_commit", str(commit).strip())

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("HeadVersion is immutable")

    @property
    def commit(self) -> str:
        return self._commit

    @property
    def is_head(self) -> bool:
        return True

    def is_blank(self) -> bool:
        return False

    def to_string(self) -> str:
        return self._commit

    def __str__(self) -> str:
        return self._commit

    def __repr__(self) -> str:
        return f"HeadVersion({self._commit!r})"

    def __hash__(self) -> int:
        return hash(("HEAD", self._commit))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HeadVersion):
            return self._commit == other._commit
        if isinstance(other, Version):
            return False
        return NotImplemented

    def _refuse(self, other: object) -> bool:
        raise ComparisonMisuseError(
            f"HEAD commit {self._commit!r} has no ordering (compared with {other!r})"
        )

    __lt__ = __le__ = __gt__ = __ge__ = _refuse


AnyVersion = Union[Version, HeadVersion]


def parse(raw: str) -> Version:
    """Parse a version string. Unparseable input becomes a single raw token."""
    return Version.parse(raw)


def compare(a: AnyVersion, b: AnyVersion) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``.

    Raises:
        ComparisonMisuseError: if either side is a HeadVersion.
    """
    if isinstance(a, HeadVersion):
        return a._refuse(b)  # pylint: disable=protected-access
    return a._cmp(b)  # pylint: disable=protected-access
