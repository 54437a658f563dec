"""Data models for packages, extraction results and check outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from constants import Status
from .version import Version


class ConfigurationError(ValueError):
    """Raised for malformed package metadata or check configuration."""


@dataclass(frozen=True)
class CheckConfig:
    """Explicit check configuration declared by a package."""
    url: Optional[str] = None  # literal URL or one of "homepage", "stable", "head"
    strategy: Optional[str] = None
    regex: Optional[str] = None
    skip: bool = False
    skip_msg: Optional[str] = None
    allow_unstable: bool = False
    version: Optional[str] = None  # explicit current version override
    version_transform: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckConfig":
        if not isinstance(data, dict):
            raise ConfigurationError(f"check configuration must be a mapping, got {type(data).__name__}")
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"unknown check configuration keys: {', '.join(sorted(unknown))}")
        return cls(
            url=_opt_str(data.get("url")),
            strategy=_opt_str(data.get("strategy")),
            regex=_opt_str(data.get("regex")),
            skip=bool(data.get("skip", False)),
            skip_msg=_opt_str(data.get("skip_msg")),
            allow_unstable=bool(data.get("allow_unstable", False)),
            version=_opt_str(data.get("version")),
            version_transform=_opt_str(data.get("version_transform")),
        )


@dataclass(frozen=True)
class Package:
    """Read-only package metadata supplied by the metadata provider."""
    name: str
    version: str
    homepage: Optional[str] = None
    stable_url: Optional[str] = None
    mirrors: List[str] = field(default_factory=list)
    head_url: Optional[str] = None
    full_name: Optional[str] = None
    check: Optional[CheckConfig] = None
    deprecated: bool = False
    versioned: bool = False
    head_only: bool = False
    installed_head_commit: Optional[str] = None

    @property
    def key(self) -> str:
        """Fully-qualified name used for cache keys."""
        return self.full_name or self.name

    @property
    def livecheckable(self) -> bool:
        """True when the package declares an explicit check configuration."""
        return self.check is not None

    def display_name(self, full_name: bool = False) -> str:
        return self.key if full_name else self.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        """Build a Package from a plain mapping (YAML/JSON record)."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"package record must be a mapping, got {type(data).__name__}")
        name = _opt_str(data.get("name"))
        if not name:
            raise ConfigurationError("package record is missing 'name'")
        version = data.get("version")
        head_only = bool(data.get("head_only", False))
        if version is None and not head_only:
            raise ConfigurationError(f"package {name!r} is missing 'version'")
        mirrors = data.get("mirrors") or []
        if not isinstance(mirrors, list):
            raise ConfigurationError(f"package {name!r}: 'mirrors' must be a list")
        check = data.get("livecheck", data.get("check"))
        return cls(
            name=name,
            version="" if version is None else str(version),
            homepage=_opt_str(data.get("homepage")),
            stable_url=_opt_str(data.get("url", data.get("stable_url"))),
            mirrors=[str(m) for m in mirrors if m],
            head_url=_opt_str(data.get("head_url", data.get("head"))),
            full_name=_opt_str(data.get("full_name")),
            check=CheckConfig.from_dict(check) if check is not None else None,
            deprecated=bool(data.get("deprecated", False)),
            versioned=bool(data.get("versioned", False)),
            head_only=head_only,
            installed_head_commit=_opt_str(data.get("installed_head_commit")),
        )


@dataclass
class ExtractionResult:
    """Versions a strategy extracted from one URL.

    ``matches`` maps the matched text to its parsed Version. ``messages``
    carries diagnostics such as an unreachable page.
    """
    matches: Dict[str, Version] = field(default_factory=dict)
    messages: List[str] = field(default_factory=list)
    url: Optional[str] = None
    regex: Optional[str] = None

    @classmethod
    def failure(cls, message: str, url: Optional[str] = None, regex: Optional[str] = None) -> "ExtractionResult":
        return cls(matches={}, messages=[message], url=url, regex=regex)


@dataclass
class CheckOutcome:
    """Result of checking a single package."""
    package: str
    status: Status
    current: Optional[str] = None
    latest: Optional[str] = None
    outdated: bool = False
    newer_than_upstream: bool = False
    messages: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "status": self.status.value,
            "current": self.current,
            "latest": self.latest,
            "outdated": self.outdated,
            "newer_than_upstream": self.newer_than_upstream,
            "messages": list(self.messages),
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckOutcome":
        """Inverse of to_dict; raises KeyError/ValueError on malformed input."""
        return cls(
            package=data["package"],
            status=Status(data["status"]),
            current=data.get("current"),
            latest=data.get("latest"),
            outdated=bool(data.get("outdated", False)),
            newer_than_upstream=bool(data.get("newer_than_upstream", False)),
            messages=list(data.get("messages") or []),
            meta=dict(data.get("meta") or {}),
        )


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
