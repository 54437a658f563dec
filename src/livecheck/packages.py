"""Package metadata provider: package files and the watchlist."""

from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional

import yaml

from constants import Constants
from versioning.models import ConfigurationError, Package

logger = logging.getLogger(__name__)


def load_packages(path: str) -> List[Package]:
    """Load package records from a YAML or JSON file.

    The file holds either a list of records or a mapping with a ``packages``
    list. Records sharing a key are deduplicated, first one wins.

    Args:
        path (str): Path to the package file.

    Raises:
        OSError: if the file cannot be read.
        ConfigurationError: if the content is malformed.

    Returns:
        list: Package instances in file order.
    """
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse package file {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("packages")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigurationError(f"Package file {path} must contain a list of packages")

    packages: List[Package] = []
    seen = set()
    for record in data:
        package = Package.from_dict(record)
        if package.key in seen:
            logger.warning("Duplicate package %s in %s ignored", package.key, path)
            continue
        seen.add(package.key)
        packages.append(package)
    logger.debug("Loaded %d package(s) from %s", len(packages), path)
    return packages


def watchlist_path() -> str:
    return os.environ.get(Constants.ENV_WATCHLIST) or Constants.DEFAULT_WATCHLIST


def read_watchlist(path: Optional[str] = None) -> List[str]:
    """Return package names from the watchlist, ignoring blanks and ``#`` comments.

    A missing watchlist yields an empty list.
    """
    path = path or watchlist_path()
    if not os.path.isfile(path):
        return []
    names = []
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            name = line.split("#", 1)[0].strip()
            if name and name not in names:
                names.append(name)
    return names


def select_packages(packages: Iterable[Package], names: Iterable[str]) -> List[Package]:
    """Pick packages by short or full name, in the order the names are given.

    Raises:
        ConfigurationError: if a name matches no package.
    """
    packages = list(packages)
    selected: List[Package] = []
    unknown = []
    for name in names:
        match = next((p for p in packages if name in (p.name, p.full_name)), None)
        if match is None:
            unknown.append(name)
        elif match not in selected:
            selected.append(match)
    if unknown:
        raise ConfigurationError(f"Unknown package(s): {', '.join(unknown)}")
    return selected
