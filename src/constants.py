"""Constants used in the project."""

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CHECK_FAILURES = 3


class Status(Enum):
    """Outcome status of a single package check.

    Args:
        Enum (string): Status values as they appear in reports and cache entries.
    """

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
    DEPRECATED = "deprecated"
    VERSIONED = "versioned"
    NOT_CHECKED = "not_checked"


# Substrings marking a pre-release build; versions containing any of them are
# dropped unless the package allows unstable versions.
UNSTABLE_VERSION_KEYWORDS = (
    "alpha",
    "beta",
    "bpo",
    "dev",
    "experimental",
    "prerelease",
    "preview",
    "rc",
)

# GitHub URLs containing any of these are left alone by the URL preprocessor.
GITHUB_SPECIAL_CASES = (
    "api.github.com",
    "gist.github.com",
    "/latest",
    "mednafen",
    "camlp5",
    "kotlin",
    "osrm-backend",
    "prometheus",
    "pyenv-virtualenv",
    "sysdig",
    "shairport-sync",
    "yuicompressor",
)


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "UPWATCH_LOG_LEVEL"
    ENV_CONFIG = "UPWATCH_CONFIG"
    ENV_WATCHLIST = "UPWATCH_WATCHLIST"
    DEFAULT_WATCHLIST = os.path.join(os.path.expanduser("~"), ".upwatch_watchlist")
    CONFIG_LOCATIONS = [
        "upwatch.yml",
        "upwatch.yaml",
        os.path.join(os.path.expanduser("~"), ".config", "upwatch", "upwatch.yml"),
    ]

    REQUEST_TIMEOUT = 30  # Timeout in seconds for a single upstream fetch
    USER_AGENT = "upwatch/0.1 (+https://github.com/upwatch/upwatch)"
    MAX_WORKERS = 4
    BATCH_LIMIT_MINUTES = None

    CACHE_TTL_SEC = 86400  # One day
    CACHE_PATH = os.path.join(os.path.expanduser("~"), ".cache", "upwatch", "livecheck.json")

    REGISTRY_URL_PYPI = "https://pypi.org/pypi/"
    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    GNU_FTP_BASE = "https://ftp.gnu.org/gnu/"
    LAUNCHPAD_BASE = "https://launchpad.net/"
    SOURCEFORGE_BASE = "https://sourceforge.net/projects/"
    GITHUB_API_BASE = "https://api.github.com"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"

    STRATEGY_EXTENSIONS = []


def _load_yaml_config(path=None):
    """Load the YAML configuration file, if one exists.

    Args:
        path (str, optional): Explicit path. Defaults to UPWATCH_CONFIG or the
            first existing entry of Constants.CONFIG_LOCATIONS.

    Returns:
        dict: Parsed configuration, empty when nothing was found or parsing failed.
    """
    candidates = [path] if path else []
    if not candidates:
        env_path = os.environ.get(Constants.ENV_CONFIG)
        candidates = [env_path] if env_path else list(Constants.CONFIG_LOCATIONS)

    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            import yaml  # pylint: disable=import-outside-toplevel

            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, ValueError) as exc:
            logger.warning("Could not read config file %s: %s", candidate, exc)
            return {}
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # yaml.YAMLError and friends
            logger.warning("Could not parse config file %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: top level is not a mapping", candidate)
            return {}
        logger.debug("Loaded config from %s", candidate)
        return data
    return {}


def apply_config(cfg):
    """Apply a parsed configuration mapping onto Constants.

    Malformed values are logged and ignored so a bad config never breaks a run.

    Args:
        cfg (dict): Configuration as returned by _load_yaml_config.
    """
    if not isinstance(cfg, dict):
        return

    def _section(name):
        value = cfg.get(name)
        return value if isinstance(value, dict) else {}

    http = _section("http")
    batch = _section("batch")
    cache = _section("cache")
    strategies = _section("strategies")

    _apply_number(http, "timeout", "REQUEST_TIMEOUT", float)
    if isinstance(http.get("user_agent"), str) and http["user_agent"].strip():
        Constants.USER_AGENT = http["user_agent"].strip()
    _apply_number(batch, "workers", "MAX_WORKERS", int)
    _apply_number(batch, "limit_minutes", "BATCH_LIMIT_MINUTES", float)
    _apply_number(cache, "ttl_seconds", "CACHE_TTL_SEC", int)
    if isinstance(cache.get("path"), str) and cache["path"].strip():
        Constants.CACHE_PATH = os.path.expanduser(cache["path"].strip())
    extensions = strategies.get("extensions")
    if isinstance(extensions, list):
        Constants.STRATEGY_EXTENSIONS = [str(e) for e in extensions if e]


def _apply_number(section, key, attr, cast):
    if key not in section or section[key] is None:
        return
    try:
        value = cast(section[key])
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid config value %s=%r", key, section[key])
        return
    if value <= 0:
        logger.warning("Ignoring non-positive config value %s=%r", key, section[key])
        return
    setattr(Constants, attr, value)
