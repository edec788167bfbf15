"""
Central configuration for installcheck.

Lookup order:
    1. Built-in defaults (below)
    2. Config file: $INSTALLCHECK_CONFIG, else /etc/installcheck.conf
    3. Command-line options (applied by the CLI on top of the result)

Metadata layout:
    <cachedir>/<repo>.solv                  - Binary repository
    <cachedir>/<repo>-filenames.solvx       - File list extension (optional)
    <cachedir>/<source_repo>.solv           - Source repository

Config file format (one setting per line):
    arch=x86_64
    cachedir=/var/cache/dnf
    repos=tmp,updates
    source_repos=tmp-src
    synthesis=/srv/mirror/core/release/media_info/synthesis.hdlist.cz
    # Comments start with #
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ConfigError

# Config file locations
CONFIG_ENV_VAR = "INSTALLCHECK_CONFIG"
SYSTEM_CONFIG_FILE = Path("/etc/installcheck.conf")

# Defaults match the layout dnf leaves behind with --setopt=cachedir
DEFAULT_CACHE_DIR = Path("/var/cache/dnf")
DEFAULT_REPOS = ["tmp"]
DEFAULT_SOURCE_REPOS = ["tmp-src"]

SOLV_SUFFIX = ".solv"
FILELIST_SUFFIX = "-filenames.solvx"

_LIST_KEYS = ('repos', 'source_repos', 'synthesis')
_KNOWN_KEYS = ('arch', 'cachedir') + _LIST_KEYS

# Cache for the parsed config file (avoid re-reading it)
_cached_file_config: Optional[Dict[str, str]] = None


def default_arch() -> str:
    """Return the architecture of the running system."""
    return platform.machine()


@dataclass
class CheckConfig:
    """Resolved settings for one installcheck run."""
    arch: str = field(default_factory=default_arch)
    cachedir: Path = DEFAULT_CACHE_DIR
    repos: List[str] = field(default_factory=lambda: list(DEFAULT_REPOS))
    source_repos: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_REPOS))
    synthesis: List[Path] = field(default_factory=list)

    def solv_path(self, repo_name: str) -> Path:
        """Path of the main .solv file for a repository."""
        return self.cachedir / f"{repo_name}{SOLV_SUFFIX}"

    def filelist_path(self, repo_name: str) -> Path:
        """Path of the file list extension for a binary repository."""
        return self.cachedir / f"{repo_name}{FILELIST_SUFFIX}"


def get_config_path() -> Path:
    """Return the config file path, honouring $INSTALLCHECK_CONFIG."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return SYSTEM_CONFIG_FILE


def read_config_file(path: Path) -> Dict[str, str]:
    """Read a key=value config file.

    Returns:
        Dict with raw config values (empty if the file doesn't exist)

    Raises:
        ConfigError: on a malformed line or an unknown key
    """
    if not path.exists():
        return {}

    config = {}
    try:
        with open(path) as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' not in line:
                    raise ConfigError(f"{path}:{lineno}: expected key=value, got '{line}'")
                key, value = line.split('=', 1)
                key = key.strip()
                if key not in _KNOWN_KEYS:
                    raise ConfigError(f"{path}:{lineno}: unknown setting '{key}'")
                config[key] = value.strip()
    except OSError as e:
        raise ConfigError(f"{path}: {e}") from e

    return config


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def load_config(path: Optional[Path] = None) -> CheckConfig:
    """Build a CheckConfig from defaults and the config file.

    Args:
        path: Config file to read (default: get_config_path()). When given
              explicitly the result is not cached.
    """
    global _cached_file_config

    if path is not None:
        raw = read_config_file(path)
    else:
        if _cached_file_config is None:
            _cached_file_config = read_config_file(get_config_path())
        raw = _cached_file_config

    config = CheckConfig()
    if 'arch' in raw:
        config.arch = raw['arch']
    if 'cachedir' in raw:
        config.cachedir = Path(raw['cachedir']).expanduser()
    if 'repos' in raw:
        config.repos = _split_list(raw['repos'])
    if 'source_repos' in raw:
        config.source_repos = _split_list(raw['source_repos'])
    if 'synthesis' in raw:
        config.synthesis = [Path(p).expanduser() for p in _split_list(raw['synthesis'])]

    return config
