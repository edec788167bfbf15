"""Exceptions raised by installcheck core modules."""

from pathlib import Path
from typing import Union


class InstallCheckError(Exception):
    """Base class for fatal installcheck errors."""


class ConfigError(InstallCheckError):
    """Invalid configuration file or option."""


class RepositoryLoadError(InstallCheckError):
    """A metadata source could not be opened or parsed.

    The universe is left inconsistent, so callers must not go on resolving.
    """

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")
