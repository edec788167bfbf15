"""Core modules for installcheck"""

from .check import InstallCheck, CheckResult, InstallReport
from .errors import InstallCheckError, ConfigError, RepositoryLoadError

__all__ = [
    'InstallCheck',
    'CheckResult',
    'InstallReport',
    'InstallCheckError',
    'ConfigError',
    'RepositoryLoadError',
]
