"""Data types shared by the universe, the engine and the check."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class ArchClass(Enum):
    """Architecture class of a package, as seen by the pool."""
    BINARY = "binary"    # Arch accepted by the pool (incl. noarch)
    SOURCE = "src"
    NOSOURCE = "nosrc"
    OTHER = "other"      # Foreign or unknown arch


@dataclass
class PackageInfo:
    """A package of the universe."""
    id: int
    name: str
    evr: str
    arch: str
    arch_class: ArchClass
    repo: str

    @property
    def nevra(self) -> str:
        return f"{self.name}-{self.evr}.{self.arch}"


class JobStrength(Enum):
    """How binding an install job is."""
    WEAK = "weak"      # Solver may drop the job instead of failing
    STRONG = "strong"  # Solver must satisfy the job or report a problem


@dataclass(frozen=True)
class Job:
    """Install directive for a single package."""
    package: int
    strength: JobStrength = JobStrength.STRONG


def weak_jobs(packages: List[int]) -> List[Job]:
    return [Job(p, JobStrength.WEAK) for p in packages]


@dataclass(frozen=True)
class RuleInfo:
    """One justification of a problem rule.

    kind is a SOLVER_RULE_* constant; source and target are package ids
    (0 when not applicable) and dep is the dependency id involved.
    """
    kind: int
    source: int
    target: int
    dep: int
    handle: Any = field(default=None, compare=False, repr=False)
