"""
Installability check

Finds which packages of a universe cannot be installed alone, and why.

Two phases:
1. Fixpoint pruning: all candidates are submitted as WEAK install jobs in a
   single solve. Every package the solver manages to install is fine and
   leaves the worklist; the rest is solved again, until a round removes
   nothing. One big solve replaces thousands of small ones.
2. Diagnosis: each survivor is solved alone with a STRONG install job. Most
   survivors only failed because of interactions inside the batch and solve
   cleanly; the others get a report built from the solver's problem rules.

The algorithm only talks to its collaborators through a small interface, so
it runs the same against libsolv or a scripted fake.

Universe requires:
    - apply_considered()
    - packages(): iterable of PackageInfo
    - is_considered(p), is_installable(p)
    - display(p)

Engine requires:
    - solve(jobs) -> problem count
    - decision_level(p)
    - problems(): problems -> rules() -> infos()
    - describe(info)
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List

from .model import ArchClass, Job, JobStrength, weak_jobs

logger = logging.getLogger(__name__)

SOURCE_CLASSES = (ArchClass.SOURCE, ArchClass.NOSOURCE)


@dataclass
class PruneResult:
    """Outcome of the fixpoint pruning phase."""
    worklist: List[int]
    rounds: List[int] = field(default_factory=list)  # Worklist size after each round


@dataclass
class InstallReport:
    """Why a package cannot be installed.

    problems holds one list of explanation lines per solver problem, in the
    order the solver reported them.
    """
    package: int
    nevra: str
    problems: List[List[str]] = field(default_factory=list)

    def lines(self) -> List[str]:
        """Report as printed by the CLI."""
        out = [f"can't install {self.nevra}"]
        for problem in self.problems:
            out.extend(f"  - {text}" for text in problem)
        return out


@dataclass
class CheckResult:
    """Result of a full installability check."""
    checked: int
    rounds: List[int]
    survivors: List[int]
    reports: List[InstallReport]

    @property
    def failed(self) -> int:
        return len(self.reports)


def select_candidates(universe) -> List[int]:
    """Build the initial worklist.

    Source packages are always checked as long as they are considered; other
    packages must pass the universe's installability precondition (which
    also honours the considered mask).
    """
    candidates = []
    for pkg in universe.packages():
        if universe.is_considered(pkg.id) and pkg.arch_class in SOURCE_CLASSES:
            candidates.append(pkg.id)
            continue
        if not universe.is_installable(pkg.id):
            continue
        candidates.append(pkg.id)
    return candidates


def prune_candidates(engine, candidates: List[int]) -> PruneResult:
    """Drop every candidate that installs fine in a weak batch solve.

    Repeats with the remaining candidates and stops at the first round that
    removes nothing.
    """
    result = PruneResult(worklist=list(candidates))

    while result.worklist:
        before = len(result.worklist)
        engine.solve(weak_jobs(result.worklist))

        retained = [p for p in result.worklist if engine.decision_level(p) <= 0]
        result.worklist = retained
        result.rounds.append(len(retained))
        logger.info("Round %d: %d of %d candidates left",
                    len(result.rounds), len(retained), before)

        if len(retained) == before:
            break

    return result


def explain(engine) -> List[List[str]]:
    """Walk the proof of the last solve: problems -> rules -> rule infos."""
    return [
        [engine.describe(info) for rule in problem.rules() for info in rule.infos()]
        for problem in engine.problems()
    ]


def diagnose(universe, engine, packages: List[int]) -> Iterator[InstallReport]:
    """Solve each package alone and yield a report for each failure.

    Installable packages yield nothing.
    """
    for p in packages:
        if not engine.solve([Job(p, JobStrength.STRONG)]):
            continue
        report = InstallReport(package=p, nevra=universe.display(p), problems=explain(engine))
        logger.debug("%s: %d problem(s)", report.nevra, len(report.problems))
        yield report


class InstallCheck:
    """Run selection, pruning and diagnosis on a universe."""

    def __init__(self, universe, engine=None):
        """Initialize the check.

        Args:
            universe: Finalized universe (exclusions already requested)
            engine: Solving engine; a SolvingEngine on `universe` by default
        """
        self.universe = universe
        self.engine = engine

    def run(self) -> CheckResult:
        self.universe.apply_considered()
        if self.engine is None:
            from .engine import SolvingEngine
            self.engine = SolvingEngine(self.universe)

        candidates = select_candidates(self.universe)
        logger.info("Checking %d candidates", len(candidates))

        pruned = prune_candidates(self.engine, candidates)
        logger.info("%d candidates need a separate check", len(pruned.worklist))

        reports = list(diagnose(self.universe, self.engine, pruned.worklist))

        return CheckResult(
            checked=len(candidates),
            rounds=pruned.rounds,
            survivors=pruned.worklist,
            reports=reports,
        )
