"""Solving engine backed by a libsolv Solver.

The engine answers three questions about the last solve:
- how many problems it found (return value of solve())
- the decision level of each package (decision_level())
- why it failed, as problems -> rules -> rule infos (problems())

The proof objects are only valid until the next solve() call.
"""

import logging
from typing import Iterator, List

import solv

from .model import Job, JobStrength, RuleInfo

logger = logging.getLogger(__name__)


def job_flags(job: Job) -> int:
    """libsolv job flags for an install directive."""
    how = solv.Job.SOLVER_INSTALL | solv.Job.SOLVER_SOLVABLE
    if job.strength == JobStrength.WEAK:
        how |= solv.Job.SOLVER_WEAK
    return how


class Rule:
    """A rule taking part in a problem."""

    def __init__(self, handle):
        self.handle = handle

    def infos(self) -> Iterator[RuleInfo]:
        """Rule infos in the order the solver emits them."""
        for info in self.handle.allinfos():
            yield RuleInfo(
                kind=info.type,
                source=info.solvable.id if info.solvable else 0,
                target=info.othersolvable.id if info.othersolvable else 0,
                dep=info.dep_id,
                handle=info,
            )


class Problem:
    """A problem reported by a failed solve."""

    def __init__(self, handle):
        self.handle = handle

    def rules(self) -> Iterator[Rule]:
        for rule in self.handle.findallproblemrules():
            yield Rule(rule)


class SolvingEngine:
    """Solver bound to a finalized Universe.

    One solver is created per engine and reused for every solve.
    """

    def __init__(self, universe):
        self.universe = universe
        self.pool = universe.pool
        self.solver = self.pool.Solver()
        self._problems = []
        self._installed = set()

    def solve(self, jobs: List[Job]) -> int:
        """Solve a job list.

        Returns:
            Number of problems (always 0 when all jobs are weak)
        """
        pool_jobs = [self.pool.Job(job_flags(job), job.package) for job in jobs]
        self._problems = self.solver.solve(pool_jobs)
        # Positive entries of the decision map: packages the plan installs
        self._installed = set(self.solver.raw_decisions(1))
        logger.debug("Solved %d jobs: %d problems", len(pool_jobs), len(self._problems))
        return len(self._problems)

    def decision_level(self, p: int) -> int:
        """Decision level of a package after the last solve.

        1 means the package was installed by the plan, 0 means it was not
        (not needed, or dropped because it conflicts).
        """
        return 1 if p in self._installed else 0

    def problems(self) -> Iterator[Problem]:
        """Problems of the last solve. Can be iterated several times."""
        for problem in self._problems:
            yield Problem(problem)

    def describe(self, info: RuleInfo) -> str:
        """Human-readable explanation of a rule info."""
        return info.handle.problemstr()
