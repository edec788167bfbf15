"""Tests for the libsolv-backed universe and engine.

Pools are built in memory with add_solvable(), the same way the resolver
loads packages that are not in a synthesis file.
"""

import gzip
import logging

import pytest

solv = pytest.importorskip("solv")

from installcheck.core.check import InstallCheck, prune_candidates, select_candidates
from installcheck.core.engine import SolvingEngine
from installcheck.core.errors import RepositoryLoadError
from installcheck.core.model import ArchClass, Job, JobStrength
from installcheck.core import universe as universe_module
from installcheck.core.universe import Universe, has_synthesis_support


def add_package(universe, repo, name, evr="1-1", arch="x86_64",
                requires=(), provides=(), conflicts=()):
    """Add a package to `repo` and return its id."""
    pool = universe.pool
    s = repo.add_solvable()
    s.name = name
    s.evr = evr
    s.arch = arch
    if arch not in ("src", "nosrc"):
        s.add_deparray(solv.SOLVABLE_PROVIDES,
                       pool.Dep(name).Rel(solv.REL_EQ, pool.Dep(evr)))
    for cap in provides:
        s.add_deparray(solv.SOLVABLE_PROVIDES, pool.Dep(cap))
    for cap in requires:
        s.add_deparray(solv.SOLVABLE_REQUIRES, pool.Dep(cap))
    for cap in conflicts:
        s.add_deparray(solv.SOLVABLE_CONFLICTS, pool.Dep(cap))
    return s.id


@pytest.fixture
def universe():
    return Universe("x86_64")


def build_chain(universe):
    """A requires B, B requires C, C requires D which nothing provides."""
    repo = universe.pool.add_repo("tmp")
    ids = {
        "A": add_package(universe, repo, "A", requires=["B"]),
        "B": add_package(universe, repo, "B", requires=["C"]),
        "C": add_package(universe, repo, "C", requires=["D"]),
        "E": add_package(universe, repo, "E"),
    }
    universe.finalize()
    return ids


@pytest.fixture
def chain(universe):
    return build_chain(universe)


def report_map(result):
    return {report.nevra: report for report in result.reports}


class TestUniverse:
    """Tests for Universe."""

    def test_empty_universe(self, universe):
        universe.finalize()
        assert list(universe.packages()) == []
        assert len(universe) == 0

    def test_package_info(self, universe):
        repo = universe.pool.add_repo("tmp")
        p = add_package(universe, repo, "foo", evr="2.0-3")
        universe.finalize()

        info = universe.package(p)
        assert info.name == "foo"
        assert info.evr == "2.0-3"
        assert info.arch == "x86_64"
        assert info.repo == "tmp"
        assert info.arch_class == ArchClass.BINARY
        assert info.nevra == "foo-2.0-3.x86_64"
        assert universe.display(p) == "foo-2.0-3.x86_64"

    @pytest.mark.parametrize("arch, expected", [
        ("x86_64", ArchClass.BINARY),
        ("noarch", ArchClass.BINARY),
        ("src", ArchClass.SOURCE),
        ("nosrc", ArchClass.NOSOURCE),
        ("ppc64le", ArchClass.OTHER),
    ])
    def test_arch_class(self, universe, arch, expected):
        repo = universe.pool.add_repo("tmp")
        p = add_package(universe, repo, "foo", arch=arch)
        universe.finalize()
        assert universe.package(p).arch_class == expected

    def test_find_ids_by_name(self, universe):
        repo = universe.pool.add_repo("tmp")
        foo1 = add_package(universe, repo, "foo", evr="1-1")
        foo2 = add_package(universe, repo, "foo", evr="2-1")
        add_package(universe, repo, "bar", provides=["foo-virtual"])
        universe.finalize()

        assert universe.find_ids_by_name("foo") == [foo1, foo2]
        assert universe.find_ids_by_name("foo-virtual") == []
        assert universe.find_ids_by_name("unknown") == []

    def test_exclude_name(self, universe):
        repo = universe.pool.add_repo("tmp")
        foo = add_package(universe, repo, "foo")
        bar = add_package(universe, repo, "bar")
        universe.finalize()

        assert universe.exclude_name("foo") == 1
        assert not universe.is_considered(foo)
        assert universe.is_considered(bar)
        assert universe.excluded == {foo}

    def test_exclude_unknown_name_warns_once(self, universe, caplog):
        repo = universe.pool.add_repo("tmp")
        add_package(universe, repo, "foo")
        universe.finalize()

        with caplog.at_level(logging.WARNING, logger="installcheck"):
            assert universe.exclude_name("nope") == 0

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].getMessage() == "can't find nope, skipping"
        assert universe.excluded == set()

    def test_apply_considered_masks_installability(self, universe):
        repo = universe.pool.add_repo("tmp")
        foo = add_package(universe, repo, "foo")
        bar = add_package(universe, repo, "bar")
        universe.finalize()

        universe.exclude_name("foo")
        universe.apply_considered()
        assert not universe.is_installable(foo)
        assert universe.is_installable(bar)


class TestLoading:
    """Tests for repository loading."""

    def _write_solv(self, path, names):
        pool = solv.Pool()
        pool.setarch("x86_64")
        repo = pool.add_repo("src")
        for name in names:
            s = repo.add_solvable()
            s.name = name
            s.evr = "1-1"
            s.arch = "x86_64"
            s.add_deparray(solv.SOLVABLE_PROVIDES, pool.Dep(name).Rel(solv.REL_EQ, pool.Dep("1-1")))
        repo.internalize()
        f = solv.xfopen(str(path), "w")
        repo.write(f)
        f.close()

    def test_load_solv(self, universe, tmp_path):
        path = tmp_path / "tmp.solv"
        self._write_solv(path, ["foo", "bar"])

        repo = universe.load_solv("tmp", path)
        universe.finalize()

        assert repo.nsolvables == 2
        assert sorted(p.name for p in universe.packages()) == ["bar", "foo"]
        assert {p.repo for p in universe.packages()} == {"tmp"}

    def test_missing_solv_file(self, universe, tmp_path):
        with pytest.raises(RepositoryLoadError) as exc:
            universe.load_solv("tmp", tmp_path / "missing.solv")
        assert exc.value.path == tmp_path / "missing.solv"

    def test_corrupt_solv_file(self, universe, tmp_path):
        path = tmp_path / "bad.solv"
        path.write_bytes(b"this is not a solv file")
        with pytest.raises(RepositoryLoadError):
            universe.load_solv("tmp", path)

    def test_missing_extension_file(self, universe, tmp_path):
        path = tmp_path / "tmp.solv"
        self._write_solv(path, ["foo"])
        with pytest.raises(RepositoryLoadError):
            universe.load_solv("tmp", path, [tmp_path / "tmp-filenames.solvx"])

    def _write_synthesis(self, path):
        content = (
            "@provides@foo[== 1.0-1.mga9]\n"
            "@summary@Foo package\n"
            "@info@foo-1.0-1.mga9.x86_64@0@1000@System/Base\n"
        )
        path.write_bytes(gzip.compress(content.encode()))

    @pytest.mark.skipif(not has_synthesis_support(), reason="libsolv built without mdk support")
    def test_load_synthesis(self, universe, tmp_path):
        path = tmp_path / "synthesis.hdlist.cz"
        self._write_synthesis(path)

        universe.load_synthesis("core", path)
        universe.finalize()

        names = [p.name for p in universe.packages()]
        assert "foo" in names

    def test_missing_synthesis(self, universe, tmp_path):
        with pytest.raises(RepositoryLoadError):
            universe.load_synthesis("core", tmp_path / "synthesis.hdlist.cz")

    def test_synthesis_without_mdk_support(self, universe, tmp_path, monkeypatch):
        path = tmp_path / "synthesis.hdlist.cz"
        self._write_synthesis(path)
        monkeypatch.setattr(universe_module, "has_synthesis_support", lambda: False)

        with pytest.raises(RepositoryLoadError, match="mdk") as exc:
            universe.load_synthesis("core", path)
        assert exc.value.path == path


class TestSolvingEngine:
    """Tests for SolvingEngine."""

    def test_installable_package(self, universe, chain):
        engine = SolvingEngine(universe)
        assert engine.solve([Job(chain["E"])]) == 0
        assert engine.decision_level(chain["E"]) > 0
        assert list(engine.problems()) == []

    def test_weak_jobs_never_fail(self, universe, chain):
        engine = SolvingEngine(universe)
        jobs = [Job(p, JobStrength.WEAK) for p in chain.values()]
        assert engine.solve(jobs) == 0
        assert engine.decision_level(chain["E"]) > 0
        assert engine.decision_level(chain["C"]) <= 0

    def test_strong_job_reports_proof(self, universe, chain):
        engine = SolvingEngine(universe)
        assert engine.solve([Job(chain["C"])]) == 1

        texts = [engine.describe(info)
                 for problem in engine.problems()
                 for rule in problem.rules()
                 for info in rule.infos()]
        assert "nothing provides D needed by C-1-1.x86_64" in texts

    def test_rule_info_fields(self, universe, chain):
        engine = SolvingEngine(universe)
        engine.solve([Job(chain["C"])])

        infos = [info for problem in engine.problems()
                 for rule in problem.rules() for info in rule.infos()]
        assert any(info.source == chain["C"] for info in infos)
        assert all(info.kind for info in infos)

    def test_decision_level_reset_by_next_solve(self, universe, chain):
        engine = SolvingEngine(universe)
        engine.solve([Job(chain["E"])])
        assert engine.decision_level(chain["E"]) == 1
        engine.solve([Job(chain["C"])])
        assert engine.decision_level(chain["E"]) == 0

    def test_weak_round_keeps_only_broken_chain(self, universe, chain):
        engine = SolvingEngine(universe)
        candidates = select_candidates(universe)
        pruned = prune_candidates(engine, candidates)

        assert chain["C"] in pruned.worklist
        assert chain["E"] not in pruned.worklist
        assert pruned.rounds

    def test_proof_reset_by_next_solve(self, universe, chain):
        engine = SolvingEngine(universe)
        engine.solve([Job(chain["C"])])
        assert len(list(engine.problems())) == 1
        engine.solve([Job(chain["E"])])
        assert list(engine.problems()) == []


class TestInstallCheck:
    """End-to-end checks on real pools."""

    def test_chain_scenario(self, universe, chain):
        result = InstallCheck(universe).run()

        assert result.checked == 4
        assert chain["E"] not in result.survivors
        assert chain["C"] in result.survivors

        reports = report_map(result)
        lines = reports["C-1-1.x86_64"].lines()
        assert lines[0] == "can't install C-1-1.x86_64"
        assert "  - nothing provides D needed by C-1-1.x86_64" in lines
        assert "E-1-1.x86_64" not in reports

    def test_rounds_are_monotonic(self, universe, chain):
        result = InstallCheck(universe).run()
        sizes = [result.checked] + result.rounds
        assert all(after <= before for before, after in zip(sizes, sizes[1:]))
        assert len(result.rounds) <= result.checked

    def test_pruned_packages_install_alone(self, universe, chain):
        engine = SolvingEngine(universe)
        candidates = select_candidates(universe)
        pruned = prune_candidates(engine, candidates)

        for p in set(candidates) - set(pruned.worklist):
            assert engine.solve([Job(p)]) == 0

    def test_idempotent(self, universe, chain):
        first = InstallCheck(universe).run()
        second = InstallCheck(universe).run()
        assert first.rounds == second.rounds
        assert [r.lines() for r in first.reports] == [r.lines() for r in second.reports]

    def test_excluded_dependency_breaks_dependant(self, universe):
        repo = universe.pool.add_repo("tmp")
        add_package(universe, repo, "app", requires=["lib"])
        lib = add_package(universe, repo, "lib")
        universe.finalize()

        universe.exclude_name("lib")
        result = InstallCheck(universe).run()

        assert lib not in select_candidates(universe)
        assert "app-1-1.x86_64" in report_map(result)

    def test_unknown_exclusion_keeps_reports(self):
        def run(excludes):
            universe = Universe("x86_64")
            build_chain(universe)
            for name in excludes:
                universe.exclude_name(name)
            return [r.lines() for r in InstallCheck(universe).run().reports]

        assert run([]) == run(["does-not-exist"])

    def test_empty_universe(self, universe):
        universe.finalize()
        result = InstallCheck(universe).run()
        assert result.checked == 0
        assert result.rounds == []
        assert result.reports == []

    def test_source_package_checked(self, universe):
        repo = universe.pool.add_repo("tmp-src")
        src = add_package(universe, repo, "foo", arch="src")
        universe.finalize()
        assert select_candidates(universe) == [src]

    def test_foreign_arch_not_checked(self, universe):
        repo = universe.pool.add_repo("tmp")
        add_package(universe, repo, "foo", arch="ppc64le")
        ok = add_package(universe, repo, "bar")
        universe.finalize()
        assert select_candidates(universe) == [ok]
