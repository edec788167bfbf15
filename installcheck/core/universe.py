"""Package universe backed by a libsolv Pool.

Wraps pool creation, repository loading and the "considered" mask. The mask
is a set of excluded ids owned by the Universe; apply_considered() pushes it
to the pool.
"""

import logging
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional, Set

import solv

from .compression import read_decompressed
from .errors import RepositoryLoadError
from .model import ArchClass, PackageInfo

logger = logging.getLogger(__name__)

# Flags for file list extensions (tmp-filenames.solvx)
EXTEND_FLAGS = solv.Repo.REPO_EXTEND_SOLVABLES | solv.Repo.REPO_LOCALPOOL


def has_synthesis_support() -> bool:
    """True if libsolv was built with Mandriva/Mageia (mdk) support."""
    return hasattr(solv.Repo, 'add_mdk')


class Universe:
    """All known packages for one target architecture."""

    def __init__(self, arch: str):
        """Create an empty universe.

        Args:
            arch: Target architecture (e.g. 'x86_64')
        """
        self.arch = arch
        self.pool = solv.Pool()
        self.pool.setdisttype(solv.Pool.DISTTYPE_RPM)
        self.pool.setarch(arch)
        self._excluded: Set[int] = set()
        logger.debug("Created pool for arch=%s", arch)

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def load_solv(self, name: str, path: Path,
                  extensions: Optional[List[Path]] = None) -> solv.Repo:
        """Load a .solv file into a new repository.

        Args:
            name: Repository name
            path: Main .solv file
            extensions: .solvx files extending the solvables of `path`
                        (file lists)

        Raises:
            RepositoryLoadError: if any file cannot be opened or parsed
        """
        repo = self.pool.add_repo(name)
        repo.appdata = {"type": "solv", "path": str(path)}
        self._add_solv(repo, Path(path), 0)
        for ext_path in extensions or []:
            self._add_solv(repo, Path(ext_path), EXTEND_FLAGS)
        logger.debug("Loaded %d packages into %s from %s", repo.nsolvables, name, path)
        return repo

    def _add_solv(self, repo: solv.Repo, path: Path, flags: int):
        if not path.exists():
            raise RepositoryLoadError(path, "No such file or directory")

        f = solv.xfopen(str(path))
        if not f:
            raise RepositoryLoadError(path, "cannot open")
        try:
            if not repo.add_solv(f, flags):
                raise RepositoryLoadError(path, "not a valid solv file")
        finally:
            f.close()

    def load_synthesis(self, name: str, path: Path) -> solv.Repo:
        """Load a Mageia synthesis.hdlist.cz into a new repository.

        The synthesis is decompressed first (zstd/gzip/xz/bzip2) since
        add_mdk() only reads plain text.

        Raises:
            RepositoryLoadError: if the file cannot be read or parsed
        """
        path = Path(path)
        if not has_synthesis_support():
            raise RepositoryLoadError(path, "libsolv built without synthesis (mdk) support")
        data = read_decompressed(path)

        repo = self.pool.add_repo(name)
        repo.appdata = {"type": "synthesis", "path": str(path)}

        with tempfile.NamedTemporaryFile(suffix='.hdlist') as tmp:
            tmp.write(data)
            tmp.flush()

            f = solv.xfopen(tmp.name)
            if not f:
                raise RepositoryLoadError(path, "cannot open decompressed synthesis")
            try:
                if not repo.add_mdk(f):
                    raise RepositoryLoadError(path, "not a valid synthesis file")
            finally:
                f.close()

        logger.debug("Loaded %d packages into %s from synthesis %s",
                     repo.nsolvables, name, path)
        return repo

    def finalize(self):
        """Build file provides and whatprovides indices.

        Must be called once after all repositories are loaded and before
        any solve.
        """
        self.pool.addfileprovides()
        self.pool.createwhatprovides()

    # -------------------------------------------------------------------
    # Considered mask
    # -------------------------------------------------------------------

    def find_ids_by_name(self, name: str) -> List[int]:
        """Return ids of all packages named exactly `name`."""
        nameid = self.pool.str2id(name, False)
        if not nameid:
            return []
        return [s.id for s in self.pool.solvables if s.repo and s.nameid == nameid]

    def exclude_name(self, name: str) -> int:
        """Remove every package named `name` from the considered set.

        Returns:
            Number of packages excluded (0 means the name is unknown, which
            is logged as a warning and otherwise ignored)
        """
        ids = self.find_ids_by_name(name)
        if not ids:
            logger.warning("can't find %s, skipping", name)
            return 0

        for p in ids:
            logger.debug("disabling %s", self.display(p))
            self._excluded.add(p)
        return len(ids)

    def is_considered(self, p: int) -> bool:
        return p not in self._excluded

    @property
    def excluded(self) -> Set[int]:
        return set(self._excluded)

    def apply_considered(self):
        """Push the considered mask to the pool.

        Without exclusions the pool keeps its default (everything considered).
        """
        if not self._excluded:
            return
        considered = [s.id for s in self.pool.solvables if s.id not in self._excluded]
        self.pool.set_considered_list(considered)

    # -------------------------------------------------------------------
    # Package access
    # -------------------------------------------------------------------

    def _arch_class(self, s) -> ArchClass:
        if s.archid == solv.ARCH_SRC:
            return ArchClass.SOURCE
        if s.archid == solv.ARCH_NOSRC:
            return ArchClass.NOSOURCE
        if self.pool.isknownarch(s.archid):
            return ArchClass.BINARY
        return ArchClass.OTHER

    def _info(self, s) -> PackageInfo:
        return PackageInfo(
            id=s.id,
            name=s.name,
            evr=s.evr,
            arch=s.arch,
            arch_class=self._arch_class(s),
            repo=s.repo.name if s.repo else '',
        )

    def packages(self) -> Iterator[PackageInfo]:
        """Iterate over all packages owned by a repository, in id order."""
        for s in self.pool.solvables:
            if not s.repo:
                continue
            yield self._info(s)

    def package(self, p: int) -> PackageInfo:
        return self._info(self.pool.id2solvable(p))

    def is_installable(self, p: int) -> bool:
        """libsolv installability precondition (arch, considered, repo)."""
        return bool(self.pool.id2solvable(p).installable())

    def display(self, p: int) -> str:
        """Format a package for diagnostics (name-evr.arch)."""
        return str(self.pool.id2solvable(p))

    def __len__(self) -> int:
        return sum(1 for s in self.pool.solvables if s.repo)
