"""
Main CLI entry point for installcheck

    installcheck [options] [EXCLUDE ...]

Loads the configured repositories, removes every package named EXCLUDE from
the considered set, then reports each package that cannot be installed.
Reports go to stdout; progress, warnings and errors go to stderr. Finding
uninstallable packages is not an error: the exit status stays 0.
"""

import argparse
import logging
import sys
from pathlib import Path

from .. import __version__
from ..core.check import CheckResult, InstallCheck
from ..core.config import CheckConfig, load_config
from ..core.errors import InstallCheckError

logger = logging.getLogger(__name__)


def check_dependencies() -> list:
    """Check for required Python modules.

    Returns:
        List of (package, purpose) for missing modules (empty if all OK)
    """
    missing = []

    # Check libsolv (required for dependency resolution)
    try:
        import solv  # noqa: F401
    except ImportError:
        missing.append(('python3-solv', 'dependency resolution'))

    # Check zstandard (required for .cz decompression)
    try:
        import zstandard  # noqa: F401
    except ImportError:
        missing.append(('python3-zstandard', 'synthesis decompression'))

    return missing


def print_missing_dependencies(missing: list):
    """Print error message for missing dependencies."""
    print("ERROR: Missing required Python modules:\n", file=sys.stderr)
    for pkg, purpose in missing:
        print(f"  - {pkg} ({purpose})", file=sys.stderr)
    print("\nInstall with:", file=sys.stderr)
    print(f"  urpmi {' '.join(pkg for pkg, _ in missing)}", file=sys.stderr)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""

    parser = argparse.ArgumentParser(
        prog='installcheck',
        description='Report packages that cannot be installed from a set of repositories',
        epilog='Packages named EXCLUDE are ignored when resolving dependencies.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'installcheck {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output (progress and debug messages)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Only print errors on stderr'
    )

    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )

    # =========================================================================
    # Repositories
    # =========================================================================
    repo_group = parser.add_argument_group('repositories')
    repo_group.add_argument(
        '--config',
        type=Path,
        help='Config file (default: $INSTALLCHECK_CONFIG or /etc/installcheck.conf)'
    )
    repo_group.add_argument(
        '--arch',
        help='Target architecture (default: running system)'
    )
    repo_group.add_argument(
        '--cachedir',
        type=Path,
        help='Directory holding <repo>.solv files (default: /var/cache/dnf)'
    )
    repo_group.add_argument(
        '--repo',
        dest='repos',
        action='append',
        metavar='NAME',
        help='Binary repository to load (repeatable, default: tmp)'
    )
    repo_group.add_argument(
        '--source-repo',
        dest='source_repos',
        action='append',
        metavar='NAME',
        help='Source repository to load (repeatable, default: tmp-src)'
    )
    repo_group.add_argument(
        '--synthesis',
        action='append',
        type=Path,
        metavar='PATH',
        help='Mageia synthesis.hdlist.cz to load (repeatable)'
    )

    parser.add_argument(
        'exclude', nargs='*',
        metavar='EXCLUDE',
        help='Package names to exclude'
    )

    return parser


def setup_logging(args):
    """Configure logging on stderr according to --verbose/--quiet."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr
    )


def build_config(args) -> CheckConfig:
    """Config file values overridden by command-line options."""
    config = load_config(args.config)

    if args.arch:
        config.arch = args.arch
    if args.cachedir:
        config.cachedir = args.cachedir.expanduser()
    if args.repos:
        config.repos = list(args.repos)
    if args.source_repos:
        config.source_repos = list(args.source_repos)
    if args.synthesis:
        config.synthesis = list(args.synthesis)

    return config


def synthesis_repo_name(path: Path) -> str:
    """Repository name for a synthesis file.

    <media>/media_info/synthesis.hdlist.cz is named after <media>.
    """
    if path.parent.name == 'media_info' and path.parent.parent.name:
        return path.parent.parent.name
    return path.name


def build_universe(config: CheckConfig):
    """Load every configured repository and build the indices.

    Raises:
        RepositoryLoadError: if a metadata file cannot be loaded
    """
    from ..core.universe import Universe

    universe = Universe(config.arch)

    for name in config.repos:
        extensions = []
        filelist = config.filelist_path(name)
        if filelist.exists():
            extensions.append(filelist)
        universe.load_solv(name, config.solv_path(name), extensions)

    for name in config.source_repos:
        universe.load_solv(name, config.solv_path(name))

    for path in config.synthesis:
        universe.load_synthesis(synthesis_repo_name(path), path)

    universe.finalize()
    logger.info("Loaded %d packages for %s", len(universe), config.arch)
    return universe


def build_engine(universe):
    from ..core.engine import SolvingEngine
    return SolvingEngine(universe)


def run_check(args) -> CheckResult:
    config = build_config(args)
    universe = build_universe(config)

    for name in args.exclude:
        universe.exclude_name(name)

    result = InstallCheck(universe, build_engine(universe)).run()
    logger.info("%d of %d packages cannot be installed", result.failed, result.checked)
    return result


# =============================================================================
# Main entry point
# =============================================================================

def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # --help and --version work without the solver bindings
    missing = check_dependencies()
    if missing:
        print_missing_dependencies(missing)
        return 1

    setup_logging(args)

    from . import colors
    colors.init(nocolor=args.nocolor)

    try:
        result = run_check(args)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    except InstallCheckError as e:
        if args.verbose:
            import traceback
            traceback.print_exc()
        print(colors.error(f"Error: {e}"), file=sys.stderr)
        return 1

    from .report import OutputMode, print_result
    print_result(result, OutputMode.JSON if args.json else OutputMode.TEXT)
    return 0


if __name__ == '__main__':
    sys.exit(main())
