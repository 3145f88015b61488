"""Resolution of program references into executable paths.

A reference may be a full path, a relative path, a directory, a program name
on PATH or a fragment of a program's file name. Lookups are tried in order
and the first that succeeds wins:

1. Path-like input (contains a separator or ends in .exe) that exists
2. Exact name lookup on PATH (``where`` on Windows)
3. File name search under PATH entries and common install directories
"""

import enum
import logging
import os
import platform
import subprocess
from typing import Iterator, List, Mapping, Optional, Sequence

import psutil

from netblock.console import decode_output
from netblock.errors import EmptyInputError, NoExecutablesFoundError, NotFoundError

logger = logging.getLogger(__name__)

EXECUTABLE_EXT = '.exe'
LIBRARY_EXT = '.dll'

# Install directories checked at the root of every volume
COMMON_INSTALL_DIRS = (
    'Program Files',
    'Program Files (x86)',
    'ProgramData',
    'Games',
    'Software',
    'Apps',
    'Programs',
)

# Other top-level directories are searched if their name contains one of these
INSTALL_DIR_KEYWORDS = ('program', 'game', 'app', 'soft')

DEFAULT_MAX_MATCHES = 5


class MatchPolicy(enum.Enum):
    """How many name-search hits to collect from the first matching root."""

    FIRST_MATCH = 'first'
    TOP_N = 'top_n'


def is_path_like(reference: str) -> bool:
    """Check if a reference looks like a path rather than a bare name."""
    return ('\\' in reference
            or '/' in reference
            or reference.lower().endswith(EXECUTABLE_EXT))


def walk_files(root: str, skip_errors: bool = True) -> Iterator[str]:
    """Yield every file below a directory, depth-first in name order.

    Args:
        root: Directory to walk
        skip_errors: Skip directories that cannot be read. When False the
            OSError from the failing directory is raised instead.

    Yields:
        Paths of regular files (and anything else that is not a directory)
    """
    def _on_error(error: OSError):
        if not skip_errors:
            raise error
        logger.debug("Skipping unreadable entry: %s", error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            yield os.path.join(dirpath, filename)


def find_executables_in_dir(directory: str) -> List[str]:
    """Find all .exe and .dll files below a directory.

    Raises:
        NoExecutablesFoundError: If the directory contains none
    """
    results = [
        path for path in walk_files(directory, skip_errors=True)
        if path.lower().endswith((EXECUTABLE_EXT, LIBRARY_EXT))
    ]
    if not results:
        raise NoExecutablesFoundError(directory)
    return results


def where(name: str) -> List[str]:
    """Look a command up on PATH.

    Uses ``where`` on Windows and ``which`` elsewhere.

    Returns:
        Candidate paths in the order the tool reported them (may be empty)
    """
    windows = platform.system() == 'Windows'
    tool = 'where' if windows else 'which'
    try:
        result = subprocess.run([tool, name], capture_output=True)
    except OSError:
        return []
    if result.returncode != 0:
        return []
    output = decode_output(result.stdout, None if windows else 'utf-8')
    return [line.strip() for line in output.splitlines() if line.strip()]


def list_volumes() -> List[str]:
    """Return the mount points of all available volumes (e.g. ``C:\\``)."""
    # Without all=True psutil leaves out mapped network drives and RAM disks
    # on Windows. Empty CD and removable drives fail the isdir check below.
    windows = platform.system() == 'Windows'
    volumes = []
    for partition in psutil.disk_partitions(all=windows):
        mountpoint = partition.mountpoint
        if mountpoint and mountpoint not in volumes and os.path.isdir(mountpoint):
            volumes.append(mountpoint)
    return volumes


def collect_search_roots(env: Optional[Mapping[str, str]] = None,
                         volumes: Optional[Sequence[str]] = None) -> List[str]:
    """Collect directories to search for programs by name.

    Args:
        env: Environment to read PATH and USERPROFILE from (default: os.environ)
        volumes: Volume roots to scan (default: ``list_volumes()``)

    Returns:
        PATH entries, then install directories found on each volume, then the
        per-user programs directory
    """
    if env is None:
        env = os.environ
    if volumes is None:
        volumes = list_volumes()

    roots = []
    for entry in env.get('PATH', '').split(os.pathsep):
        entry = entry.strip()
        if entry:
            roots.append(entry)

    for volume in volumes:
        for name in COMMON_INSTALL_DIRS:
            path = os.path.join(volume, name)
            if os.path.isdir(path):
                roots.append(path)

        try:
            with os.scandir(volume) as entries:
                names = sorted(entry.name for entry in entries if entry.is_dir())
        except OSError:
            continue

        known = {root.lower() for root in roots}
        for name in names:
            if any(keyword in name.lower() for keyword in INSTALL_DIR_KEYWORDS):
                path = os.path.join(volume, name)
                if path.lower() not in known:
                    roots.append(path)
                    known.add(path.lower())

    profile = env.get('USERPROFILE')
    if profile:
        user_programs = os.path.join(profile, 'AppData', 'Local', 'Programs')
        if os.path.isdir(user_programs):
            roots.append(user_programs)

    return roots


class PathResolver:
    """Turn program references into absolute executable paths."""

    def __init__(self, roots: Optional[Sequence[str]] = None, lookup=None,
                 match_policy: MatchPolicy = MatchPolicy.FIRST_MATCH,
                 max_matches: int = DEFAULT_MAX_MATCHES):
        """Initialize resolver.

        Args:
            roots: Fixed directories for name search. When omitted they are
                collected afresh on every resolve call.
            lookup: Callable mapping a command name to candidate paths
                (default: ``where``)
            match_policy: Return the first name-search hit, or up to
                ``max_matches`` hits from the first root that has any
            max_matches: Hit limit for ``MatchPolicy.TOP_N``
        """
        if max_matches < 1:
            raise ValueError(f"max_matches must be at least 1, got {max_matches}")
        self.roots = list(roots) if roots is not None else None
        self.lookup = lookup if lookup is not None else where
        self.match_policy = match_policy
        self.max_matches = max_matches

    def search_roots(self) -> List[str]:
        if self.roots is not None:
            return list(self.roots)
        return collect_search_roots()

    def resolve(self, reference: str) -> List[str]:
        """Resolve a program reference.

        Args:
            reference: Path, directory, program name or name fragment

        Returns:
            One or more absolute paths. Directories expand to every .exe and
            .dll inside them.

        Raises:
            EmptyInputError: If the reference is blank
            NoExecutablesFoundError: If a directory holds no executables
            NotFoundError: If nothing matches the reference
        """
        reference = reference.strip()
        if not reference:
            raise EmptyInputError("Program reference is empty")

        if is_path_like(reference):
            paths = self._resolve_path(reference)
            if paths:
                return paths

        path = self._lookup_exact(reference)
        if path:
            logger.debug("Found %s on PATH: %s", reference, path)
            return [path]

        paths = self._search_by_name(reference)
        if not paths:
            raise NotFoundError(reference)
        return paths

    def _resolve_path(self, reference: str) -> Optional[List[str]]:
        path = os.path.abspath(reference)
        if not os.path.exists(path):
            return None
        if os.path.isdir(path):
            return find_executables_in_dir(path)
        return [path]

    def _lookup_exact(self, name: str) -> Optional[str]:
        for candidate in (name, name + EXECUTABLE_EXT):
            found = self.lookup(candidate)
            if not found:
                continue
            # Only the first reported candidate is considered
            path = found[0]
            if os.path.exists(path) and not os.path.isdir(path):
                return path
        return None

    def _search_by_name(self, fragment: str) -> List[str]:
        """Search roots for .exe files whose name contains the fragment."""
        fragment_lower = fragment.lower()
        limit = 1 if self.match_policy is MatchPolicy.FIRST_MATCH else self.max_matches

        for root in self.search_roots():
            matches = []
            for path in walk_files(root, skip_errors=True):
                if not path.lower().endswith(EXECUTABLE_EXT):
                    continue
                stem = os.path.splitext(os.path.basename(path))[0].lower()
                if fragment_lower in stem:
                    matches.append(path)
                    if len(matches) >= limit:
                        break
            if matches:
                logger.debug("Name search for %s matched under %s", fragment, root)
                return matches
        return []
