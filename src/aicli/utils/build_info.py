from __future__ import annotations

"""Build provenance shown by ``ai-cli --version``.

A Python install records no commit, so the commit and dirty flag are asked
from git when the package runs out of a checkout (editable installs). The
build time is the modification time of the installed package. Anything
that cannot be determined reads ``unknown``.
"""

import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from aicli.logging.helpers import get_logger

logger = get_logger('utils.build_info')

UNKNOWN = 'unknown'
_PACKAGE_DIR = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class BuildInfo:
    version: str
    commit: str = UNKNOWN
    dirty: bool = False
    built: str = UNKNOWN

    @property
    def short_commit(self) -> str:
        if self.commit == UNKNOWN:
            return UNKNOWN
        return self.commit[:7] + ('-dirty' if self.dirty else '')

    def render(self) -> str:
        return (
            f'ai-cli version {self.version}\n'
            f'Commit: {self.short_commit}\n'
            f'Full commit: {self.commit}\n'
            f'Built: {self.built}\n'
        )


def _git(args: List[str], cwd: Path) -> Optional[subprocess.CompletedProcess]:
    cmd = ['git', '-C', str(cwd), *args]
    try:
        return subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True, timeout=2, check=False
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug('git unavailable for build info: %s', exc)
        return None


def _built_at(package_dir: Path) -> str:
    try:
        mtime = (package_dir / '__init__.py').stat().st_mtime
    except OSError:
        return UNKNOWN
    ts = datetime.fromtimestamp(mtime, tz=timezone.utc)
    return ts.isoformat(timespec='seconds').replace('+00:00', 'Z')


def collect_build_info(version: str, package_dir: Path = _PACKAGE_DIR) -> BuildInfo:
    head = _git(['rev-parse', 'HEAD'], package_dir)
    if head is None or head.returncode != 0 or not head.stdout.strip():
        return BuildInfo(version=version, built=_built_at(package_dir))

    status = _git(['status', '--porcelain', '--untracked-files=no'], package_dir)
    dirty = bool(status is not None and status.returncode == 0 and status.stdout.strip())
    return BuildInfo(
        version=version,
        commit=head.stdout.strip(),
        dirty=dirty,
        built=_built_at(package_dir),
    )
