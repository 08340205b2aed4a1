from __future__ import annotations
"""
File argument validation.

`PathValidator` turns a user-supplied path into an absolute, canonical path
that is guaranteed to live under one of the allowed roots (the working
directory plus any directory explicitly permitted with ``--allow-dir``).

Symlinks are resolved before the containment check, so a link inside the
working directory that points outside of it is rejected just like an
explicit ``../`` escape. Containment is decided before touching the file,
which means an escaping path is reported as a traversal even when the
target exists.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence

from aicli.core.interfaces.fs import PathValidatorProtocol
from aicli.errors import PathNotFound, PathNotReadable, PathTraversal
from aicli.logging.helpers import get_logger
from aicli.utils.paths import is_within_dir


class PathValidator(PathValidatorProtocol):
    def __init__(
        self,
        *,
        cwd: Optional[Path] = None,
        allowed_dirs: Iterable[str | Path] = (),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._log = logger or get_logger('io.paths')
        self._cwd = Path(cwd or Path.cwd()).resolve()
        roots = [self._cwd]
        for extra in allowed_dirs:
            root = Path(extra).expanduser()
            if not root.is_absolute():
                root = self._cwd / root
            root = root.resolve()
            if root not in roots:
                roots.append(root)
        self._roots: tuple[Path, ...] = tuple(roots)

    @property
    def roots(self) -> Sequence[Path]:
        return self._roots

    def validate(self, candidate: str | Path) -> Path:
        """Return the canonical absolute path for *candidate*.

        Raises:
            PathTraversal: The canonical path lies outside every allowed root.
            PathNotFound: Nothing exists at the canonical path.
            PathNotReadable: The path is not a regular file or cannot be read.
        """
        raw = os.fspath(candidate)
        pth = Path(raw)
        if not pth.is_absolute():
            pth = self._cwd / pth
        try:
            resolved = pth.resolve(strict=False)
        except (OSError, RuntimeError) as exc:
            # Symlink loops land here.
            raise PathNotReadable(pth, str(exc)) from exc

        if not any(is_within_dir(resolved, root) for root in self._roots):
            self._log.debug('rejecting %r → %s (roots: %s)', raw, resolved, ', '.join(map(str, self._roots)))
            raise PathTraversal(raw, resolved)

        if not resolved.exists():
            raise PathNotFound(resolved)
        if not resolved.is_file():
            raise PathNotReadable(resolved, 'not a regular file')
        if not os.access(resolved, os.R_OK):
            raise PathNotReadable(resolved, 'permission denied')

        self._log.debug('validated %r → %s', raw, resolved)
        return resolved

    def validate_all(self, candidates: Iterable[str | Path]) -> list[Path]:
        return [self.validate(c) for c in candidates]
