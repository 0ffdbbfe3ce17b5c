"""Staging directory lifecycle and the symlink capability probe."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

from .errors import FileSystemError
from .models import Combination
from .utils import ensure_directory, remove_path

logger = logging.getLogger(__name__)

STAGING_DIRNAME = "electron-packager"


class StagingArea:
    """Working directories for one packaging run.

    With staging enabled every combination is built in
    ``<temp base>/<platform>-<arch>-template``; when disabled the template
    directories are created directly in the output directory.
    """

    def __init__(self, tmpdir: Union[str, bool, None] = None, out_dir: Optional[str] = None) -> None:
        self.enabled = tmpdir is not False
        base = tmpdir if isinstance(tmpdir, (str, os.PathLike)) else tempfile.gettempdir()
        self.temp_base = Path(base) / STAGING_DIRNAME
        self.out_dir = Path(out_dir) if out_dir else None
        self._symlink_support: Optional[bool] = None
        self._probe_lock = threading.Lock()

    @property
    def root(self) -> Path:
        if self.enabled:
            return self.temp_base
        return self.out_dir or Path.cwd()

    def clear(self) -> None:
        """Remove leftovers of a previous (possibly interrupted) run."""

        if not self.enabled:
            return
        logger.debug("Clearing staging root %s", self.temp_base)
        try:
            remove_path(self.temp_base)
        except OSError as exc:
            raise FileSystemError(f"Unable to clear staging directory {self.temp_base}: {exc}") from exc

    def build_dir(self, combination: Combination) -> Path:
        return self.root / f"{combination.platform}-{combination.arch}-template"

    def prepare(self, combination: Combination) -> Path:
        build_dir = self.build_dir(combination)
        try:
            return ensure_directory(build_dir)
        except OSError as exc:
            raise FileSystemError(f"Unable to create build directory {build_dir}: {exc}") from exc

    def supports_symlinks(self) -> bool:
        """Whether symlinks can be created under the temp base; probed once per run."""

        with self._probe_lock:
            if self._symlink_support is None:
                self._symlink_support = self._probe_symlinks()
            return self._symlink_support

    def _probe_symlinks(self) -> bool:
        test_path = self.temp_base / "symlink-test"
        test_file = test_path / "test"
        test_link = test_path / "testlink"
        try:
            ensure_directory(test_path)
            test_file.write_text("")
            os.symlink(test_file, test_link)
            result = True
        except OSError as exc:
            logger.debug("Symlink probe failed: %s", exc)
            result = False
        try:
            remove_path(test_path)
        except OSError:
            pass  # cleanup must not change the probe result
        return result
