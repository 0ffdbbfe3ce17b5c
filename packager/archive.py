from __future__ import annotations

import os
import stat
import zipfile
from pathlib import Path

from .errors import ExtractionError
from .utils import ensure_directory


def _is_symlink(info: zipfile.ZipInfo) -> bool:
    return stat.S_ISLNK(info.external_attr >> 16)


def extract_zip(archive: str | Path, destination: str | Path) -> Path:
    """Unpack ``archive`` into ``destination``, restoring unix modes and symlinks.

    Mac runtime archives depend on symlinks inside their framework bundles,
    which :meth:`zipfile.ZipFile.extractall` would write out as plain files.
    """

    destination = ensure_directory(destination).resolve()
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                target = Path(os.path.normpath(destination / info.filename))
                if target != destination and destination not in target.parents:
                    raise ExtractionError(f"Refusing to extract {info.filename} outside {destination}")
                if info.is_dir():
                    ensure_directory(target)
                    continue
                ensure_directory(target.parent)
                if _is_symlink(info):
                    link_target = zf.read(info).decode("utf-8")
                    if target.is_symlink() or target.exists():
                        target.unlink()
                    os.symlink(link_target, target)
                    continue
                with zf.open(info) as source, open(target, "wb") as sink:
                    while True:
                        chunk = source.read(1024 * 1024)
                        if not chunk:
                            break
                        sink.write(chunk)
                mode = (info.external_attr >> 16) & 0o777
                if mode:
                    os.chmod(target, mode)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ExtractionError(f"Unable to extract {archive}: {exc}") from exc
    return destination
