from __future__ import annotations

from pathlib import Path
from zipfile import BadZipFile, ZipFile

from bikefusion.core.errors import LoadError


def resolve_table_path(path: Path) -> Path:
    """Return `path`, extracting it from a sibling `<name>.zip` archive if needed.

    Source extracts are sometimes shipped zipped (e.g. `taz_land_use.csv.zip`).
    The archive must hold exactly one member named `path.name`; it is extracted
    next to the archive. A path with neither file nor archive is returned
    unchanged so the caller reports it as missing.
    """
    path = Path(path)
    if path.exists():
        return path

    zip_path = path.with_suffix(path.suffix + ".zip")
    if not zip_path.exists():
        return path

    try:
        with ZipFile(zip_path) as zf:
            matches = [n for n in zf.namelist() if not n.endswith("/") and Path(n).name == path.name]
            if len(matches) != 1:
                raise LoadError(f"{zip_path.name} must contain exactly one file named {path.name!r}")
            extracted = Path(zf.extract(matches[0], path.parent))
    except BadZipFile as exc:
        raise LoadError(f"corrupt archive {zip_path}: {exc}") from exc

    if extracted != path:
        extracted.replace(path)
    return path
