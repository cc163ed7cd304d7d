"""Writing scraper results to disk: directories, JSON, text and zip archives."""

import json
import logging
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """What a scraper run produced, for the CLI to report."""

    output_dir: Path
    files: List[Path] = field(default_factory=list)
    summary: Dict[str, object] = field(default_factory=dict)

    def saved(self, path: Path) -> Path:
        self.files.append(path)
        return path


def prepare_output_dir(path: Path, keep: bool = False) -> Path:
    """Create the output directory, emptying it first unless keep is set."""
    path.mkdir(parents=True, exist_ok=True)
    if keep:
        logger.info("Keeping old data in %s", path)
        return path

    logger.info("Deleting old scraped data in %s", path)
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    return path


def json_text(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_text(data), encoding="utf-8")
    return path


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def build_zip(
    zip_path: Path,
    entries: Dict[str, Union[str, bytes]],
    extra_dir: Optional[Path] = None,
    skip_suffixes: Iterable[str] = (),
) -> Path:
    """
    Write a deflated zip.

    entries maps archive names to content. When extra_dir is given, loose
    files directly inside it are added too, except zips and anything ending in
    one of skip_suffixes.
    """
    skip = tuple(skip_suffixes) + (".zip",)
    zip_path.parent.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)

        if extra_dir is not None:
            for file in sorted(extra_dir.iterdir()):
                if not file.is_file() or file.name.endswith(skip) or file.name in entries:
                    continue
                zf.write(file, arcname=file.name)

    return zip_path


def zip_directory(src_dir: Path, zip_path: Path) -> Path:
    """Zip the whole tree under src_dir, paths relative to it."""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for file in sorted(src_dir.rglob("*")):
            if file.is_file() and file.resolve() != zip_path.resolve():
                zf.write(file, arcname=file.relative_to(src_dir).as_posix())
    return zip_path
