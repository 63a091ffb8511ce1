"""Discovery of numbered state manifests in a directory."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path, PurePath

NAMED_TEMPLATE_PREFIX = "_"

_STATE_NAME = re.compile(r"^[0-9]{4}[-_].*\.yaml$", re.DOTALL)


@dataclass(frozen=True)
class Metadata:
    """A manifest's file name and raw content."""

    name: str
    content: bytes


def _base(path: str | os.PathLike[str]) -> str:
    return PurePath(path).name


def valid_state_name(path: str | os.PathLike[str]) -> bool:
    """Whether the file name looks like ``NNNN-name.yaml`` or ``NNNN_name.yaml``."""
    return _STATE_NAME.match(_base(path)) is not None


def named_template(path: str | os.PathLike[str]) -> bool:
    """Whether the file name marks a named template."""
    return _base(path).startswith(NAMED_TEMPLATE_PREFIX)


def _state_files(root: Path) -> list[Path]:
    if root.is_file():
        candidates = [root]
    else:
        with os.scandir(root) as entries:
            candidates = [
                Path(entry.path)
                for entry in sorted(entries, key=lambda e: e.name)
                if not entry.is_dir(follow_symlinks=False)
            ]
    return [path for path in candidates if valid_state_name(path)]


def get_from(directory: str | os.PathLike[str]) -> list[Metadata]:
    """Read the numbered state manifests directly inside ``directory``, in name order."""
    root = Path(directory)
    if not root.exists():
        raise FileNotFoundError(f"Directory {root} does not exist, giving up")
    return [Metadata(path.name, path.read_bytes()) for path in _state_files(root)]