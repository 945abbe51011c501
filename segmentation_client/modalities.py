"""Input set for a 3D segmentation job: four MRI modalities, all required."""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from .errors import ValidationError

MODALITY_KEYS: Tuple[str, ...] = ("t1", "t1gd", "t2", "flair")
# view index -> display name, same order as MODALITY_KEYS
MODALITY_NAMES: Tuple[str, ...] = ("T1", "T1GD", "T2", "FLAIR")

@dataclass(frozen=True)
class ModalityFile:
    name: str
    content: bytes

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> ModalityFile:
        p = Path(path)
        return cls(name=p.name, content=p.read_bytes())

    def __bool__(self) -> bool:
        return bool(self.content)

ModalityHandle = Union[ModalityFile, bytes, None]

@dataclass(frozen=True)
class ModalitySet:
    t1: ModalityFile
    t1gd: ModalityFile
    t2: ModalityFile
    flair: ModalityFile

    def items(self) -> Iterator[Tuple[str, ModalityFile]]:
        for key in MODALITY_KEYS:
            yield key, getattr(self, key)

    def as_multipart(self) -> Dict[str, Tuple[str, bytes, str]]:
        return {
            key: (f.name, f.content, "application/octet-stream")
            for key, f in self.items()
        }

def _coerce(key: str, handle: ModalityHandle) -> Optional[ModalityFile]:
    if handle is None:
        return None
    if isinstance(handle, ModalityFile):
        return handle if handle.content else None
    if isinstance(handle, (bytes, bytearray)):
        return ModalityFile(name=f"{key}.nii.gz", content=bytes(handle)) if handle else None
    raise TypeError(f"Unsupported input for modality '{key}': {type(handle).__name__}")

def validate_modalities(
    t1: ModalityHandle = None,
    t1gd: ModalityHandle = None,
    t2: ModalityHandle = None,
    flair: ModalityHandle = None,
) -> ModalitySet:
    """Return a ModalitySet or raise ValidationError listing what is missing.

    Empty payloads count as missing. Nothing here touches the network.
    """
    given = {"t1": t1, "t1gd": t1gd, "t2": t2, "flair": flair}
    files = {key: _coerce(key, given[key]) for key in MODALITY_KEYS}
    missing = [key for key in MODALITY_KEYS if files[key] is None]
    if missing:
        names = ", ".join(MODALITY_NAMES[MODALITY_KEYS.index(k)] for k in missing)
        raise ValidationError(
            f"Please select all four MRI modalities (missing: {names}).", missing=missing
        )
    return ModalitySet(**files)

def modality_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(MODALITY_KEYS):
        raise ValidationError(f"Modality index must be 0-{len(MODALITY_KEYS) - 1}, got {index!r}.")
    return index
