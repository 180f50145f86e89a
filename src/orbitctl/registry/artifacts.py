from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from ..config import WASM_FILES
from ..errors import PreconditionError


@dataclass
class ArtifactStore:
    """Maps logical wasm keys to compiled contract files on disk."""

    root: Path
    files: Mapping[str, str] = field(default_factory=lambda: dict(WASM_FILES))
    _cache: dict[str, bytes] = field(default_factory=dict, init=False, repr=False)

    def path(self, wasm_key: str) -> Path:
        try:
            return self.root / self.files[wasm_key]
        except KeyError:
            raise PreconditionError(
                f"Unknown wasm key '{wasm_key}'. Known keys: {', '.join(sorted(self.files))}"
            ) from None

    def read(self, wasm_key: str) -> bytes:
        if wasm_key not in self._cache:
            path = self.path(wasm_key)
            if not path.is_file():
                raise PreconditionError(f"Wasm artifact for '{wasm_key}' not found at {path}")
            self._cache[wasm_key] = path.read_bytes()
        return self._cache[wasm_key]
