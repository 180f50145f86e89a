"""
Address book - persisted registry of deployed contracts and installed wasm.

One JSON file per network (``<network>.contracts.json``):

    {"ids": {contract_key: "C..."}, "hashes": {wasm_key: "<hex sha256>"}}

Entries are only set after the corresponding transaction is confirmed, and
``write()`` is called right after, so the file never claims more than what
is on-chain.  Writes are atomic (temp file + rename).  Concurrent writers in
different processes are not coordinated: last write wins.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import jsonschema
from jsonschema import FormatChecker

from ..errors import PreconditionError

SCHEMA_PATH = Path(__file__).with_name("address_book.schema.json")


@lru_cache(maxsize=1)
def _validator() -> jsonschema.Validator:
    with SCHEMA_PATH.open("r", encoding="utf-8") as f:
        schema = json.load(f)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema, format_checker=FormatChecker())


def validate_book(payload: dict[str, Any], source: str = "<memory>") -> None:
    errors = sorted(_validator().iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        formatted = []
        for err in errors:
            location = "/".join(str(part) for part in err.path) or "<root>"
            formatted.append(f"{location}: {err.message}")
        raise PreconditionError(
            f"Address book {source} is invalid: " + "; ".join(formatted),
            raw=formatted,
        )


def book_path(network: str, directory: Path) -> Path:
    return directory / f"{network}.contracts.json"


@dataclass
class AddressBook:
    path: Path
    network: str
    ids: dict[str, str] = field(default_factory=dict)
    hashes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, network: str, directory: Optional[Path] = None) -> "AddressBook":
        """Load the book for ``network``. A missing file yields an empty book."""
        directory = directory or Path(".")
        path = book_path(network, directory)
        if not path.exists():
            return cls(path=path, network=network)

        with path.open("r", encoding="utf-8") as f:
            try:
                payload = json.load(f)
            except json.JSONDecodeError as exc:
                raise PreconditionError(f"Address book {path} is not valid JSON: {exc}") from exc

        validate_book(payload, source=str(path))
        return cls(
            path=path,
            network=network,
            ids=dict(payload["ids"]),
            hashes=dict(payload["hashes"]),
        )

    # ---- contract ids ----

    def has_contract_id(self, contract_key: str) -> bool:
        return contract_key in self.ids

    def get_contract_id(self, contract_key: str) -> str:
        try:
            return self.ids[contract_key]
        except KeyError:
            raise PreconditionError(
                f"Contract '{contract_key}' is not registered in {self.path.name}",
                contract=contract_key,
            ) from None

    def set_contract_id(self, contract_key: str, contract_id: str) -> None:
        self.ids[contract_key] = contract_id

    # ---- wasm hashes ----

    def has_wasm_hash(self, wasm_key: str) -> bool:
        return wasm_key in self.hashes

    def get_wasm_hash(self, wasm_key: str) -> str:
        try:
            return self.hashes[wasm_key]
        except KeyError:
            raise PreconditionError(
                f"Wasm '{wasm_key}' has not been installed on {self.network}",
            ) from None

    def set_wasm_hash(self, wasm_key: str, wasm_hash: str) -> None:
        self.hashes[wasm_key] = wasm_hash.lower()

    # ---- persistence ----

    def to_dict(self) -> dict[str, Any]:
        return {"ids": dict(self.ids), "hashes": dict(self.hashes)}

    def write(self) -> Path:
        payload = self.to_dict()
        validate_book(payload, source=str(self.path))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = (json.dumps(payload, indent=2, sort_keys=True) + "\n").encode("utf-8")
        self._atomic_write(self.path, data)
        return self.path

    def _atomic_write(self, path: Path, data: bytes) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            with tmp.open("wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
