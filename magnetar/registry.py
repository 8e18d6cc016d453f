import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from magnetar.constants import (
    DEPLOYMENTS_DIR,
    RECORD_FIELDS,
    RECORD_FILENAME_PREFIX,
    ROUTERS_FIELD,
)
from magnetar.utils import _load_json

ChainId = int
RecordValue = Union[ChecksumAddress, List[ChecksumAddress]]

# Field name -> new value; fields that are omitted are left unchanged.
RecordPatch = Mapping[str, RecordValue]
DeploymentRecord = Dict[str, RecordValue]

STANDARD_RECORD_JSON_FORMAT = {"indent": 2, "separators": (",", ": ")}


class MissingRecordError(FileNotFoundError):
    """Raised when a procedure requires a deployment record that does not exist."""


class RecordPersistenceError(IOError):
    """Raised when a deployment record cannot be written."""


class CorruptRecordError(ValueError):
    """Raised when a stored deployment record is not valid JSON."""


def _normalize_value(field: str, value: RecordValue) -> RecordValue:
    if field == ROUTERS_FIELD:
        return [to_checksum_address(address) for address in value]
    return to_checksum_address(value)


def normalize_patch(patch: RecordPatch) -> DeploymentRecord:
    """Validates patch fields and checksums every address in it."""
    unknown = [field for field in patch if field not in RECORD_FIELDS]
    if unknown:
        raise ValueError(f"Unknown deployment record field(s): {', '.join(unknown)}")
    return {field: _normalize_value(field, value) for field, value in patch.items()}


def merge_record(
    record: Optional[Mapping[str, RecordValue]], patch: RecordPatch
) -> DeploymentRecord:
    """
    Shallow, last-writer-wins merge of a patch into a record.

    Every field present in the patch replaces the stored value outright
    (router lists are not unioned); every other field is kept as is.
    """
    merged = dict(record or dict())
    merged.update(normalize_patch(patch))
    return merged


class DeploymentRecordStore:
    """One JSON deployment record per chain id, stored under a single directory."""

    def __init__(self, directory: Path = DEPLOYMENTS_DIR):
        self.directory = Path(directory)

    def filepath(self, chain_id: ChainId) -> Path:
        return self.directory / f"{RECORD_FILENAME_PREFIX}-{int(chain_id)}.json"

    def exists(self, chain_id: ChainId) -> bool:
        return self.filepath(chain_id).exists()

    def load(self, chain_id: ChainId) -> DeploymentRecord:
        filepath = self.filepath(chain_id)
        if not filepath.exists():
            raise MissingRecordError(
                f"No deployment record for chain id {chain_id} at {filepath}. "
                "Run the core deployment first."
            )
        try:
            return _load_json(filepath)
        except json.JSONDecodeError as e:
            raise CorruptRecordError(
                f"Deployment record for chain id {chain_id} at {filepath} is not valid JSON: {e}"
            ) from e

    def load_or_none(self, chain_id: ChainId) -> Optional[DeploymentRecord]:
        if not self.exists(chain_id):
            return None
        return self.load(chain_id)

    def save(self, chain_id: ChainId, patch: RecordPatch) -> Path:
        """Merges the patch into the stored record for chain_id and writes it back."""
        filepath = self.filepath(chain_id)
        record = merge_record(self.load_or_none(chain_id), patch)

        if filepath.exists():
            print(f"Updating existing deployment record at {filepath}.")
        else:
            print(f"Creating new deployment record at {filepath}.")

        temp_filepath = filepath.with_suffix(".temp.json")
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_filepath, "w") as file:
                json.dump(record, file, **STANDARD_RECORD_JSON_FORMAT)
            os.replace(temp_filepath, filepath)
        except OSError as e:
            with suppress(OSError):
                temp_filepath.unlink()
            raise RecordPersistenceError(
                f"Error writing deployment record for chain id {chain_id} to {filepath}: {e}"
            ) from e

        return filepath

    def chain_ids(self) -> List[ChainId]:
        """Returns the chain ids of every stored record."""
        if not self.directory.exists():
            return list()
        prefix = f"{RECORD_FILENAME_PREFIX}-"
        chain_ids = list()
        for filepath in self.directory.glob(f"{prefix}*.json"):
            suffix = filepath.stem[len(prefix):]
            if suffix.isdigit():
                chain_ids.append(int(suffix))
        return sorted(chain_ids)

    def find(self, address: ChecksumAddress) -> List[Tuple[ChainId, str]]:
        """Returns (chain id, field) for every record field that references address."""
        address = to_checksum_address(address)
        matches = list()
        for chain_id in self.chain_ids():
            record = self.load(chain_id)
            for field in RECORD_FIELDS:
                value = record.get(field)
                if value is None:
                    continue
                addresses = value if field == ROUTERS_FIELD else [value]
                if address in (to_checksum_address(a) for a in addresses):
                    matches.append((chain_id, field))
        return matches
