import json
import re

import pytest

from magnetar.registry import (
    CorruptRecordError,
    DeploymentRecordStore,
    MissingRecordError,
    RecordPersistenceError,
    merge_record,
)
from tests.conftest import CHAIN_ID, address

ROUTERS = [address(1), address(2)]
EXECUTOR = address(3)


def test_merge_record_replaces_only_patched_fields():
    record = {"routers": ROUTERS, "swapExecutor": EXECUTOR, "v2SwapExecutor": address(4)}
    merged = merge_record(record, {"swapExecutor": address(5)})
    assert merged == {"routers": ROUTERS, "swapExecutor": address(5), "v2SwapExecutor": address(4)}
    # the input record is not mutated
    assert record["swapExecutor"] == EXECUTOR


def test_merge_record_replaces_router_lists():
    merged = merge_record({"routers": ROUTERS}, {"routers": [address(9)]})
    assert merged == {"routers": [address(9)]}


def test_merge_record_without_existing_record():
    assert merge_record(None, {"swapExecutor": EXECUTOR}) == {"swapExecutor": EXECUTOR}


def test_merge_record_checksums_addresses():
    merged = merge_record(None, {"routers": [a.lower() for a in ROUTERS]})
    assert merged["routers"] == ROUTERS


def test_merge_record_rejects_unknown_fields():
    with pytest.raises(ValueError, match="coordinator"):
        merge_record(None, {"coordinator": EXECUTOR})


def test_filepath_uses_chain_id(store):
    assert store.filepath(CHAIN_ID).name == f"CoreOutput-{CHAIN_ID}.json"


def test_load_missing_record(store):
    assert not store.exists(CHAIN_ID)
    assert store.load_or_none(CHAIN_ID) is None
    with pytest.raises(MissingRecordError):
        store.load(CHAIN_ID)


def test_save_creates_record(store):
    filepath = store.save(CHAIN_ID, {"routers": ROUTERS, "swapExecutor": EXECUTOR})
    assert filepath == store.filepath(CHAIN_ID)
    assert store.load(CHAIN_ID) == {"routers": ROUTERS, "swapExecutor": EXECUTOR}
    # pretty-printed
    assert filepath.read_text().startswith('{\n  "routers"')
    assert not filepath.with_suffix(".temp.json").exists()


def test_save_merges_into_existing_record(store):
    store.save(CHAIN_ID, {"routers": ROUTERS, "swapExecutor": EXECUTOR})
    store.save(CHAIN_ID, {"v2SwapExecutor": address(4)})
    store.save(CHAIN_ID, {"v3SwapExecutor": address(5)})
    assert store.load(CHAIN_ID) == {
        "routers": ROUTERS,
        "swapExecutor": EXECUTOR,
        "v2SwapExecutor": address(4),
        "v3SwapExecutor": address(5),
    }


def test_save_keeps_unknown_stored_fields(store):
    filepath = store.filepath(CHAIN_ID)
    filepath.parent.mkdir(parents=True)
    filepath.write_text(json.dumps({"notes": "keep me", "swapExecutor": EXECUTOR}))
    store.save(CHAIN_ID, {"routers": ROUTERS})
    assert store.load(CHAIN_ID) == {
        "notes": "keep me",
        "swapExecutor": EXECUTOR,
        "routers": ROUTERS,
    }


def test_save_failure_is_surfaced(tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    store = DeploymentRecordStore(directory=blocker)
    with pytest.raises(RecordPersistenceError):
        store.save(CHAIN_ID, {"swapExecutor": EXECUTOR})


def test_chain_ids(store):
    assert store.chain_ids() == []
    store.save(10, {"swapExecutor": EXECUTOR})
    store.save(1, {"swapExecutor": EXECUTOR})
    (store.directory / "unrelated.json").write_text("{}")
    assert store.chain_ids() == [1, 10]


def test_save_failure_removes_temp_file(store, monkeypatch):
    store.save(CHAIN_ID, {"swapExecutor": EXECUTOR})

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("magnetar.registry.os.replace", fail_replace)
    with pytest.raises(RecordPersistenceError, match="disk full"):
        store.save(CHAIN_ID, {"routers": ROUTERS})

    assert not store.filepath(CHAIN_ID).with_suffix(".temp.json").exists()
    # the previous record is intact
    assert store.load(CHAIN_ID) == {"swapExecutor": EXECUTOR}


def test_corrupt_record(store):
    filepath = store.filepath(CHAIN_ID)
    filepath.parent.mkdir(parents=True)
    filepath.write_text('{"routers": [')

    with pytest.raises(CorruptRecordError, match=re.escape(str(filepath))):
        store.load(CHAIN_ID)
    # a corrupt record is never overwritten
    with pytest.raises(CorruptRecordError):
        store.save(CHAIN_ID, {"swapExecutor": EXECUTOR})
    assert filepath.read_text() == '{"routers": ['


def test_find_address(store):
    store.save(1, {"routers": ROUTERS, "swapExecutor": EXECUTOR})
    store.save(10, {"v2SwapExecutor": ROUTERS[1]})

    assert store.find(ROUTERS[1].lower()) == [(1, "routers"), (10, "v2SwapExecutor")]
    assert store.find(EXECUTOR) == [(1, "swapExecutor")]
    assert store.find(address(99)) == []
