"""
Unit tests for snapshot file persistence
"""

import json
import threading

import pytest

from stores import SnapshotFile
from utils.exceptions import PersistenceError, ErrorCodes


@pytest.mark.unit
class TestSnapshotFile:
    """Test cases for SnapshotFile"""

    async def test_load_missing_file(self, temp_dir):
        snapshot = SnapshotFile(temp_dir / "absent.json")
        assert snapshot.exists() is False
        assert await snapshot.load() is None

    async def test_load_malformed_file(self, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{ this is not json")
        assert await SnapshotFile(path).load() is None

    async def test_save_and_load(self, temp_dir):
        snapshot = SnapshotFile(temp_dir / "nested" / "state.json", "state")
        data = {"all": [{"content": "Ça va", "author": "Ünïcode"}], "byCategory": {}}

        assert await snapshot.save(data) is True
        assert await snapshot.load() == data
        assert "Ça va" in snapshot.path.read_text(encoding="utf-8")
        assert not (temp_dir / "nested" / "state.json.tmp").exists()

    async def test_save_overwrites_whole_file(self, temp_dir):
        snapshot = SnapshotFile(temp_dir / "state.json")
        await snapshot.save([1, 2, 3])
        await snapshot.save([4])
        assert json.loads(snapshot.path.read_text()) == [4]

    async def test_save_unwritable_location(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("file, not directory")
        snapshot = SnapshotFile(blocker / "state.json")

        assert await snapshot.save({"a": 1}) is False

    async def test_save_unserializable_data(self, temp_dir):
        snapshot = SnapshotFile(temp_dir / "state.json")
        snapshot.path.write_text(json.dumps({"kept": True}))

        assert await snapshot.save({"bad": object()}) is False
        assert await snapshot.load() == {"kept": True}
        assert not (temp_dir / "state.json.tmp").exists()

    async def test_save_runs_off_event_loop_thread(self, temp_dir, monkeypatch):
        from stores import snapshot as snapshot_module

        threads = []
        real_dump = snapshot_module.json.dump

        def recording_dump(*args, **kwargs):
            threads.append(threading.current_thread())
            return real_dump(*args, **kwargs)

        monkeypatch.setattr(snapshot_module.json, "dump", recording_dump)
        assert await SnapshotFile(temp_dir / "state.json").save({"a": 1}) is True
        assert threads and threads[0] is not threading.main_thread()

    async def test_load_runs_off_event_loop_thread(self, temp_dir, monkeypatch):
        from stores import snapshot as snapshot_module

        path = temp_dir / "state.json"
        path.write_text(json.dumps({"a": 1}))
        threads = []
        real_load = snapshot_module.json.load

        def recording_load(*args, **kwargs):
            threads.append(threading.current_thread())
            return real_load(*args, **kwargs)

        monkeypatch.setattr(snapshot_module.json, "load", recording_load)
        assert await SnapshotFile(path).load() == {"a": 1}
        assert threads and threads[0] is not threading.main_thread()

    def test_write_failure_carries_error_code(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("file, not directory")

        with pytest.raises(PersistenceError) as exc_info:
            SnapshotFile(blocker / "state.json")._write({"a": 1})
        assert exc_info.value.error_code == ErrorCodes.PERSISTENCE_WRITE_FAILED
