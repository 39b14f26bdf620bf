"""Tests for the lifecycle lock file"""

import json

import pytest

from pio_localnet.errors import LockFileCorrupt
from pio_localnet.lockfile import LockFile


def test_created_uninitialized_on_first_load(tmp_path):
    path = tmp_path / "home" / "localnet.lock"
    lock = LockFile(path)
    assert not lock.initialized
    assert lock.pid is None
    assert lock.config is None
    assert json.loads(path.read_text()) == {"initialized": False}


def test_mark_initialized_persists_flag_with_config(tmp_path):
    path = tmp_path / "localnet.lock"
    LockFile(path).mark_initialized({"accounts": 2})

    reloaded = LockFile(path)
    assert reloaded.initialized
    assert reloaded.config == {"accounts": 2}


def test_pid_set_and_clear_independent_of_flag(tmp_path):
    path = tmp_path / "localnet.lock"
    lock = LockFile(path)
    lock.pid = 1234
    assert LockFile(path).pid == 1234
    assert not LockFile(path).initialized

    lock.pid = None
    assert LockFile(path).pid is None
    assert "pid" not in json.loads(path.read_text())


def test_malformed_lock_file_is_reported(tmp_path):
    path = tmp_path / "localnet.lock"
    path.write_text("{not json")
    with pytest.raises(LockFileCorrupt) as excinfo:
        LockFile(path)
    assert str(path) in str(excinfo.value)
    assert "reset" in str(excinfo.value)


def test_non_object_lock_file_is_reported(tmp_path):
    path = tmp_path / "localnet.lock"
    path.write_text("[1, 2]")
    with pytest.raises(LockFileCorrupt):
        LockFile(path)


def test_no_temp_files_left_behind(tmp_path):
    lock = LockFile(tmp_path / "localnet.lock")
    lock.pid = 1
    lock.mark_initialized({})
    assert [p.name for p in tmp_path.iterdir()] == ["localnet.lock"]


def test_discard_does_not_touch_disk(tmp_path):
    path = tmp_path / "localnet.lock"
    lock = LockFile(path)
    lock.mark_initialized({"accounts": 1})
    path.unlink()
    lock.discard()
    assert not lock.initialized
    assert not path.exists()
