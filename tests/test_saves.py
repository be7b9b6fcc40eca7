import os
import sys

import pytest

from crystalgb import saves


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


def test_linux_save_dir(home):
    assert saves.get_save_dir() == home / ".Rustic Crystal" / "saves"


def test_macos_save_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "darwin")
    monkeypatch.setenv("HOME", str(tmp_path))
    expected = tmp_path / "Library" / "Application Support" / "Rustic Crystal" / "saves"
    assert saves.get_save_dir() == expected


def test_windows_save_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert saves.get_save_dir() == tmp_path / "Rustic Crystal" / "saves"


def test_save_path_has_sav_extension(home):
    path = saves.get_save_path("gold")
    assert path == saves.get_save_dir() / "gold.sav"


def test_save_path_replaces_existing_extension(home):
    assert saves.get_save_path("gold.txt").name == "gold.sav"


def test_create_save_dir(home):
    saves.create_save_dir()
    assert saves.get_save_dir().is_dir()
    saves.create_save_dir()
    assert saves.get_save_dir().is_dir()


def test_save_is_free(home):
    saves.create_save_dir()
    assert saves.save_is_free("silver")
    saves.get_save_path("silver").write_bytes(b"x")
    assert not saves.save_is_free("silver")


def test_list_missing_dir_is_empty(home):
    assert saves.list_save_files() == []


def test_list_only_sav_files(home):
    saves.create_save_dir()
    directory = saves.get_save_dir()
    (directory / "one.sav").write_bytes(b"")
    (directory / "notes.txt").write_bytes(b"")
    (directory / "folder.sav").mkdir()

    listed = saves.list_save_files()
    assert [s.name for s in listed] == ["one"]
    assert listed[0].path == directory / "one.sav"


def test_list_sorted_newest_first(home):
    saves.create_save_dir()
    directory = saves.get_save_dir()
    for name, mtime in [("old", 1000), ("newest", 3000), ("middle", 2000)]:
        path = directory / f"{name}.sav"
        path.write_bytes(b"")
        os.utime(path, (mtime, mtime))

    assert [s.name for s in saves.list_save_files()] == ["newest", "middle", "old"]