"""Tests for the config watch filter."""
import watchfiles

from pticker.engine.watcher import configFilter


def test_accepts_target_writes(tmp_path):
    target = tmp_path / "pticker.json"
    accept = configFilter(target)

    assert accept(watchfiles.Change.modified, str(target))
    assert accept(watchfiles.Change.added, str(target))


def test_ignores_other_files_and_deletes(tmp_path):
    target = tmp_path / "pticker.json"
    accept = configFilter(target)

    assert not accept(watchfiles.Change.modified, str(tmp_path / "pticker.json.swp"))
    assert not accept(watchfiles.Change.deleted, str(target))


def test_relative_path_matches_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    accept = configFilter(tmp_path.joinpath("pticker.json").relative_to(tmp_path))

    assert accept(watchfiles.Change.modified, str(tmp_path / "pticker.json"))
