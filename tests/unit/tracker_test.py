"""Tests for the cache location tracker."""

from __future__ import annotations

from pathlib import Path

from fhirpkg.npm.tracker import CacheLocationTracker


def test_seeds_known_directories(tmp_path: Path) -> None:
    (tmp_path / "a#1").mkdir()
    (tmp_path / "b#1").mkdir()
    (tmp_path / "packages.ini").write_text("", encoding="utf-8")

    tracker = CacheLocationTracker(tmp_path)

    assert tracker.known == {(tmp_path / "a#1").resolve(), (tmp_path / "b#1").resolve()}


def test_missing_cache_root_is_empty(tmp_path: Path) -> None:
    assert CacheLocationTracker(tmp_path / "nope").known == set()


def test_seeded_paths_are_not_reported(tmp_path: Path) -> None:
    (tmp_path / "a#1").mkdir()
    discovered: list[Path] = []
    tracker = CacheLocationTracker(tmp_path, listeners=[discovered.append])

    assert tracker.observe(tmp_path / "a#1") is False
    assert discovered == []


def test_reports_each_new_path_once(tmp_path: Path) -> None:
    tracker = CacheLocationTracker(tmp_path)
    discovered: list[Path] = []
    tracker.add_listener(discovered.append)
    new_dir = tmp_path / "c#2"
    new_dir.mkdir()

    assert tracker.observe(new_dir) is True
    assert tracker.observe(new_dir) is False
    assert tracker.observe(tmp_path / "." / "c#2") is False

    assert discovered == [new_dir.resolve()]
