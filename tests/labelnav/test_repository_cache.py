"""Tests for the external repository cache."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from labelnav.errors import SettingsError
from labelnav.io.repository_cache import RepositoryCache


def test_get_or_locate_memoizes() -> None:
    cache = RepositoryCache()
    calls: list[str] = []

    def locate(name: str) -> Path:
        calls.append(name)
        return Path("/ext") / name

    first = cache.get_or_locate("foo", locate)
    second = cache.get_or_locate("foo", locate)

    assert first == second == Path("/ext/foo")
    assert calls == ["foo"]
    assert "foo" in cache


def test_failed_lookup_leaves_cache_unchanged() -> None:
    cache = RepositoryCache()

    def locate(name: str) -> Path:
        raise RuntimeError(name)

    with pytest.raises(RuntimeError):
        cache.get_or_locate("foo", locate)

    assert "foo" not in cache
    assert len(cache) == 0


def test_clear_forces_new_lookup() -> None:
    cache = RepositoryCache({"foo": "/old/foo"})
    calls: list[str] = []

    def locate(name: str) -> Path:
        calls.append(name)
        return Path("/new") / name

    cache.clear()

    assert len(cache) == 0
    assert cache.get_or_locate("foo", locate) == Path("/new/foo")
    assert calls == ["foo"]


def test_clear_on_empty_cache() -> None:
    cache = RepositoryCache()
    cache.clear()

    assert cache.snapshot() == {}


def test_put_get_and_snapshot() -> None:
    cache = RepositoryCache()
    cache.put("b", "/ext/b")
    cache.put("a", Path("/ext/a"))

    assert cache.get("a") == Path("/ext/a")
    assert cache.get("missing") is None
    assert cache.snapshot() == {"a": "/ext/a", "b": "/ext/b"}
    assert sorted(cache) == ["a", "b"]


def test_concurrent_callers_locate_once() -> None:
    cache = RepositoryCache()
    calls: list[str] = []
    started = threading.Event()

    def locate(name: str) -> Path:
        started.set()
        calls.append(name)
        return Path("/ext") / name

    results: list[Path] = []
    threads = [
        threading.Thread(target=lambda: results.append(cache.get_or_locate("foo", locate)))
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert started.is_set()
    assert calls == ["foo"]
    assert results == [Path("/ext/foo")] * 8


def test_save_and_load(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "repositories.json"
    RepositoryCache({"foo": "/ext/foo", "bar": "/ext/bar"}).save(path)

    loaded = RepositoryCache.load(path)

    assert loaded.snapshot() == {"bar": "/ext/bar", "foo": "/ext/foo"}


def test_load_missing_file_is_empty(tmp_path: Path) -> None:
    assert len(RepositoryCache.load(tmp_path / "absent.json")) == 0


@pytest.mark.parametrize("content", ["not json", '{"repositories": ["a"]}'])
def test_load_invalid_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "repositories.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(SettingsError) as excinfo:
        RepositoryCache.load(path)

    assert excinfo.value.variable == "LABELNAV_CACHE_PATH"
