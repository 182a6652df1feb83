"""Tests for the seen-item store."""

from datetime import timedelta
from pathlib import Path
from tempfile import TemporaryDirectory

from focus_feed.core import SeenItemStore, SourceType


def test_seen_store_basic(make_item, now) -> None:
    """Items become seen after mark_seen and survive a reload."""
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "seen.yaml"
        store = SeenItemStore(path, clock=lambda: now)
        first = make_item(id="a")
        second = make_item(id="b")

        assert store.filter_new([first, second]) == [first, second]

        store.mark_seen([first])
        assert store.is_seen(first)
        assert store.filter_new([first, second]) == [second]
        assert path.exists()

        reloaded = SeenItemStore(path, clock=lambda: now)
        assert reloaded.is_seen(first)
        assert not reloaded.is_seen(second)


def test_same_id_from_different_source_is_new(make_item, now) -> None:
    store = SeenItemStore(clock=lambda: now)
    store.mark_seen([make_item(id="42", source=SourceType.HN)])

    assert not store.is_seen(make_item(id="42", source=SourceType.GITHUB))


def test_prune_old(make_item, now) -> None:
    clock = {"now": now}
    store = SeenItemStore(retention_days=30, clock=lambda: clock["now"])
    store.mark_seen([make_item(id="old")])

    clock["now"] = now + timedelta(days=10)
    store.mark_seen([make_item(id="recent")])

    clock["now"] = now + timedelta(days=35)
    assert store.prune_old() == 1
    assert store.get_stats()["total_seen"] == 1


def test_unreadable_file_starts_empty(make_item) -> None:
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "seen.yaml"
        path.write_text("seen: [unbalanced", encoding="utf-8")

        store = SeenItemStore(path)

        assert store.get_stats()["total_seen"] == 0
        assert not store.is_seen(make_item())
