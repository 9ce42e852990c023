"""Tests for the page collection: identity, ordering, rotation and events."""

import asyncio

import pytest
from conftest import FakeRenderer
from PIL import Image

from bigpdfmerge.editor.events import EventKind
from bigpdfmerge.editor.page_collection import PageCollection
from bigpdfmerge.editor.source_store import SourceStore
from bigpdfmerge.editor.thumbnail_renderer import ThumbnailRenderer
from bigpdfmerge.utils.exceptions import PageIndexError, PageNotFoundError


def _fill(collection: PageCollection, name: str, count: int, data: bytes | None = None):
    source = collection.store.register(name, data or name.encode())
    return collection.append(source, count)


class TestAppend:
    def test_pages_appended_in_source_order(self, collection):
        records = _fill(collection, "a.pdf", 3)
        assert [r.source_page_index for r in records] == [0, 1, 2]
        assert list(collection) == records

    def test_second_source_goes_to_tail(self, collection):
        a = _fill(collection, "a.pdf", 2)
        b = _fill(collection, "b.pdf", 2)
        assert list(collection) == a + b

    def test_ids_are_unique_and_never_reused(self, collection):
        first = _fill(collection, "a.pdf", 2)
        collection.remove(first[1].id)
        second = _fill(collection, "b.pdf", 1)
        ids = [r.id for r in first + second]
        assert len(set(ids)) == 3
        assert second[0].id > first[1].id

    def test_initial_rotations(self, collection):
        source = collection.store.register("a.pdf", b"a")
        records = collection.append(source, 2, rotations=[90, -90])
        assert [r.rotation for r in records] == [90, 270]

    def test_unregistered_source_rejected(self, collection):
        foreign = SourceStore().register("a.pdf", b"a")
        with pytest.raises(ValueError):
            collection.append(foreign, 1)

    def test_rotation_count_must_match(self, collection):
        source = collection.store.register("a.pdf", b"a")
        with pytest.raises(ValueError):
            collection.append(source, 2, rotations=[0])

    def test_zero_pages_is_noop(self, collection):
        source = collection.store.register("a.pdf", b"a")
        assert collection.append(source, 0) == []
        assert len(collection) == 0

    def test_same_source_twice_shares_document(self, collection):
        a1 = _fill(collection, "a.pdf", 1, b"same")
        a2 = _fill(collection, "again.pdf", 1, b"same")
        assert a1[0].source is a2[0].source
        assert a1[0].id != a2[0].id
        assert len(collection.sources_in_use()) == 1


class TestRemove:
    def test_remove_by_id(self, collection):
        records = _fill(collection, "a.pdf", 3)
        removed = collection.remove(records[1].id)
        assert removed is records[1]
        assert collection.ids() == [records[0].id, records[2].id]

    def test_remove_unknown_id(self, collection):
        _fill(collection, "a.pdf", 1)
        with pytest.raises(PageNotFoundError):
            collection.remove(999)

    def test_remove_twice(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        collection.remove(record.id)
        with pytest.raises(PageNotFoundError):
            collection.remove(record.id)

    def test_last_page_of_source_releases_it(self, collection, store):
        a = _fill(collection, "a.pdf", 1)
        b = _fill(collection, "b.pdf", 2)
        collection.remove(b[0].id)
        assert b[0].source in store
        collection.remove(a[0].id)
        assert a[0].source not in store
        assert len(store) == 1

    def test_records_keep_identity_after_removal(self, collection):
        records = _fill(collection, "a.pdf", 4)
        collection.remove(records[0].id)
        assert collection.get(records[3].id) is records[3]
        assert collection.index_of(records[3].id) == 2


class TestMove:
    def test_move_forward(self, collection):
        a, b, c = _fill(collection, "a.pdf", 3)
        collection.move(0, 2)
        assert list(collection) == [b, c, a]

    def test_move_backward(self, collection):
        a, b, c = _fill(collection, "a.pdf", 3)
        collection.move(2, 0)
        assert list(collection) == [c, a, b]

    def test_move_then_inverse_restores_order(self, collection):
        records = _fill(collection, "a.pdf", 5)
        for old, new in [(0, 4), (3, 1), (2, 2), (4, 0)]:
            collection.move(old, new)
            collection.move(new, old)
            assert list(collection) == records

    def test_move_keeps_ids_and_sources(self, collection):
        records = _fill(collection, "a.pdf", 3)
        before = {r.id: (r.source.key, r.source_page_index) for r in records}
        collection.move(0, 2)
        after = {r.id: (r.source.key, r.source_page_index) for r in collection}
        assert before == after

    @pytest.mark.parametrize("old,new", [(-1, 0), (0, 3), (3, 0), (0, -1)])
    def test_out_of_range(self, collection, old, new):
        records = _fill(collection, "a.pdf", 3)
        with pytest.raises(PageIndexError):
            collection.move(old, new)
        assert list(collection) == records

    def test_index_error_is_index_error(self, collection):
        with pytest.raises(IndexError):
            collection[0]


class TestRotate:
    def test_rotation_is_cumulative(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        assert collection.rotate(record.id, 90) == 90
        assert collection.rotate(record.id, 90) == 180
        assert collection.rotate(record.id, 180) == 0

    @pytest.mark.parametrize("degrees", [90, 180, 270])
    def test_rotate_then_complement_restores(self, collection, degrees):
        (record,) = _fill(collection, "a.pdf", 1)
        collection.rotate(record.id, degrees)
        collection.rotate(record.id, 360 - degrees)
        assert record.rotation == 0

    def test_negative_rotation(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        assert collection.rotate(record.id, -90) == 270

    def test_rotation_only_affects_one_record(self, collection):
        a, b = _fill(collection, "a.pdf", 2)
        collection.rotate(a.id, 90)
        assert b.rotation == 0

    def test_large_and_negative_multiples(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        assert collection.rotate(record.id, -450) == 270
        assert collection.rotate(record.id, 630) == 180
        assert collection.rotate(record.id, -180) == 0

    @pytest.mark.parametrize("degrees", [45, 1, -30, 315])
    def test_non_right_angle_rejected(self, collection, degrees):
        (record,) = _fill(collection, "a.pdf", 1)
        collection.rotate(record.id, 90)
        events = []
        collection.subscribe(events.append)
        with pytest.raises(ValueError):
            collection.rotate(record.id, degrees)
        assert record.rotation == 90
        assert events == []

    def test_complement_restores_from_any_start(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        collection.rotate(record.id, 90)
        for degrees in (90, 180, 270, -90, 450):
            collection.rotate(record.id, degrees)
            collection.rotate(record.id, 360 - degrees)
            assert record.rotation == 90

    def test_rotate_unknown_id(self, collection):
        with pytest.raises(PageNotFoundError):
            collection.rotate(42, 90)


class TestSnapshot:
    def test_snapshot_is_detached(self, collection):
        a, b = _fill(collection, "a.pdf", 2)
        snap = collection.snapshot()
        collection.move(0, 1)
        collection.rotate(a.id, 90)
        assert [ref.id for ref in snap] == [a.id, b.id]
        assert snap[0].rotation == 0


class TestClear:
    def test_clear_releases_sources(self, collection, store):
        _fill(collection, "a.pdf", 2)
        collection.clear()
        assert len(collection) == 0
        assert len(store) == 0

    def test_clear_then_import_again(self, collection):
        _fill(collection, "a.pdf", 2)
        collection.clear()
        records = _fill(collection, "a.pdf", 2)
        assert len(collection) == 2
        assert records[0].id > 2


class TestEvents:
    def test_event_sequence(self, collection):
        events = []
        collection.subscribe(events.append)

        a, b = _fill(collection, "a.pdf", 2)
        collection.move(0, 1)
        collection.rotate(a.id, 90)
        collection.remove(b.id)
        collection.clear()

        kinds = [e.kind for e in events]
        assert kinds == [
            EventKind.PAGES_ADDED,
            EventKind.PAGE_MOVED,
            EventKind.PAGE_ROTATED,
            EventKind.PAGE_REMOVED,
            EventKind.CLEARED,
        ]
        assert events[0].page_ids == (a.id, b.id)
        assert (events[1].old_index, events[1].new_index) == (0, 1)
        assert events[2].rotation == 90
        assert events[3].old_index == 0

    def test_no_event_for_noop_rotation(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        events = []
        collection.subscribe(events.append)
        collection.rotate(record.id, 360)
        assert events == []

    def test_failing_listener_does_not_break_mutation(self, collection):
        def broken(event):
            raise RuntimeError("view exploded")

        seen = []
        collection.subscribe(broken)
        collection.subscribe(seen.append)
        records = _fill(collection, "a.pdf", 2)
        assert len(collection) == 2
        assert seen[0].page_ids == tuple(r.id for r in records)

    def test_unsubscribe(self, collection):
        events = []
        collection.subscribe(events.append)
        collection.unsubscribe(events.append)
        _fill(collection, "a.pdf", 1)
        assert events == []


class TestThumbnails:
    def _collection(self, renderer=None):
        renderer = renderer or FakeRenderer()
        thumbs = ThumbnailRenderer(renderer, scale=0.5, cache_size=10)
        return PageCollection(SourceStore(), thumbs), renderer

    def test_thumbnails_arrive_after_import(self):
        async def run():
            collection, _renderer = self._collection()
            records = _fill(collection, "a.pdf", 2)
            await collection.refresh_thumbnails()
            return records

        records = asyncio.run(run())
        assert records[0].thumbnail.size == (10, 10)
        assert records[1].thumbnail.size == (11, 10)

    def test_thumbnail_failure_marks_record(self):
        async def run():
            collection, _renderer = self._collection(FakeRenderer(fail_pages={1}))
            events = []
            collection.subscribe(events.append)
            records = _fill(collection, "a.pdf", 2)
            await collection.refresh_thumbnails()
            return records, events

        records, events = asyncio.run(run())
        assert records[0].thumbnail is not None
        assert records[1].thumbnail is None
        assert records[1].thumbnail_failed is True
        failed = [e for e in events if e.kind == EventKind.THUMBNAIL_FAILED]
        assert failed[0].page_ids == (records[1].id,)
        assert "broken page" in failed[0].error

    def test_last_rotation_wins(self):
        async def run():
            collection, _renderer = self._collection()
            (record,) = _fill(collection, "a.pdf", 1)
            collection.rotate(record.id, 90)
            collection.rotate(record.id, 90)
            await collection.refresh_thumbnails()
            return record

        record = asyncio.run(run())
        assert record.rotation == 180
        # FakeRenderer encodes the rotation in the image height
        assert record.thumbnail.size == (10, 190)

    def test_thumbnail_for_removed_record_is_dropped(self):
        async def run():
            collection, _renderer = self._collection()
            (record,) = _fill(collection, "a.pdf", 1)
            collection.remove(record.id)
            await collection.refresh_thumbnails()
            return record

        record = asyncio.run(run())
        assert record.thumbnail is None

    def test_stale_result_ignored(self, collection):
        (record,) = _fill(collection, "a.pdf", 1)
        collection.rotate(record.id, 90)
        collection._on_thumbnail(record.id, 0, Image.new("RGB", (2, 2)), None)
        assert record.thumbnail is None
        collection._on_thumbnail(record.id, 90, Image.new("RGB", (2, 2)), None)
        assert record.thumbnail is not None

    def test_without_renderer_thumbnails_stay_empty(self, collection):
        records = _fill(collection, "a.pdf", 1)
        asyncio.run(collection.refresh_thumbnails())
        assert records[0].thumbnail is None
