"""Tests for the SQL record store against SQLite."""
import asyncio

import pytest

from facetrack.core.exceptions import StoreUnavailableError, TrackNotFoundError
from facetrack.infrastructure.database.repositories import FaceTrackRepository
from facetrack.infrastructure.database.session import build_engine, build_session_factory, create_tables
from facetrack.infrastructure.database.store import SqlFaceTrackStore

AUDIO_URL = "https://audio.test/generated/{}.mp3"


@pytest.fixture
async def sql_store(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracks.db'}")
    await create_tables(engine)
    yield SqlFaceTrackStore(build_session_factory(engine))
    await engine.dispose()


@pytest.mark.asyncio
async def test_create_and_lookup(sql_store):
    created = await sql_store.create("abc1234567", AUDIO_URL.format("abc1234567"), [1, -2, 3])

    assert created.id is not None
    assert created.generated_count == 1
    assert created.face_descriptor == [1, -2, 3]

    found = await sql_store.get_by_track_id("abc1234567")
    assert found.id == created.id
    assert found.audio_url == AUDIO_URL.format("abc1234567")
    assert await sql_store.get_by_track_id("ffffffffff") is None


@pytest.mark.asyncio
async def test_create_is_get_or_create(sql_store):
    first = await sql_store.create("abc1234567", AUDIO_URL.format("abc1234567"), [1, 2])
    second = await sql_store.create("abc1234567", "https://elsewhere.test/x.mp3", [9, 9])

    assert second.id == first.id
    assert second.audio_url == first.audio_url
    assert len(await sql_store.list_all()) == 1


@pytest.mark.asyncio
async def test_concurrent_insert_returns_winning_row(sql_store, monkeypatch):
    winner = await sql_store.create("abc1234567", AUDIO_URL.format("abc1234567"), [1, 2])

    original = FaceTrackRepository.get_by_track_id
    calls = []

    async def stale_lookup(self, track_id):
        calls.append(track_id)
        if len(calls) == 1:
            return None
        return await original(self, track_id)

    monkeypatch.setattr(FaceTrackRepository, "get_by_track_id", stale_lookup)

    result = await sql_store.create("abc1234567", "https://elsewhere.test/x.mp3", [3, 4])

    assert result.id == winner.id
    assert result.face_descriptor == [1, 2]


@pytest.mark.asyncio
async def test_list_all_is_ordered_by_id(sql_store):
    for track_id in ["cccccccccc", "aaaaaaaaaa", "bbbbbbbbbb"]:
        await sql_store.create(track_id, AUDIO_URL.format(track_id), [1])

    records = await sql_store.list_all()

    assert [r.track_id for r in records] == ["cccccccccc", "aaaaaaaaaa", "bbbbbbbbbb"]
    assert [r.id for r in records] == sorted(r.id for r in records)


@pytest.mark.asyncio
async def test_record_access_increments_by_one(sql_store):
    await sql_store.create("abc1234567", AUDIO_URL.format("abc1234567"), [1])
    created = await sql_store.get_by_track_id("abc1234567")
    await asyncio.sleep(0.01)

    updated = await sql_store.record_access(created.id)

    assert updated.generated_count == 2
    assert updated.last_accessed > created.last_accessed
    assert updated.track_id == created.track_id
    assert updated.audio_url == created.audio_url

    again = await sql_store.record_access(created.id)
    assert again.generated_count == 3


@pytest.mark.asyncio
async def test_record_access_unknown_id(sql_store):
    with pytest.raises(TrackNotFoundError):
        await sql_store.record_access(999)


@pytest.mark.asyncio
async def test_update_descriptor(sql_store):
    created = await sql_store.create("abc1234567", AUDIO_URL.format("abc1234567"), [1, 2, 3])

    await sql_store.update_descriptor(created.id, [4, 5, 6])

    found = await sql_store.get_by_track_id("abc1234567")
    assert found.face_descriptor == [4, 5, 6]
    assert found.generated_count == 1


@pytest.mark.asyncio
async def test_attach_email(sql_store):
    await sql_store.create("abc1234567", AUDIO_URL.format("abc1234567"))

    updated = await sql_store.attach_email("abc1234567", "v@example.com", promotional_consent=True)

    assert updated.user_email == "v@example.com"
    assert updated.promotional_consent is True
    assert updated.face_descriptor is None
    assert await sql_store.attach_email("ffffffffff", "v@example.com") is None


@pytest.mark.asyncio
async def test_list_recent_orders_by_last_access(sql_store):
    older = await sql_store.create("aaaaaaaaaa", AUDIO_URL.format("aaaaaaaaaa"))
    await sql_store.create("bbbbbbbbbb", AUDIO_URL.format("bbbbbbbbbb"))
    await asyncio.sleep(0.01)
    await sql_store.record_access(older.id)

    recent = await sql_store.list_recent(limit=1)

    assert [r.track_id for r in recent] == ["aaaaaaaaaa"]


@pytest.mark.asyncio
async def test_unreachable_database_raises_store_unavailable(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'tracks.db'}")
    store = SqlFaceTrackStore(build_session_factory(engine))
    try:
        with pytest.raises(StoreUnavailableError):
            await store.list_all()
    finally:
        await engine.dispose()
