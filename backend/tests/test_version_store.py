import asyncio
import hashlib

import pytest

from app.exceptions import NotFound, VersionConflict
from app.services import version_store
from app.services.text_extractor import PDF_MEDIA_TYPE
from app.services.version_store import KeyedLock, fetch_payload, list_versions, store, student_locks


async def _upload(session_maker, student_id, payload=b"%PDF-1.4 resume", filename="resume.pdf"):
    async with session_maker() as session:
        async with student_locks.hold(student_id):
            artifact = await store(session, student_id, filename, PDF_MEDIA_TYPE, payload)
            await session.commit()
        return artifact


class TestStore:
    """Test cases for storing resume versions"""

    @pytest.mark.asyncio
    async def test_versions_start_at_one_and_increase(self, session_maker, student):
        first = await _upload(session_maker, student)
        second = await _upload(session_maker, student)
        assert (first.version, second.version) == (1, 2)

    @pytest.mark.asyncio
    async def test_identical_payloads_share_digest(self, session_maker, student):
        """Same bytes uploaded twice give two versions with equal digests"""
        payload = b"identical resume bytes"
        first = await _upload(session_maker, student, payload)
        second = await _upload(session_maker, student, payload)

        assert first.file_hash == second.file_hash == hashlib.sha256(payload).hexdigest()
        assert first.version != second.version

    @pytest.mark.asyncio
    async def test_versions_are_per_student(self, session_maker, student, db):
        from app.models import Student

        other = Student(name="Other Student", email="o@x.com")
        db.add(other)
        await db.commit()

        await _upload(session_maker, student)
        artifact = await _upload(session_maker, other.id)
        assert artifact.version == 1

    @pytest.mark.asyncio
    async def test_metadata_recorded(self, session_maker, student):
        artifact = await _upload(session_maker, student, b"12345", "cv.pdf")
        assert artifact.file_name == "cv.pdf"
        assert artifact.file_type == PDF_MEDIA_TYPE
        assert artifact.file_size == 5
        assert artifact.upload_date is not None

    @pytest.mark.asyncio
    async def test_rollback_discards_artifact(self, session_maker, student):
        """store() writes inside the caller's transaction; a rollback undoes it"""
        async with session_maker() as session:
            async with student_locks.hold(student):
                await store(session, student, "resume.pdf", PDF_MEDIA_TYPE, b"uncommitted")
                await session.rollback()

        async with session_maker() as session:
            assert await list_versions(session, student) == []

    @pytest.mark.asyncio
    async def test_unknown_student(self, db):
        with pytest.raises(NotFound):
            await store(db, 999, "resume.pdf", PDF_MEDIA_TYPE, b"data")

    @pytest.mark.asyncio
    async def test_concurrent_uploads_get_distinct_versions(self, session_maker, student):
        """Concurrent uploads for one student produce versions 1..N without gaps"""
        results = await asyncio.gather(*[
            _upload(session_maker, student, f"resume {i}".encode()) for i in range(8)
        ])
        assert sorted(artifact.version for artifact in results) == list(range(1, 9))

    @pytest.mark.asyncio
    async def test_clash_retried_then_conflict(self, session_maker, student, monkeypatch):
        """A version clash is retried once before VersionConflict is raised"""
        await _upload(session_maker, student)
        calls = []

        async def stale_next_version(db, student_id):
            calls.append(student_id)
            return 1

        monkeypatch.setattr(version_store, "_next_version", stale_next_version)

        async with session_maker() as session:
            with pytest.raises(VersionConflict) as exc_info:
                await store(session, student, "resume.pdf", PDF_MEDIA_TYPE, b"again")
            await session.rollback()

        assert len(calls) == 2
        assert exc_info.value.details == {"student_id": student, "version": 1}

    @pytest.mark.asyncio
    async def test_clash_recovers_on_fresh_read(self, session_maker, student, monkeypatch):
        await _upload(session_maker, student)
        original = version_store._next_version
        answers = []

        async def stale_once(db, student_id):
            if not answers:
                answers.append(1)
                return 1
            return await original(db, student_id)

        monkeypatch.setattr(version_store, "_next_version", stale_once)

        async with session_maker() as session:
            artifact = await store(session, student, "resume.pdf", PDF_MEDIA_TYPE, b"again")
            await session.commit()
        assert artifact.version == 2


class TestQueries:
    """Test cases for version listing and payload fetch"""

    @pytest.mark.asyncio
    async def test_list_versions_newest_first(self, session_maker, student, db):
        payload = b"same bytes"
        await _upload(session_maker, student, payload)
        await _upload(session_maker, student, payload)

        versions = await list_versions(db, student)
        assert [v.version for v in versions] == [2, 1]
        assert versions[0].file_hash == versions[1].file_hash

    @pytest.mark.asyncio
    async def test_list_versions_empty(self, db, student):
        assert await list_versions(db, student) == []

    @pytest.mark.asyncio
    async def test_fetch_payload(self, session_maker, student, db):
        stored = await _upload(session_maker, student, b"raw resume bytes", "mine.pdf")
        artifact = await fetch_payload(db, stored.id)
        assert artifact.file_data == b"raw resume bytes"
        assert artifact.file_name == "mine.pdf"

    @pytest.mark.asyncio
    async def test_fetch_missing_payload(self, db):
        with pytest.raises(NotFound):
            await fetch_payload(db, 12345)


class TestKeyedLock:
    """Test cases for the per-student lock registry"""

    @pytest.mark.asyncio
    async def test_same_key_serialized(self):
        lock = KeyedLock()
        events = []

        async def worker(name):
            async with lock.hold(1):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_keys_run_together(self):
        lock = KeyedLock()
        events = []

        async def worker(key):
            async with lock.hold(key):
                events.append(f"{key}-start")
                await asyncio.sleep(0.01)
                events.append(f"{key}-end")

        await asyncio.gather(worker(1), worker(2))
        assert events[:2] == ["1-start", "2-start"]

    @pytest.mark.asyncio
    async def test_released_locks_are_dropped(self):
        lock = KeyedLock()
        async with lock.hold(7):
            pass
        assert lock._locks == {}
