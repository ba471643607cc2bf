"""
Append-only resume version store.

Each upload for a student gets version max(existing) + 1. The max read and the
insert must not interleave with another upload for the same student, so
callers hold `student_locks.hold(student_id)` for the whole unit of work; the
student row is also locked with SELECT ... FOR UPDATE for databases that
support it (PostgreSQL), which covers multiple worker processes.
"""
import asyncio
import hashlib
import logging
from contextlib import asynccontextmanager
from typing import Dict, List

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from ..exceptions import NotFound, VersionConflict
from ..models import Student, UploadedFile

logger = logging.getLogger(__name__)


class KeyedLock:
    """One asyncio.Lock per key, dropped once nobody holds or waits for it."""

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, key: int):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


student_locks = KeyedLock()


def compute_digest(payload: bytes) -> str:
    """sha256 hex digest of the raw bytes."""
    return hashlib.sha256(payload).hexdigest()


async def _next_version(db: AsyncSession, student_id: int) -> int:
    result = await db.execute(
        select(func.max(UploadedFile.version)).where(UploadedFile.student_id == student_id)
    )
    return (result.scalar() or 0) + 1


async def store(
    db: AsyncSession,
    student_id: int,
    filename: str,
    media_type: str,
    payload: bytes,
) -> UploadedFile:
    """
    Persist a new artifact and assign its version. Does not commit; a caller
    rollback removes the artifact.

    The caller must hold student_locks for student_id until its transaction
    commits. A unique-constraint clash on (student_id, version) is retried once
    with a fresh max read before surfacing as VersionConflict.
    """
    file_hash = compute_digest(payload)

    # Row lock on the owning student serializes version assignment across processes
    owner = await db.execute(
        select(Student.id).where(Student.id == student_id).with_for_update()
    )
    if owner.scalar_one_or_none() is None:
        raise NotFound("Student", student_id)

    for attempt in (1, 2):
        version = await _next_version(db, student_id)
        try:
            artifact = await _insert_version(db, student_id, filename, media_type, payload, file_hash, version)
            break
        except IntegrityError as e:
            if attempt == 2:
                raise VersionConflict(student_id, version, cause=e) from e
            logger.warning(f"Version {version} already taken for student {student_id}, retrying with a fresh read")

    logger.info(
        f"Stored resume version {artifact.version} for student {student_id} "
        f"({len(payload)} bytes, sha256 {file_hash[:12]})"
    )
    return artifact


async def _insert_version(
    db: AsyncSession,
    student_id: int,
    filename: str,
    media_type: str,
    payload: bytes,
    file_hash: str,
    version: int,
) -> UploadedFile:
    artifact = UploadedFile(
        student_id=student_id,
        file_name=filename,
        file_type=media_type,
        file_size=len(payload),
        file_data=payload,
        file_hash=file_hash,
        version=version,
    )
    # Savepoint so a clash only discards this insert, not the caller's transaction
    async with db.begin_nested():
        db.add(artifact)
        await db.flush()
    return artifact


async def list_versions(db: AsyncSession, student_id: int) -> List[UploadedFile]:
    """Artifact metadata for a student, newest version first. Payloads are not loaded."""
    result = await db.execute(
        select(UploadedFile)
        .options(defer(UploadedFile.file_data))
        .where(UploadedFile.student_id == student_id)
        .order_by(UploadedFile.version.desc())
    )
    return list(result.scalars().all())


async def fetch_payload(db: AsyncSession, artifact_id: int) -> UploadedFile:
    result = await db.execute(select(UploadedFile).where(UploadedFile.id == artifact_id))
    artifact = result.scalar_one_or_none()
    if artifact is None:
        raise NotFound("Resume", artifact_id)
    return artifact
