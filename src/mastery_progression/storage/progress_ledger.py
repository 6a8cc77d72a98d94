"""Per-user XP ledger persistence (JSON + fcntl.flock + atomic write)."""

import fcntl
import os
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from mastery_progression.models.achievement import UnlockedAchievement
from mastery_progression.models.activity import XPAward
from mastery_progression.storage.paths import user_file


class ProgressRecord(BaseModel):
    """Everything persisted for one user's progression."""

    user_id: str
    awards: list[XPAward] = Field(default_factory=list)
    unlocked: list[UnlockedAchievement] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def total_xp(self) -> int:
        return sum(a.final_xp for a in self.awards)

    @property
    def unlocked_ids(self) -> set[str]:
        return {u.achievement_id for u in self.unlocked}


def get_record_path(progress_dir: Path, user_id: str) -> Path:
    return user_file(progress_dir, user_id)


def load_record(progress_dir: Path, user_id: str) -> ProgressRecord:
    path = get_record_path(progress_dir, user_id)
    if not path.exists():
        return ProgressRecord(user_id=user_id)
    with open(path, encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        data = f.read()
        fcntl.flock(f, fcntl.LOCK_UN)
    return ProgressRecord.model_validate_json(data)


def save_record(progress_dir: Path, record: ProgressRecord) -> None:
    path = get_record_path(progress_dir, record.user_id)
    record.updated_at = datetime.now()
    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
    ) as tmp:
        tmp.write(record.model_dump_json(indent=2))
    os.replace(tmp.name, path)


def update_record(
    progress_dir: Path,
    user_id: str,
    mutate: Callable[[ProgressRecord], None],
) -> ProgressRecord:
    """Load, mutate and save a record under an exclusive per-user file lock.

    Concurrent writers for the same user, including other processes, are
    serialized so no award is lost.
    """
    lock_path = get_record_path(progress_dir, user_id).with_suffix(".lock")
    with open(lock_path, "w") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        record = load_record(progress_dir, user_id)
        mutate(record)
        save_record(progress_dir, record)
    return record
