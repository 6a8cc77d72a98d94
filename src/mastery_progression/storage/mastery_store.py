"""JSON-backed skill mastery store."""

import fcntl
import json
import os
import tempfile
from pathlib import Path

from mastery_progression.errors import InvalidArgumentError
from mastery_progression.models.question import Subject
from mastery_progression.selection.mastery import DEFAULT_MASTERY
from mastery_progression.storage.paths import user_file


class JsonMasteryStore:
    """Stores mastery probabilities as ``{"subject:skill": p}`` per user file."""

    def __init__(self, mastery_dir: Path, default: float = DEFAULT_MASTERY):
        self.mastery_dir = mastery_dir
        self.default = default

    def _path(self, user_id: str) -> Path:
        return user_file(self.mastery_dir, user_id)

    @staticmethod
    def _key(subject: Subject, skill: str) -> str:
        return f"{subject.value}:{skill}"

    def _read(self, user_id: str) -> dict[str, float]:
        path = self._path(user_id)
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
        return data

    def get(self, user_id: str, subject: Subject, skill: str) -> float:
        return self._read(user_id).get(self._key(subject, skill), self.default)

    def set(self, user_id: str, subject: Subject, skill: str, probability: float) -> None:
        if not 0.0 <= probability <= 1.0:
            raise InvalidArgumentError(
                f"Mastery probability must be in [0, 1], got {probability}",
                details={"probability": probability},
            )
        path = self._path(user_id)
        lock_path = path.with_suffix(".lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            data = self._read(user_id)
            data[self._key(subject, skill)] = probability
            with tempfile.NamedTemporaryFile(
                "w", dir=path.parent, delete=False, suffix=".json"
            ) as tmp:
                json.dump(data, tmp, indent=2)
            os.replace(tmp.name, path)
