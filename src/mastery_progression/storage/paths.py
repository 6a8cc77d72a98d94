"""Per-user file naming for the JSON stores."""

import re
from pathlib import Path

from mastery_progression.errors import InvalidArgumentError

# Letters, digits and ``_ . @ -``, not starting with a dot
_USER_ID_PATTERN = re.compile(r"[A-Za-z0-9_@-][A-Za-z0-9_.@-]*")


def user_file(directory: Path, user_id: str, suffix: str = ".json") -> Path:
    """Path of ``user_id``'s file inside ``directory``.

    Raises:
        InvalidArgumentError: If the id could name a path outside
            ``directory`` (separators, leading dot, empty).
    """
    if not _USER_ID_PATTERN.fullmatch(user_id):
        raise InvalidArgumentError(
            f"Invalid user id: {user_id!r}", details={"user_id": user_id}
        )
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{user_id}{suffix}"
