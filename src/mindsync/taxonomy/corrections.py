"""Learning from user overrides of AI-suggested categories."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LOGGER = logging.getLogger(__name__)

DEFAULT_CORRECTION_LIMIT = 100
MIN_PREFIX_LENGTH = 3

_PREFIX = re.compile(r"^(.*?)[\d_-]")


class CorrectionRecord(BaseModel):
    """A single recorded override of an AI suggestion."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ai_suggested: str
    user_chosen: str
    file_name: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def name_prefix(file_name: str) -> str:
    """Return the lowercase stem of ``file_name`` up to the first digit, ``_`` or ``-``."""
    stem = PurePath(file_name).stem.lower()
    match = _PREFIX.match(stem)
    return match.group(1) if match else stem


def _suffix(file_name: str) -> str:
    return PurePath(file_name).suffix.lower()


class CorrectionLearner:
    """Capped log of user corrections replayed for similarly named files.

    Lookups scan the log newest-first: the exact file name wins over a pattern
    match, and among equally good matches the most recent correction wins.
    """

    def __init__(
        self,
        records: Optional[Iterable[CorrectionRecord]] = None,
        *,
        limit: int = DEFAULT_CORRECTION_LIMIT,
    ) -> None:
        self.limit = limit
        self._records: List[CorrectionRecord] = list(records or [])[-limit:]

    @property
    def records(self) -> List[CorrectionRecord]:
        """Return a copy of the log in insertion order."""
        return list(self._records)

    def record(self, ai_suggested: str, user_chosen: str, file_name: str) -> bool:
        """Append a correction unless the user kept the suggestion.

        Returns:
            bool: True when a record was appended.
        """
        if ai_suggested == user_chosen:
            return False
        self._records.append(
            CorrectionRecord(
                ai_suggested=ai_suggested, user_chosen=user_chosen, file_name=file_name
            )
        )
        if len(self._records) > self.limit:
            del self._records[: len(self._records) - self.limit]
        LOGGER.debug("Recorded correction for %s: %s -> %s", file_name, ai_suggested, user_chosen)
        return True

    def find_applicable(self, file_name: str) -> Optional[CorrectionRecord]:
        """Return the correction that applies to ``file_name``, if any."""
        newest_first = list(reversed(self._records))
        for record in newest_first:
            if record.file_name == file_name:
                return record

        prefix = name_prefix(file_name)
        if len(prefix) < MIN_PREFIX_LENGTH:
            return None
        suffix = _suffix(file_name)
        for record in newest_first:
            if _suffix(record.file_name) == suffix and name_prefix(record.file_name) == prefix:
                return record
        return None

    def clear(self) -> None:
        self._records.clear()


__all__ = ["CorrectionLearner", "CorrectionRecord", "name_prefix", "DEFAULT_CORRECTION_LIMIT"]
