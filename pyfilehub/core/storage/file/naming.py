"""Stored-name schemes mapping original filenames to on-disk names."""

from __future__ import annotations

import re
import time
import uuid
from abc import ABC, abstractmethod
from typing import Callable


class StoredNameScheme(ABC):
    """
    Encodes an original filename into a unique on-disk name and back.

    Callers only ever go through this interface, so the naming convention
    can be replaced without touching the storage engine.
    """

    @abstractmethod
    def generate(self, original_name: str) -> str:
        """
        Produce a stored name for a sanitized original filename.

        Must be unique across concurrent callers without coordination.
        """

    @abstractmethod
    def extract_original_name(self, stored_name: str) -> str:
        """
        Recover the original filename from a stored name.

        Names not produced by this scheme are returned unchanged.
        """


class TimestampTokenNamer(StoredNameScheme):
    """
    Names files as ``<millis>_<token>_<base>.<ext>``.

    ``millis`` is the epoch time in milliseconds and ``token`` the leading
    hex digits of a random UUID. Neither part can contain an underscore, so
    splitting on the first two underscores recovers the original name even
    when it contains underscores itself.
    """

    def __init__(
        self,
        token_length: int = 8,
        clock: Callable[[], float] = time.time,
    ):
        if not 8 <= token_length <= 32:
            raise ValueError("token_length must be between 8 and 32")
        self.token_length = token_length
        self._clock = clock
        self._pattern = re.compile(
            r"^\d+_[0-9a-f]{%d}_(.+)$" % token_length, re.DOTALL)

    def generate(self, original_name: str) -> str:
        timestamp = int(self._clock() * 1000)
        token = uuid.uuid4().hex[:self.token_length]
        # base and extension are kept verbatim (including case) so that
        # extract_original_name() returns exactly what was passed in
        return f"{timestamp}_{token}_{original_name}"

    def extract_original_name(self, stored_name: str) -> str:
        match = self._pattern.match(stored_name or "")
        if match:
            return match.group(1)
        return stored_name or ""
