"""Tuition code allocation and formatting.

Codes are human-facing identifiers of the form `ST<n>`. New codes are
reconstructed by scanning the stored codes at call time: a gap-filling
pass over the low range (`ST110`..`ST149` by default) runs first, then a
sequential pass up to the upper bound. Each free candidate is re-checked
against the store before being returned, which narrows (but does not
close) the window in which two concurrent requests pick the same code.
The store's unique index on `tuition.code` is the real arbiter; callers
retry allocation when an insert is rejected as a duplicate.

When the whole range is taken, or the store cannot be read, a
timestamp based code `ST<epoch-ms>_<random>` is returned instead so
allocation always terminates.
"""

from __future__ import annotations

import logging
import random
import re
import time
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

CODE_PREFIX = "ST"
_NUMERIC_CODE = re.compile(r"^ST(\d+)$")

_LOGGER = logging.getLogger("tuitionhub.codes")


def normalize_code(value: str) -> str:
    """Return `value` with the `ST` prefix, leaving prefixed input unchanged."""
    if value.startswith(CODE_PREFIX):
        return value
    return f"{CODE_PREFIX}{value}"


def parse_code_number(code: str) -> Optional[int]:
    """Return the integer of an `ST<n>` code, or None for any other shape.

    Timestamp fallback codes (`ST<ms>_<random>`) deliberately return None.
    """
    match = _NUMERIC_CODE.match(code or "")
    if not match:
        return None
    return int(match.group(1))


def unused_codes(codes: Iterable[str], start: int, end: int) -> list[str]:
    """List `ST<n>` codes in `[start, end]` that are not in `codes`."""
    used = set(codes)
    return [f"{CODE_PREFIX}{n}" for n in range(start, end + 1) if f"{CODE_PREFIX}{n}" not in used]


def fallback_code(max_random: int = 999, clock: Callable[[], float] = time.time, rng: random.Random | None = None) -> str:
    """Build a timestamp based code; uniqueness is not checked."""
    rng = rng or random
    return f"{CODE_PREFIX}{int(clock() * 1000)}_{rng.randint(0, max_random)}"


class TuitionCodeAllocator:
    """Allocate unused tuition codes against a code store.

    `store` is any object exposing `list_codes() -> list[str]` and
    `code_exists(code) -> bool`; in the application this is a
    `TuitionRepository`. The allocator does not reserve codes: the
    caller must persist the returned code right away.
    """

    def __init__(
        self,
        store,
        gap_start: int = 110,
        sequential_start: int = 150,
        upper_bound: int = 2000,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.gap_start = gap_start
        self.sequential_start = sequential_start
        self.upper_bound = upper_bound
        self._clock = clock
        self._rng = rng

    @classmethod
    def from_settings(cls, store, settings) -> "TuitionCodeAllocator":
        return cls(
            store,
            gap_start=settings.CODE_GAP_START,
            sequential_start=settings.CODE_SEQUENTIAL_START,
            upper_bound=settings.CODE_UPPER_BOUND,
        )

    def allocate(self) -> str:
        """Return the first free code, falling back to a timestamp code.

        Never raises on data-access faults; those are logged and degrade
        to the fallback scheme.
        """
        try:
            existing = set(self.store.list_codes())
            _LOGGER.debug("found %d existing tuition codes", len(existing))

            code = self._first_free(existing, self.gap_start, self.sequential_start - 1)
            if code:
                _LOGGER.info("allocated gap-filling code %s", code)
                return code

            code = self._first_free(existing, self.sequential_start, self.upper_bound)
            if code:
                _LOGGER.info("allocated sequential code %s", code)
                return code

            code = fallback_code(999, self._clock, self._rng)
            _LOGGER.warning(
                "code range ST%d..ST%d exhausted; using timestamp code %s",
                self.gap_start,
                self.upper_bound,
                code,
            )
            return code
        except SQLAlchemyError:
            code = fallback_code(9999, self._clock, self._rng)
            _LOGGER.exception("tuition code allocation failed; using fallback code %s", code)
            return code

    def is_code_available(self, code: str) -> bool:
        """Return True if no stored tuition uses `code`; False if the store fails."""
        try:
            return not self.store.code_exists(code)
        except SQLAlchemyError:
            _LOGGER.exception("could not validate tuition code %s", code)
            return False

    def _first_free(self, existing: set, start: int, end: int) -> Optional[str]:
        for n in range(start, end + 1):
            candidate = f"{CODE_PREFIX}{n}"
            if candidate in existing:
                continue
            # re-check: another request may have stored it since the snapshot
            if not self.store.code_exists(candidate):
                return candidate
        return None
