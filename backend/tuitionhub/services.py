"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and the code allocator. Services are intentionally thin: they perform
validation, execute domain logic and persist aggregates via
repositories.
"""

import logging
from typing import Optional
from sqlmodel import Session
from . import models, repositories
from .config import settings
from .utils.tuition_codes import TuitionCodeAllocator, normalize_code, parse_code_number, unused_codes

logger = logging.getLogger("tuitionhub.services")


class TuitionService:
    """Create tuitions and answer questions about their codes."""
    def __init__(self, session: Session):
        self.session = session
        self.tuition_repo = repositories.TuitionRepository(session)
        self.guardian_repo = repositories.GuardianRepository(session)
        self.allocator = TuitionCodeAllocator.from_settings(self.tuition_repo, settings)

    def create_tuition(self, data: dict, code: Optional[str] = None, max_attempts: Optional[int] = None):
        """Persist a new tuition and return `(tuition, code)`.

        A manual `code` is normalized and must be free, otherwise a
        ValueError is raised. Without one, a code is allocated and the
        insert is retried with a fresh allocation when the store rejects
        it as a duplicate (a concurrent request took the same code).
        `DuplicateTuitionCode` propagates once `max_attempts` inserts have
        been rejected, or straight away for a manual code.
        """
        if code and code.strip():
            final_code = normalize_code(code.strip())
            if not self.allocator.is_code_available(final_code):
                raise ValueError(
                    f"Tuition code {final_code} already exists. Please choose a different code "
                    "or leave it empty for auto-generation."
                )
            return self.tuition_repo.create(self._build(data, final_code)), final_code

        attempts = max_attempts or settings.CODE_ALLOCATION_RETRIES
        for attempt in range(1, attempts + 1):
            final_code = self.allocator.allocate()
            try:
                return self.tuition_repo.create(self._build(data, final_code)), final_code
            except repositories.DuplicateTuitionCode:
                if attempt == attempts:
                    raise
                logger.warning("code %s taken concurrently; retrying (%d/%d)", final_code, attempt, attempts)

    def is_code_available(self, code: str) -> dict:
        """Normalize `code` and report whether it is free."""
        final_code = normalize_code(code.strip())
        return {'code': final_code, 'available': self.allocator.is_code_available(final_code)}

    def unused_code_report(self, start: Optional[int] = None, end: Optional[int] = None, limit: Optional[int] = None):
        """Summarize used and unused codes within `[start, end]`.

        Only the first `limit` unused codes are returned. `next_available`
        falls back to the code just past the window when it is full.
        """
        start = settings.CODE_REPORT_START if start is None else start
        end = settings.CODE_REPORT_END if end is None else end
        limit = settings.CODE_REPORT_LIMIT if limit is None else limit
        used = set(self.tuition_repo.list_codes())
        unused = unused_codes(used, start, end)
        return {
            'total_used': len(used),
            'total_unused': len(unused),
            'next_available': unused[0] if unused else f"ST{end + 1}",
            'unused_codes': unused[:limit],
            'used_codes': sorted(used, key=_code_sort_key),
        }

    def get_public(self, code: str) -> Optional[models.Tuition]:
        """Return the tuition with `code` (case-insensitive) or None."""
        return self.tuition_repo.get_by_code(code.strip())

    def _upsert_guardian(self, name: str, number: str, address: Optional[str]) -> models.Guardian:
        guardian = self.guardian_repo.get_by_number(number)
        if not guardian:
            return self.guardian_repo.stage(models.Guardian(name=name, number=number, address=address))
        if name and guardian.name != name:
            guardian.name = name
        if address and guardian.address != address:
            guardian.address = address
        return self.guardian_repo.stage(guardian)

    def _build(self, data: dict, code: str) -> models.Tuition:
        # guardian and tuition share one commit; a rejected insert writes neither
        guardian = self._upsert_guardian(data['guardian_name'], data['guardian_number'], data.get('guardian_address'))
        fields = {k: v for k, v in data.items() if k != 'code'}
        tuition = models.Tuition(code=code, **fields)
        tuition.guardian = guardian
        return tuition


def _code_sort_key(code: str):
    # numeric codes first in numeric order, then anything else (fallback codes) lexically
    n = parse_code_number(code)
    return (0, n, '') if n is not None else (1, 0, code)
