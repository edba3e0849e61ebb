"""Short Link Service Layer - Core Business Logic

This module holds the two responsibilities that operate on a Link record:
the code allocator (create) and the redirect & tally engine (visit), plus the
thin list/stats/delete operations.

Architecture Overview
=====================
::
    ┌──────────────────────────────────────────────────────────┐
    │                     LinkService                          │
    │  ┌──────────────────┐   ┌──────────────────────────────┐ │
    │  │  Code Allocator  │   │  Redirect & Tally Engine     │ │
    │  │                  │   │                              │ │
    │  │ • Validate input │   │ • Atomic clicks + 1          │ │
    │  │ • Custom codes   │   │ • Stamp last_clicked         │ │
    │  │ • Bounded random │   │ • Return target              │ │
    │  │   generation     │   │                              │ │
    │  └────────┬─────────┘   └──────────────┬───────────────┘ │
    └───────────┼────────────────────────────┼─────────────────┘
                ▼                            ▼
    ┌──────────────────────────────────────────────────────────┐
    │       links table (UNIQUE code, single logical store)    │
    └──────────────────────────────────────────────────────────┘

Link Creation Flow
------------------
::
    ┌─────────────┐
    │ POST /api/  │
    │ links       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate    │──── bad target ──▶ InvalidTarget
    │ target      │
    └──────┬──────┘
           ▼
    CUSTOM CODE?
    ┌──────┴──────────────┐
    │ YES                 │ NO
    ▼                     ▼
┌──────────┐       ┌──────────────┐
│ Format + │       │ Generate     │◀─┐
│ pre-check│       │ random code  │  │ taken /
└────┬─────┘       └──────┬───────┘  │ IntegrityError
     │                    ▼          │ (attempts left)
     │             ┌──────────────┐  │
     │             │ INSERT       │──┘
     │             └──────┬───────┘
     ▼                    │   attempts exhausted ──▶ AllocationExhausted
┌──────────┐              │
│ INSERT   │── Integrity ─┼──▶ CodeConflict
└────┬─────┘   Error      │
     └──────────┬─────────┘
                ▼
         ┌─────────────┐
         │ Return Link │
         └─────────────┘

Redirect & Tally Flow
---------------------
::
    ┌─────────────┐
    │ GET /:code  │
    └──────┬──────┘
           ▼
    ┌──────────────────────────────┐
    │ UPDATE links                 │
    │   SET clicks = clicks + 1,   │
    │       last_clicked = now     │
    │ WHERE code = :code           │
    │ RETURNING *                  │
    └──────┬───────────────────────┘
    ROW?   │
    ┌──────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────────┐
│NotFound │  │ 302 to      │
│         │  │ target      │
└─────────┘  └─────────────┘

Key Behaviours
===============
- The UNIQUE constraint on ``links.code`` is the only correctness guard for
  uniqueness. Existence pre-checks exist to return CodeConflict early.
- The tally is one UPDATE ... RETURNING statement. N concurrent redirects
  produce exactly N increments.
- Nothing but the allocator's bounded loop is retried.
- Store failures other than a duplicate code surface as StoreUnavailable; the
  driver's error text is logged, never returned.
"""

import time
from typing import Optional

from prometheus_client import Counter, Histogram
from sqlalchemy import delete, select, update
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortlinks.codes import RESERVED_CODES, generate_code, is_valid_code, validate_code, validate_target
from shortlinks.enums import RequestStatus
from shortlinks.exceptions import (
    AllocationExhausted,
    CodeConflict,
    LinkServiceError,
    NotFound,
    StoreUnavailable,
)
from shortlinks.models import Link, utcnow
from shortlinks.schemas import LinkCreate

__all__ = ["LinkService"]


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

LINK_CREATION_REQUESTS_TOTAL = Counter(
    "shortlinks_creation_requests_total",
    "Total link creation requests",
    ["status"],
)
LINK_CREATION_DURATION = Histogram(
    "shortlinks_creation_duration_seconds",
    "Time taken to create links",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
CODE_ALLOCATION_ATTEMPTS_TOTAL = Counter(
    "shortlinks_code_allocation_attempts_total",
    "Random code generation attempts",
    ["outcome"],
)
REDIRECT_REQUESTS_TOTAL = Counter(
    "shortlinks_redirect_requests_total",
    "Total redirect requests",
    ["status"],
)
DATABASE_READS_TOTAL = Counter(
    "shortlinks_database_reads_total",
    "Total database read operations",
)
DATABASE_WRITES_TOTAL = Counter(
    "shortlinks_database_writes_total",
    "Total database write operations",
)

# Columns returned by the tally update, in record order
_RECORD_COLUMNS = (
    Link.code,
    Link.target,
    Link.clicks,
    Link.last_clicked,
    Link.created_at,
    Link.updated_at,
)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================

class LinkService:
    """Service class for short link operations.

    One instance serves one request; the only shared state is the database
    behind the session it was given.

    Example:
        >>> service = LinkService.from_context(ctx)
        >>> link = await service.create_link(LinkCreate(target="https://example.com"))
        >>> record = await service.redirect(link.code)
    """

    def __init__(self, ctx: 'RequestContext'):
        self._db = ctx.database
        self._logger = ctx.logger
        self._settings = ctx.settings
        self._ctx = ctx

    @classmethod
    def from_context(cls, ctx: 'RequestContext') -> 'LinkService':
        return cls(ctx)

    # ========================================================================
    # CODE ALLOCATOR
    # ========================================================================

    async def create_link(self, request: LinkCreate) -> Link:
        """Validate or generate a code and persist a new link.

        Args:
            request: Target URL and optional custom code.

        Returns:
            Link: The persisted record with ``clicks == 0`` and no
            ``last_clicked``.

        Raises:
            InvalidTarget: ``target`` is missing or not an absolute URL.
            InvalidCodeFormat: custom ``code`` is not 6-8 alphanumerics.
            CodeConflict: custom ``code`` is reserved or already stored.
            AllocationExhausted: no free random code within the attempt cap.
            StoreUnavailable: any other database failure.
        """
        start_time = time.perf_counter()

        try:
            target = validate_target(request.target)

            if request.code not in (None, ""):
                link = await self._create_with_custom_code(target, request.code)
            else:
                link = await self._create_with_generated_code(target)

        except LinkServiceError as exc:
            LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)
            LINK_CREATION_REQUESTS_TOTAL.labels(status=_status_for(exc)).inc()
            self._logger.warning(f"Link creation rejected: {exc.name}: {exc.message}")
            raise

        duration = time.perf_counter() - start_time
        LINK_CREATION_DURATION.observe(duration)
        LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Link created: {link.code} -> {link.target} in {duration:.3f}s")
        return link

    async def _create_with_custom_code(self, target: str, code: object) -> Link:
        code = validate_code(code)
        if code in RESERVED_CODES:
            raise CodeConflict("Code already in use.")

        # Fast path only; the insert below is what actually enforces uniqueness
        if await self._code_exists(code):
            raise CodeConflict("Code already in use.")

        try:
            return await self._insert_link(code, target)
        except IntegrityError as exc:
            self._logger.info(f"Concurrent insert won the race for code: {code}")
            raise CodeConflict("Code already in use.") from exc

    async def _create_with_generated_code(self, target: str) -> Link:
        max_attempts = self._settings.CODE_MAX_ATTEMPTS

        for attempt in range(1, max_attempts + 1):
            code = generate_code()

            if code in RESERVED_CODES or await self._code_exists(code):
                CODE_ALLOCATION_ATTEMPTS_TOTAL.labels(outcome="taken").inc()
                self._logger.debug(f"Generated code {code} taken (attempt {attempt}/{max_attempts})")
                continue

            try:
                link = await self._insert_link(code, target)
            except IntegrityError:
                CODE_ALLOCATION_ATTEMPTS_TOTAL.labels(outcome="collision").inc()
                self._logger.debug(f"Generated code {code} collided on insert (attempt {attempt}/{max_attempts})")
                continue

            CODE_ALLOCATION_ATTEMPTS_TOTAL.labels(outcome="allocated").inc()
            return link

        self._logger.error(f"Code allocation exhausted after {max_attempts} attempts")
        raise AllocationExhausted(f"Could not allocate a unique code after {max_attempts} attempts")

    async def _code_exists(self, code: str) -> bool:
        try:
            result = await self._db.execute(select(Link.id).where(Link.code == code))
        except SQLAlchemyError as exc:
            raise self._store_failure("code lookup", exc) from exc
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one_or_none() is not None

    async def _insert_link(self, code: str, target: str) -> Link:
        """Insert a new record; IntegrityError propagates after rollback.

        Commit is the last step, so any failure leaves nothing persisted.
        """
        link = Link(code=code, target=target, clicks=0, last_clicked=None)
        self._db.add(link)
        try:
            await self._db.flush()
            await self._db.refresh(link)
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise self._store_failure("insert", exc) from exc
        DATABASE_WRITES_TOTAL.inc()
        return link

    # ========================================================================
    # REDIRECT & TALLY ENGINE
    # ========================================================================

    async def redirect(self, code: str) -> Row:
        """Count a visit and return the updated record.

        Increments ``clicks`` and stamps ``last_clicked`` in a single
        ``UPDATE ... RETURNING`` statement.

        Raises:
            NotFound: no record with this code exists.
            StoreUnavailable: the update failed.
        """
        if not is_valid_code(code):
            REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise NotFound("Link not found")

        now = utcnow()
        stmt = (
            update(Link)
            .where(Link.code == code)
            .values(clicks=Link.clicks + 1, last_clicked=now, updated_at=now)
            .returning(*_RECORD_COLUMNS)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self._db.execute(stmt)
            record = result.one_or_none()
            if record is None:
                await self._db.rollback()
            else:
                await self._db.commit()
        except SQLAlchemyError as exc:
            REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise self._store_failure("tally update", exc) from exc

        if record is None:
            REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise NotFound("Link not found")

        DATABASE_WRITES_TOTAL.inc()
        REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.debug(f"Tallied {code}: clicks={record.clicks}")
        return record

    # ========================================================================
    # LIST / STATS / DELETE
    # ========================================================================

    async def list_links(self) -> list[Link]:
        """Return every link, newest first."""
        stmt = select(Link).order_by(Link.created_at.desc(), Link.id.desc())
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            raise self._store_failure("list", exc) from exc
        DATABASE_READS_TOTAL.inc()
        return list(result.scalars().all())

    async def get_link(self, code: str) -> Link:
        link = await self._find_link(code)
        if link is None:
            raise NotFound("Link not found")
        return link

    async def delete_link(self, code: str) -> None:
        """Hard-delete a link. A missing code raises NotFound, never succeeds silently."""
        if not is_valid_code(code):
            raise NotFound("Link not found")

        try:
            result = await self._db.execute(
                delete(Link).where(Link.code == code).execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self._db.rollback()
                raise NotFound("Link not found")
            await self._db.commit()
        except SQLAlchemyError as exc:
            raise self._store_failure("delete", exc) from exc

        DATABASE_WRITES_TOTAL.inc()
        self._logger.info(f"Link deleted: {code}")

    async def _find_link(self, code: str) -> Optional[Link]:
        if not is_valid_code(code):
            return None
        try:
            result = await self._db.execute(select(Link).where(Link.code == code))
        except SQLAlchemyError as exc:
            raise self._store_failure("lookup", exc) from exc
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one_or_none()

    # ========================================================================
    # PRIVATE HELPERS
    # ========================================================================

    def _store_failure(self, operation: str, exc: SQLAlchemyError) -> StoreUnavailable:
        self._logger.error(f"Store failure during {operation}: {exc}")
        return StoreUnavailable()


def _status_for(exc: LinkServiceError) -> RequestStatus:
    if isinstance(exc, CodeConflict):
        return RequestStatus.CONFLICT
    if exc.status_code == 400:
        return RequestStatus.VALIDATION_ERROR
    return RequestStatus.ERROR
