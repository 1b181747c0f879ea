"""
Daily batch generation.

Fans out over every user active in the last 24 hours and persists one
snapshot each. Users are independent, so they run on a bounded thread
pool; each worker opens its own database connections.
"""

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from daily_wrapped.core.aggregation import window_start
from daily_wrapped.core.card import Renderer
from daily_wrapped.core.lifecycle import release_artifact
from daily_wrapped.core.service import WrappedService
from daily_wrapped.storage.models import Snapshot

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome of one batch run."""
    date: str
    started_at: datetime
    generated: List[Snapshot] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def pick_design_index(user_id: str, date: str, design_count: int) -> int:
    """Deterministic design choice for a user and date.

    Re-running generation on the same day keeps the same design.

    Raises:
        ValueError: If design_count is not positive
    """
    if design_count <= 0:
        raise ValueError("design_count must be > 0")
    digest = hashlib.sha256(f"{user_id}:{date}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % design_count


def generate_for_user(
    service: WrappedService,
    user_id: str,
    date: str,
    now: datetime,
    renderer: Optional[Renderer] = None,
) -> Snapshot:
    """Aggregate, optionally render, and persist one user's snapshot.

    If persisting fails after an artifact was stored, that artifact is
    released before the error propagates. create_or_replace only raises
    before its transaction commits, so the released artifact is never one
    a live snapshot points at.
    """
    stats = service.compute_window_stats(user_id, now=now)
    design_index = pick_design_index(user_id, date, service.config.generation.design_count)

    artifact_store = service.lifecycle.artifact_store
    artifact_ref = None
    if renderer is not None:
        artifact_ref = artifact_store.put(renderer(stats, date, design_index))

    try:
        return service.create_or_replace(
            user_id=user_id,
            date=date,
            design_index=design_index,
            stats=stats,
            artifact_ref=artifact_ref,
        )
    except Exception:
        release_artifact(artifact_store, artifact_ref)
        raise


def generate_daily_snapshots(
    service: WrappedService,
    renderer: Optional[Renderer] = None,
    now: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> GenerationReport:
    """Generate today's snapshot for every recently active user.

    The snapshot date is the fixed-zone calendar date of `now`; eligible
    users are those with any event in the 24 hours before `now`. A failure
    for one user is logged and recorded in the report without stopping
    the others.

    Args:
        service: Wired WrappedService
        renderer: Optional artifact renderer
        now: Reference instant (defaults to the service clock)
        max_workers: Pool size (defaults to generation.max_workers)

    Returns:
        GenerationReport listing generated snapshots and failures
    """
    now = now or service.clock.now()
    date = service.clock.calendar_date(now)
    users = sorted(service.active_users(window_start(now)))
    workers = max_workers or service.config.generation.max_workers
    report = GenerationReport(date=date, started_at=now)

    logger.info("Generating %d snapshot(s) for %s with %d worker(s)", len(users), date, workers)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(generate_for_user, service, user_id, date, now, renderer): user_id
            for user_id in users
        }
        for future in as_completed(futures):
            user_id = futures[future]
            try:
                report.generated.append(future.result())
            except Exception as e:
                logger.exception("Snapshot generation failed for user=%s", user_id)
                report.failed[user_id] = str(e)

    report.generated.sort(key=lambda s: s.user_id)
    logger.info(
        "Generation for %s finished: %d generated, %d failed",
        date, len(report.generated), len(report.failed),
    )
    return report
