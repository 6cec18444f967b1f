from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Sequence

from ..common.context import RequestContext, require_role, require_user
from ..common.datetime_utils import now_utc
from ..core.enums import BatchKind, BatchStatus
from ..core.exceptions import ValidationError
from ..store.repository import RecordStore
from .model import Batch, batch_to_row
from .policies import policy_for

logger = logging.getLogger(__name__)


class BatchAggregator:
    """Wraps submitted records into one reviewable batch."""

    def __init__(self, store: RecordStore, *, clock: Callable = now_utc):
        self._store = store
        self._clock = clock

    def create_batch(
        self,
        ctx: Optional[RequestContext],
        kind: BatchKind,
        *,
        member_record_ids: Sequence[str] = (),
        records: Sequence[Mapping[str, Any]] = (),
        details: Optional[Mapping[str, Any]] = None,
    ) -> Batch:
        ctx = require_user(ctx)
        policy = policy_for(kind)
        require_role(ctx, policy.submitter_role)
        if records and not policy.record_table:
            raise ValidationError(f"{policy.kind.value} does not accept inline records")

        with self._store.transaction():
            ids = [str(i) for i in member_record_ids]
            for record in records:
                ids.append(self._store.insert(policy.record_table, record))

            batch = Batch(
                id="",
                kind=policy.kind,
                submitter_id=ctx.user_id,
                member_record_ids=tuple(ids),
                status=BatchStatus.PENDING,
                submitted_at=self._clock(),
                details=policy.validate(tuple(ids), details or {}),
            )
            row = batch_to_row(batch)
            del row["id"]
            batch_id = self._store.insert(policy.kind.value, row)

        logger.info("Batch %s (%s) submitted by %s with %d record(s)", batch_id, policy.kind.value, ctx.user_id, len(ids))
        return replace(batch, id=batch_id)
