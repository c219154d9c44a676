"""
Bulk visitor actions: extend, revoke, delete.

Each call checks ownership of the whole id set with one query, then applies
one set-oriented mutation inside a transaction. Nothing is mutated when any
id is not owned by the caller.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import OwnershipError, ValidationError
from .models import AllowedVisitor, VisitorCheckIn
from .dtos import BulkAction, BulkActionResult, BulkOutcome

logger = logging.getLogger(__name__)


class BulkVisitorActionCoordinator:

    def apply(
        self,
        action: str,
        ids: Iterable[UUID],
        owner_id: UUID,
        expires_at: Optional[datetime] = None,
    ) -> BulkActionResult:
        ids = list(dict.fromkeys(ids))

        if action not in BulkAction.ALL:
            raise ValidationError(f"Invalid action '{action}'. Use extend, revoke or delete.")
        if not ids:
            raise ValidationError("No visitors selected")
        if action == BulkAction.EXTEND and expires_at is None:
            raise ValidationError("expires_at is required to extend visitors")

        with transaction.atomic():
            owned = set(
                AllowedVisitor.objects
                .select_for_update()
                .filter(id__in=ids, address__member_id=owner_id)
                .values_list('id', flat=True)
            )
            missing = [i for i in ids if i not in owned]
            if missing:
                logger.warning(
                    f"Bulk {action} refused for owner {owner_id}: {len(missing)} visitor(s) not owned"
                )
                raise OwnershipError(f"{len(missing)} visitor(s) not found or not owned by you")

            if action == BulkAction.EXTEND:
                result = self._extend(ids, expires_at)
            elif action == BulkAction.REVOKE:
                result = self._revoke(ids)
            else:
                result = self._delete(ids)

        logger.info(
            f"Bulk {action} for owner {owner_id}: {result.outcome}, "
            f"{len(result.affected_ids)} affected, {len(result.blocked_ids)} blocked"
        )
        return result

    def _extend(self, ids, expires_at) -> BulkActionResult:
        AllowedVisitor.objects.filter(id__in=ids).update(
            expires_at=expires_at, is_active=True, updated_at=timezone.now()
        )
        return BulkActionResult(BulkAction.EXTEND, BulkOutcome.SUCCESS, affected_ids=ids)

    def _revoke(self, ids) -> BulkActionResult:
        AllowedVisitor.objects.filter(id__in=ids).update(
            is_active=False, updated_at=timezone.now()
        )
        return BulkActionResult(BulkAction.REVOKE, BulkOutcome.SUCCESS, affected_ids=ids)

    def _delete(self, ids) -> BulkActionResult:
        with_history = set(
            VisitorCheckIn.objects
            .filter(visitor_id__in=ids)
            .values_list('visitor_id', flat=True)
            .distinct()
        )
        blocked = [i for i in ids if i in with_history]
        deletable = [i for i in ids if i not in with_history]

        if not deletable:
            return BulkActionResult(BulkAction.DELETE, BulkOutcome.CONFLICT, blocked_ids=blocked)

        AllowedVisitor.objects.filter(id__in=deletable).delete()
        outcome = BulkOutcome.PARTIAL_SUCCESS if blocked else BulkOutcome.SUCCESS
        return BulkActionResult(
            BulkAction.DELETE,
            outcome,
            affected_ids=deletable,
            deleted_ids=deletable,
            blocked_ids=blocked,
        )
