"""
Inventory ledger for camp beds.

A selection and the bed it occupies are always written together: the store
commits the new selection row and the decremented bed count in one atomic
call guarded by the bed count read during validation. If another request
moved the counter first the commit reports a Conflict and the whole
operation is re-run (re-validating, so it may then fail with CampFull).
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.config import settings
from app.core.authorization import authorize, authorize_self
from app.core.context import RequestContext, run_with_conflict_retry
from app.core.errors import (
    AlreadySelected, CampFull, CampNotFound, ConstraintViolation, NoActiveSelection,
)
from app.modules.selections.schemas import (
    CampSelection, CampSelectionWithCamp, CancelResult, SelectionResult
)

logger = logging.getLogger(__name__)


class InventoryLedger:
    def __init__(self, context: RequestContext, conflict_retries: int = None):
        self.context = context
        self.store = context.store
        self.conflict_retries = settings.conflict_retries if conflict_retries is None else conflict_retries

    def select_camp(self, user_id: str, camp_id: str) -> SelectionResult:
        authorize(self.context.user, "selections:create")
        authorize_self(self.context.user, user_id)
        return run_with_conflict_retry(
            lambda: self._select_once(user_id, camp_id), self.conflict_retries, "select_camp"
        )

    def cancel_selection(self, user_id: str) -> CancelResult:
        authorize(self.context.user, "selections:cancel")
        authorize_self(self.context.user, user_id)
        return run_with_conflict_retry(
            lambda: self._cancel_once(user_id), self.conflict_retries, "cancel_selection"
        )

    def get_active_selection(self, user_id: str) -> Optional[CampSelectionWithCamp]:
        """Current selection with a snapshot of its camp, or None."""
        authorize(self.context.user, "selections:read")
        authorize_self(self.context.user, user_id)
        selection = self.store.get_active_selection(user_id)
        if selection is None:
            return None
        try:
            camp = self.store.get_camp(selection.camp_id)
        except CampNotFound:
            camp = None
        return CampSelectionWithCamp(**selection.model_dump(), camp=camp)

    def list_selections(self, user_id: str) -> List[CampSelection]:
        authorize(self.context.user, "selections:read")
        authorize_self(self.context.user, user_id)
        return self.store.list_selections(user_id)

    def _select_once(self, user_id: str, camp_id: str) -> SelectionResult:
        if self.store.get_active_selection(user_id) is not None:
            raise AlreadySelected()

        camp = self.store.get_camp(camp_id)
        if camp.beds <= 0:
            raise CampFull()

        try:
            selection, updated = self.store.commit_selection(user_id, camp_id, expected_beds=camp.beds)
        except ConstraintViolation:
            # Lost a race against another selection by the same user
            raise AlreadySelected()

        logger.info(f"User {user_id} selected camp {camp_id}; {updated.beds}/{updated.original_beds} beds left")
        return SelectionResult(selection=selection, camp=updated)

    def _cancel_once(self, user_id: str) -> CancelResult:
        selection = self.store.get_active_selection(user_id)
        if selection is None:
            raise NoActiveSelection()

        cancelled_at = datetime.now(timezone.utc).isoformat()
        cancelled, camp = self.store.commit_cancellation(selection.id, cancelled_at)

        if camp is None:
            logger.warning(f"Selection {selection.id} cancelled but camp {selection.camp_id} no longer exists")
        else:
            logger.info(f"User {user_id} cancelled camp {camp.id}; {camp.beds}/{camp.original_beds} beds left")
        return CancelResult(selection=cancelled, camp=camp)
