import logging
from typing import List

from app.config import settings
from app.core.authorization import authorize
from app.core.context import RequestContext, run_with_conflict_retry
from app.core.errors import ConstraintViolation
from app.modules.camps.schemas import Camp, CampCreate, CampUpdate

logger = logging.getLogger(__name__)


class CampService:
    def __init__(self, context: RequestContext, conflict_retries: int = None):
        self.context = context
        self.store = context.store
        self.conflict_retries = settings.conflict_retries if conflict_retries is None else conflict_retries

    def list_camps(self) -> List[Camp]:
        """All camps, newest first"""
        authorize(self.context.user, "camps:read")
        return self.store.list_camps()

    def get_camp(self, camp_id: str) -> Camp:
        authorize(self.context.user, "camps:read")
        return self.store.get_camp(camp_id)

    def add_camp(self, camp_data: CampCreate) -> Camp:
        """Create a volunteer-added camp; its capacity is the bed count at creation."""
        requester = self.context.user
        authorize(requester, "camps:create")
        camp = self.store.insert_camp({
            "name": camp_data.name,
            "beds": camp_data.beds,
            "original_beds": camp_data.beds,
            "resources": camp_data.resources,
            "contact": camp_data.contact,
            "ambulance": camp_data.ambulance,
            "type": "volunteer-added",
            "added_by": requester.id,
        })
        logger.info(f"Volunteer {requester.id} added camp {camp.id} ({camp.name}) with {camp.beds} beds")
        return camp

    def update_camp(self, camp_id: str, camp_data: CampUpdate) -> Camp:
        """Edit descriptive fields. Bed counts only move through selections and resize_camp."""
        authorize(self.context.user, "camps:update")
        changes = camp_data.model_dump(exclude_none=True)
        if not changes:
            return self.store.get_camp(camp_id)
        camp = self.store.update_camp(camp_id, changes)
        logger.info(f"Volunteer {self.context.user.id} updated camp {camp_id}: {sorted(changes)}")
        return camp

    def resize_camp(self, camp_id: str, capacity: int) -> Camp:
        """Change total capacity while keeping every occupied bed occupied."""
        authorize(self.context.user, "camps:update")

        def resize_once() -> Camp:
            camp = self.store.get_camp(camp_id)
            occupied = camp.occupied_beds
            if capacity < occupied:
                raise ConstraintViolation(
                    f"Capacity cannot be lower than the {occupied} bed(s) currently occupied"
                )
            return self.store.update_camp_beds(
                camp_id, capacity - occupied, expected_beds=camp.beds, original_beds=capacity
            )

        camp = run_with_conflict_retry(resize_once, self.conflict_retries, "resize_camp")
        logger.info(f"Camp {camp_id} resized to {camp.original_beds} beds ({camp.beds} available)")
        return camp

    def delete_camp(self, camp_id: str) -> bool:
        """Delete a camp. Rejected while any user still holds an active selection there."""
        authorize(self.context.user, "camps:delete")
        self.store.get_camp(camp_id)
        active = self.store.count_active_selections(camp_id)
        if active:
            raise ConstraintViolation(
                f"Camp has {active} active selection(s); they must be cancelled before deleting it"
            )
        # The store re-checks atomically in case a selection lands in between
        deleted = self.store.delete_camp(camp_id)
        if deleted:
            logger.info(f"Volunteer {self.context.user.id} deleted camp {camp_id}")
        return deleted
