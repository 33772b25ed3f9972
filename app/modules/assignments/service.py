import logging
from typing import List

from app.core.authorization import authorize, authorize_self
from app.core.context import RequestContext
from app.modules.assignments.schemas import VolunteerAssignment

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(self, context: RequestContext):
        self.context = context
        self.store = context.store

    def record_assignment(self, volunteer_id: str, camp_id: str) -> VolunteerAssignment:
        """Append an assignment to the volunteer's history. Repeats are allowed."""
        authorize(self.context.user, "assignments:create")
        authorize_self(self.context.user, volunteer_id)
        self.store.get_camp(camp_id)
        assignment = self.store.insert_assignment(volunteer_id, camp_id)
        logger.info(f"Volunteer {volunteer_id} assigned to camp {camp_id}")
        return assignment

    def list_assignments(self, volunteer_id: str) -> List[VolunteerAssignment]:
        """Assignment history, newest first"""
        authorize(self.context.user, "assignments:read")
        authorize_self(self.context.user, volunteer_id)
        return self.store.list_assignments(volunteer_id)
