from dataclasses import dataclass
import logging
from typing import Callable, TypeVar

from app.core.errors import Conflict
from app.database.store import CampStore
from app.modules.auth.schemas import UserIdentity

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and which store the call runs against. Built once per request."""
    user: UserIdentity
    store: CampStore


def run_with_conflict_retry(operation: Callable[[], T], retries: int, name: str) -> T:
    """Run ``operation``; on Conflict re-run it up to ``retries`` more times, then surface the Conflict."""
    attempt = 0
    while True:
        try:
            return operation()
        except Conflict:
            if attempt >= retries:
                logger.warning(f"{name}: concurrent update persisted after {attempt + 1} attempt(s)")
                raise
            attempt += 1
            logger.info(f"{name}: concurrent update detected, retrying (attempt {attempt + 1})")
