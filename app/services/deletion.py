import logging

from app.schemas.deletion import DeletionOutcome
from app.services.store import RecordStore

logger = logging.getLogger(__name__)

class DeletionDispatcher:
    def __init__(self, store: RecordStore):
        self.store = store

    async def dispatch(self, user_id: str) -> DeletionOutcome:
        """Delete the stored data for ``user_id``; never raises on store faults."""
        try:
            if await self.store.get_user(user_id) is None:
                logger.info("No data found for user %s", user_id)
                return DeletionOutcome(deleted=False, message="No user data found")
            await self.store.delete_user(user_id)
        except Exception as e:
            # includes faults a backend did not wrap in StoreError
            logger.exception("Error deleting user %s", user_id)
            return DeletionOutcome(deleted=False, message=str(e) or type(e).__name__, failed=True)

        logger.info("Deleted data for user %s", user_id)
        return DeletionOutcome(deleted=True, message="User data deleted successfully")
