import logging
import secrets
import string
import time

from app.core.errors import MissingUserId
from app.schemas.deletion import CallbackResponse, DeletionRecord
from app.services.deletion import DeletionDispatcher
from app.services.signed_request import verify_signed_request
from app.services.store import RecordStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_lowercase + string.digits

def new_confirmation_code() -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(6))
    return f"del_{time.time_ns() // 1_000_000}_{suffix}"

class DeletionCallbackService:
    """Handles Facebook data deletion callbacks against one record store.

    ``accept`` is the synchronous half: it verifies the signed request and
    hands back the response Facebook expects. ``record_deletion`` is the
    follow-up that deletes the user's data and writes the audit record; it is
    meant to run after the response has been sent and never raises.
    """

    def __init__(self, store: RecordStore, secret: str | bytes, base_url: str):
        self.store = store
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.dispatcher = DeletionDispatcher(store)

    def status_url(self, code: str) -> str:
        return f"{self.base_url}/deletion-status?code={code}"

    def accept(self, signed_request: str) -> tuple[CallbackResponse, str]:
        data = verify_signed_request(signed_request, self.secret)

        user_id = data.get("user_id")
        if not user_id:
            raise MissingUserId("Missing user_id in payload")
        user_id = str(user_id)

        code = new_confirmation_code()
        logger.info("Accepted deletion request %s for user %s", code, user_id)
        return CallbackResponse(url=self.status_url(code), confirmation_code=code), user_id

    async def record_deletion(self, code: str, user_id: str) -> None:
        try:
            outcome = await self.dispatcher.dispatch(user_id)
            record = DeletionRecord.from_outcome(user_id, outcome)
            await self.store.put_deletion_log(code, record)
            logger.info("Recorded deletion %s as %s", code, record.status)
        except Exception:
            logger.exception("Error recording deletion %s for user %s", code, user_id)

    async def lookup(self, code: str) -> DeletionRecord | None:
        return await self.store.get_deletion_log(code)
