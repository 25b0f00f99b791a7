import json
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.api.deps import get_service
from app.core.errors import SignedRequestError
from app.services.callback import DeletionCallbackService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fb-deletion-callback")

async def read_signed_request(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = json.loads(await request.body() or b"{}")
        except ValueError:
            return None
        value = body.get("signed_request") if isinstance(body, dict) else None
    else:
        try:
            form = await request.form()
        except HTTPException:
            return None
        value = form.get("signed_request")
    return value if isinstance(value, str) and value else None

@router.post("")
async def handle(request: Request, background: BackgroundTasks, service: DeletionCallbackService = Depends(get_service)):
    try:
        signed_request = await read_signed_request(request)
        if not signed_request:
            return JSONResponse({"error": "No signed_request"}, status_code=400)

        resp, user_id = service.accept(signed_request)
    except SignedRequestError as e:
        logger.warning("Rejected deletion callback: %s", e.message)
        return JSONResponse({"error": e.message}, status_code=e.status_code)
    except Exception:
        logger.exception("Error handling deletion callback")
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    # Runs after the response is sent; Facebook expects a fast answer
    background.add_task(service.record_deletion, resp.confirmation_code, user_id)
    return resp.model_dump()
