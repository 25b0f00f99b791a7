import logging
from pathlib import Path

from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates

from app.api.deps import get_service
from app.schemas.deletion import DeletionStatus
from app.services.callback import DeletionCallbackService

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
web_router = APIRouter(include_in_schema=False)

@web_router.get("/", response_class=PlainTextResponse)
async def home():
    return "Facebook Data Deletion Server is running!"

@web_router.get("/deletion-status", response_class=HTMLResponse)
async def deletion_status(request: Request, service: DeletionCallbackService = Depends(get_service)):
    code = (request.query_params.get("code") or "").strip()
    if not code:
        return HTMLResponse("<h3>Missing confirmation code.</h3>", status_code=400)

    try:
        record = await service.lookup(code)
    except Exception:
        logger.exception("Error fetching deletion log %s", code)
        return HTMLResponse("<h3>Internal Server Error</h3>", status_code=500)

    if record is None or record.status == DeletionStatus.pending:
        return templates.TemplateResponse(request, "deletion_processing.html", {"code": code})
    return templates.TemplateResponse(request, "deletion_status.html", {"code": code, "record": record})
