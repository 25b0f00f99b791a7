import logging

import uvicorn
from fastapi import FastAPI

from app.api.router import api
from app.core.config import Settings, get_settings
from app.core.logging import setup_logging
from app.services.callback import DeletionCallbackService
from app.services.store import RecordStore, build_store
from app.web.routes import web_router

logger = logging.getLogger(__name__)

def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)
    store = store or build_store(settings)

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.service = DeletionCallbackService(store, settings.APP_SECRET, settings.BASE_URL)

    @app.on_event("startup")
    async def startup():
        # Create tables automatically; the redis backend has nothing to prepare
        await store.init()
        logger.info("%s started (%s)", settings.APP_NAME, settings.ENV)

    @app.on_event("shutdown")
    async def shutdown():
        await store.close()

    app.include_router(api)
    app.include_router(web_router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app

def run():
    settings = get_settings()
    uvicorn.run("app.main:create_app", factory=True, host=settings.HOST, port=settings.PORT)

if __name__ == "__main__":
    run()
