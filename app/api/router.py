from fastapi import APIRouter
from app.api.routes import deletion_callback

api = APIRouter()
api.include_router(deletion_callback.router, tags=["webhooks"])
