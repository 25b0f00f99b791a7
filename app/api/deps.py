from fastapi import Request
from app.services.callback import DeletionCallbackService

def get_service(request: Request) -> DeletionCallbackService:
    return request.app.state.service
