from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..core.security import rate_limit
from ..schemas import NotificationRequest
from ..services.notification_service import NotificationService

router = APIRouter()

def notification_dep(request: Request) -> NotificationService:
    return request.app.state.notification_service

@router.post("/notifications/telegram")
async def post_telegram_reminder(
    body: NotificationRequest | None = None,
    _lim = Depends(rate_limit),
    svc: NotificationService = Depends(notification_dep),
):
    body = body or NotificationRequest()
    result = await svc.send(body.message, body.priority, body.follow_up_id)
    return JSONResponse(status_code=result.status_code, content=result.body)
