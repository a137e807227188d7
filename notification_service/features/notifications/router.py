"""API router for e-mail and push dispatch.

Endpoints:
- POST /send-email - Render a template and send it
- POST /send-push - Send a push notification to a device, devices or a topic
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from notification_service.core.dependencies.auth import RequirePermissions
from notification_service.core.dependencies.services import DispatcherDep
from notification_service.core.schemas.common import ErrorResponse, MessageResponse
from notification_service.features.notifications.schemas import SendEmailRequest, SendPushRequest
from notification_service.infra.auth import ServiceIdentity, permissions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
    403: {"model": ErrorResponse, "description": "Caller not allowed or missing permission"},
    500: {"model": ErrorResponse, "description": "Downstream delivery failed"},
}


@router.post(
    "/send-email",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a templated e-mail",
    responses=ERROR_RESPONSES,
)
async def send_email(
    body: SendEmailRequest,
    dispatcher: DispatcherDep,
    caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.SEND_EMAIL))],
) -> MessageResponse:
    """Render ``template`` with ``context`` and deliver it to ``to``."""
    result = await dispatcher.send_mail(body)
    return MessageResponse(
        message=f"Email sent successfully to {body.to}",
        details={"messageId": result.message_id},
    )


@router.post(
    "/send-push",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a push notification",
    responses=ERROR_RESPONSES,
)
async def send_push(
    body: SendPushRequest,
    dispatcher: DispatcherDep,
    caller: Annotated[ServiceIdentity, Depends(RequirePermissions(*permissions.SEND_PUSH))],
) -> MessageResponse:
    """Send to exactly one of ``token``, ``tokens`` or ``topic``.

    Succeeds when at least one delivery succeeded.
    """
    report = await dispatcher.send_push(body)
    return MessageResponse(
        message="Push notification sent successfully",
        details={
            "messageId": report.message_id,
            "successCount": report.success_count,
            "failureCount": report.failure_count,
        },
    )
