"""Support request endpoint"""
import logging

import httpx
from fastapi import APIRouter, Depends

from app.config import get_resend_api_key
from app.features.support.schemas import SupportRequest, SupportResponse
from app.features.support.service import SupportService
from app.infra.http import get_http_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["support"])


def get_support_service(http: httpx.AsyncClient = Depends(get_http_client)) -> SupportService:
    return SupportService(http, get_resend_api_key())


@router.post("/support-request", response_model=SupportResponse)
async def support_request(
    req: SupportRequest,
    service: SupportService = Depends(get_support_service),
):
    """Forward a support form submission to the support inbox"""
    await service.send_support_request(req.subject, req.message, req.priority)
    return SupportResponse(success=True)
