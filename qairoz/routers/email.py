import logging

from fastapi import APIRouter, HTTPException, status

from qairoz.schemas.email import SendEmailRequest, SendEmailResponse
from qairoz.utils import email as email_utils

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Email"])


@router.post("/send-email", response_model=SendEmailResponse)
def send_email(payload: SendEmailRequest):
    """Relay a ready-made HTML message through the configured providers."""
    logger.info("send-email requested (type=%s) for %s", payload.type or "generic", payload.to)
    provider = email_utils.send_email(payload.to, payload.subject, payload.html, payload.text)
    if provider is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Email delivery failed")
    return SendEmailResponse(provider=provider)
