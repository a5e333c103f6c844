from typing import Optional

from pydantic import EmailStr, Field

from qairoz.schemas.common import CamelModel


class SendEmailRequest(CamelModel):
    to: EmailStr
    subject: str = Field(..., min_length=1)
    html: str
    text: Optional[str] = None
    type: Optional[str] = None  # "otp", "welcome", ... used for logging only


class SendEmailResponse(CamelModel):
    success: bool = True
    provider: str
