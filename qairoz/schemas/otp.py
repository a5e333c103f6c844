# qairoz/schemas/otp.py
from pydantic import EmailStr

from qairoz.schemas.common import CamelModel


class SendEmailOTPRequest(CamelModel):
    email: EmailStr


class VerifyEmailOTPRequest(CamelModel):
    email: EmailStr
    # any length; a malformed code is just a wrong guess
    code: str


class SendEmailOTPResponse(CamelModel):
    success: bool
    message: str
    email_sent: bool = False
    expires_in: int = 0


class VerifyEmailOTPResponse(CamelModel):
    success: bool
    message: str


class OTPStatusOut(CamelModel):
    email: str
    active: bool
    expires_in: int
