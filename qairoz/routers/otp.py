# qairoz/routers/otp.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import EmailStr

from qairoz.schemas.otp import (
    SendEmailOTPRequest,
    SendEmailOTPResponse,
    VerifyEmailOTPRequest,
    VerifyEmailOTPResponse,
    OTPStatusOut,
)
from qairoz.utils.otp import OTPStore, get_otp_store, normalize_email, send_email_otp

router = APIRouter(prefix="/api/otp", tags=["OTP"])


# ---------------- SEND EMAIL OTP ----------------
@router.post("/send", response_model=SendEmailOTPResponse)
def send_otp(payload: SendEmailOTPRequest, store: OTPStore = Depends(get_otp_store)):
    """
    Issue a fresh code for the address and email it.
    Succeeds even if delivery failed; `emailSent` tells the caller.
    """
    result = send_email_otp(store, payload.email)
    if not result["success"]:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result["message"])
    return result


# ---------------- VERIFY EMAIL OTP ----------------
@router.post("/verify", response_model=VerifyEmailOTPResponse)
def verify_otp(payload: VerifyEmailOTPRequest, store: OTPStore = Depends(get_otp_store)):
    result = store.verify(payload.email, payload.code)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return VerifyEmailOTPResponse(success=True, message=result.message)


# ---------------- STATUS ----------------
@router.get("/status", response_model=OTPStatusOut)
def otp_status(email: EmailStr = Query(...), store: OTPStore = Depends(get_otp_store)):
    return OTPStatusOut(
        email=normalize_email(email),
        active=store.has_active(email),
        expires_in=store.time_remaining(email),
    )
