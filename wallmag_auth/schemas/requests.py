from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Fields are optional so the flows can answer with their own messages
# instead of a schema error.


class SignupIn(BaseModel):
    id_number: Optional[str] = Field(None, description="Roster identifier", max_length=64)


class VerifyOtpIn(BaseModel):
    otp: Optional[str] = Field(None, description="Six-digit code from the email")
    csrf_token: Optional[str] = Field(None, description="Echo of the otp_csrf_token cookie")


class PasswordPairIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: Optional[str] = Field(None, max_length=256)
    confirm_password: Optional[str] = Field(None, alias="confirmPassword", max_length=256)


class CreateProfileIn(PasswordPairIn):
    pass


class LoginIn(BaseModel):
    id_number: Optional[str] = Field(None, max_length=64)
    password: Optional[str] = Field(None, max_length=256)


class ForgotPasswordIn(BaseModel):
    id_number: Optional[str] = Field(None, max_length=64)


class ResetPasswordIn(PasswordPairIn):
    otp: Optional[str] = None


class BlockIpIn(BaseModel):
    ip: str = Field(..., min_length=1, max_length=64)
    duration_seconds: int = Field(86400, gt=0, le=30 * 86400)


class DisableTwoFactorIn(BaseModel):
    password: Optional[str] = Field(None, max_length=256)
