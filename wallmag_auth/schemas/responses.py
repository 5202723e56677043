from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageOut(BaseModel):
    message: str


class UserOut(BaseModel):
    id_number: str
    name: str
    email: str
    role: str


class SignupOut(MessageOut):
    model_config = ConfigDict(populate_by_name=True)

    expires_in: int = Field(..., alias="expiresIn")
    csrf_token: str = Field(..., alias="csrfToken")


class ProfileCreatedOut(MessageOut):
    user: UserOut


class LoginOut(MessageOut):
    role: str
    user: UserOut


class RefreshOut(MessageOut):
    model_config = ConfigDict(populate_by_name=True)

    expires_in: int = Field(..., alias="expiresIn")


class BackupCodesOut(MessageOut):
    backup_codes: list[str]


class SessionOut(BaseModel):
    id_number: str
    email: Optional[str] = None
    role: Optional[str] = None
    expires_at: int
