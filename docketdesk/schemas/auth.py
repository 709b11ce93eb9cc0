from pydantic import BaseModel

from docketdesk.schemas.common import ApiModel


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(ApiModel):
    refresh_token: str


class ChangePasswordRequest(ApiModel):
    old_password: str
    new_password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
