from pydantic import BaseModel, ConfigDict, EmailStr, constr
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    password: constr(min_length=6, max_length=128)
    name: constr(strip_whitespace=True, min_length=1, max_length=120)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    name: Optional[str] = None


class RefreshIn(BaseModel):
    refresh_token: str
