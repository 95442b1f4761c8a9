from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from typing import Optional
from datetime import date, datetime


class ClienteBase(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    observations: Optional[str] = None

    # forms send "" for untouched optional inputs
    @field_validator("email", "birth_date", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ClienteCreate(ClienteBase):
    gender: Optional[str] = "nao_informado"


class ClienteUpdate(ClienteBase):
    pass


class ClienteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    observations: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ClienteList(BaseModel):
    data: list[ClienteRead]
    pagination: Pagination
