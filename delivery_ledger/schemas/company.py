"""Delivery company schemas."""

from pydantic import BaseModel, ConfigDict


class CompanyRead(BaseModel):
    """Serialized delivery company."""

    id: int
    name: str
    active: bool

    model_config = ConfigDict(from_attributes=True)


class CompanyCreate(BaseModel):
    name: str


class CompanyRename(BaseModel):
    name: str


class CompanyActiveUpdate(BaseModel):
    active: bool


class CompanyCreated(BaseModel):
    id: int
