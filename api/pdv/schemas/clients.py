from datetime import date, datetime

from pydantic import BaseModel, Field


class CreateClientRequest(BaseModel):
    name: str = Field(min_length=1, max_length=250)
    email: str | None = None
    phone: str | None = None
    cpf_cnpj: str | None = Field(default=None, max_length=20)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, max_length=20)
    birth_date: date | None = None


class UpdateClientRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=250)
    email: str | None = None
    phone: str | None = None
    cpf_cnpj: str | None = Field(default=None, max_length=20)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = Field(default=None, max_length=20)
    birth_date: date | None = None


class ClientResponse(BaseModel):
    id: int
    name: str
    email: str | None
    phone: str | None
    cpf_cnpj: str | None
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    birth_date: date | None
    created_at: datetime
    updated_at: datetime


class ListClientsResponse(BaseModel):
    clients: list[ClientResponse]
