from datetime import datetime

from pydantic import BaseModel


class UpdateCompanySettingsRequest(BaseModel):
    company_name: str | None = None
    trade_name: str | None = None
    cnpj: str | None = None
    state_registration: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    logo_url: str | None = None
    pix_key: str | None = None
    pix_qr_code_url: str | None = None


class CompanySettingsResponse(UpdateCompanySettingsRequest):
    id: int
    updated_at: datetime
