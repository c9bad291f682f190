from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.db.session import get_db
from pdv.schemas.settings import CompanySettingsResponse, UpdateCompanySettingsRequest
from pdv.services.deps import COMPANY_SETTINGS_ID, SETTINGS_COLUMNS, ensure_company_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/company", response_model=CompanySettingsResponse)
def read_company_settings(db: Session = Depends(get_db)):
    return CompanySettingsResponse(**ensure_company_settings(db))


@router.put("/company", response_model=CompanySettingsResponse)
def update_company_settings(payload: UpdateCompanySettingsRequest, db: Session = Depends(get_db)):
    ensure_company_settings(db)

    updated = db.execute(
        text(
            f"""
            UPDATE company_settings
            SET
              company_name = COALESCE(:company_name, company_name),
              trade_name = COALESCE(:trade_name, trade_name),
              cnpj = COALESCE(:cnpj, cnpj),
              state_registration = COALESCE(:state_registration, state_registration),
              address = COALESCE(:address, address),
              city = COALESCE(:city, city),
              state = COALESCE(:state, state),
              zip_code = COALESCE(:zip_code, zip_code),
              phone = COALESCE(:phone, phone),
              email = COALESCE(:email, email),
              website = COALESCE(:website, website),
              logo_url = COALESCE(:logo_url, logo_url),
              pix_key = COALESCE(:pix_key, pix_key),
              pix_qr_code_url = COALESCE(:pix_qr_code_url, pix_qr_code_url),
              updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING {SETTINGS_COLUMNS}
            """
        ),
        {"id": COMPANY_SETTINGS_ID, **payload.model_dump()},
    ).mappings().first()
    db.commit()

    return CompanySettingsResponse(**updated)
