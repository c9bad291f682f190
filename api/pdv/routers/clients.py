from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.core.errors import ClientNotFound
from pdv.db.session import get_db
from pdv.db.sql import date_params
from pdv.schemas.clients import (
    ClientResponse,
    CreateClientRequest,
    ListClientsResponse,
    UpdateClientRequest,
)
from pdv.services.deps import CLIENT_COLUMNS, get_client

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(payload: CreateClientRequest, db: Session = Depends(get_db)):
    client = db.execute(
        text(
            f"""
            INSERT INTO clients (
              name,
              email,
              phone,
              cpf_cnpj,
              address,
              city,
              state,
              zip_code,
              birth_date,
              created_at,
              updated_at
            )
            VALUES (
              :name,
              :email,
              :phone,
              :cpf_cnpj,
              :address,
              :city,
              :state,
              :zip_code,
              :birth_date,
              CURRENT_TIMESTAMP,
              CURRENT_TIMESTAMP
            )
            RETURNING {CLIENT_COLUMNS}
            """
        ).bindparams(*date_params("birth_date")),
        payload.model_dump(),
    ).mappings().first()
    db.commit()

    return ClientResponse(**client)


@router.get("", response_model=ListClientsResponse)
def list_clients(search: str | None = None, db: Session = Depends(get_db)):
    pattern = f"%{search.lower()}%" if search else None
    rows = db.execute(
        text(
            f"""
            SELECT {CLIENT_COLUMNS}
            FROM clients
            WHERE :pattern IS NULL
               OR LOWER(name) LIKE :pattern
               OR LOWER(COALESCE(email, '')) LIKE :pattern
               OR COALESCE(phone, '') LIKE :pattern
               OR COALESCE(cpf_cnpj, '') LIKE :pattern
            ORDER BY name ASC, id ASC
            """
        ),
        {"pattern": pattern},
    ).mappings().all()

    return ListClientsResponse(clients=[ClientResponse(**row) for row in rows])


@router.get("/{client_id}", response_model=ClientResponse)
def read_client(client_id: int, db: Session = Depends(get_db)):
    return ClientResponse(**get_client(db, client_id))


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(client_id: int, payload: UpdateClientRequest, db: Session = Depends(get_db)):
    client = db.execute(
        text(
            f"""
            UPDATE clients
            SET
              name = COALESCE(:name, name),
              email = COALESCE(:email, email),
              phone = COALESCE(:phone, phone),
              cpf_cnpj = COALESCE(:cpf_cnpj, cpf_cnpj),
              address = COALESCE(:address, address),
              city = COALESCE(:city, city),
              state = COALESCE(:state, state),
              zip_code = COALESCE(:zip_code, zip_code),
              birth_date = COALESCE(:birth_date, birth_date),
              updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING {CLIENT_COLUMNS}
            """
        ).bindparams(*date_params("birth_date")),
        {"id": client_id, **payload.model_dump()},
    ).mappings().first()
    db.commit()

    if not client:
        raise ClientNotFound(client_id)

    return ClientResponse(**client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(client_id: int, db: Session = Depends(get_db)):
    # sales keep their rows; the foreign key nulls client_id
    result = db.execute(text("DELETE FROM clients WHERE id = :id"), {"id": client_id})
    db.commit()

    if not result.rowcount:
        raise ClientNotFound(client_id)
