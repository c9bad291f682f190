from sqlalchemy import Date, DateTime, bindparam
from sqlalchemy.sql.elements import BindParameter

from pdv.db.tables import MONEY


def money_params(*names: str) -> list[BindParameter]:
    # SQLite has no native decimal; typed binds let SQLAlchemy coerce Decimal
    return [bindparam(name, type_=MONEY) for name in names]


def date_params(*names: str) -> list[BindParameter]:
    return [bindparam(name, type_=Date) for name in names]


def datetime_params(*names: str) -> list[BindParameter]:
    return [bindparam(name, type_=DateTime(timezone=True)) for name in names]


def id_list_param(name: str) -> BindParameter:
    return bindparam(name, expanding=True)
