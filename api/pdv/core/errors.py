"""Domain errors raised by services and rendered by the API layer."""

from decimal import Decimal
from typing import Any


class PDVError(Exception):
    """Base class for every error the API turns into a JSON response."""

    status_code = 500

    def __init__(self, message: str = "An internal error occurred", status_code: int | None = None, payload: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_dict(self) -> dict[str, Any]:
        rv = dict(self.payload or ())
        rv["message"] = self.message
        rv["status"] = "error"
        return rv


class NotFoundError(PDVError):
    status_code = 404

    def __init__(self, message: str = "Resource not found", payload: dict[str, Any] | None = None):
        super().__init__(message, payload=payload)


class ProductNotFound(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found", payload={"product_id": product_id})
        self.product_id = product_id


class ClientNotFound(NotFoundError):
    def __init__(self, client_id: int):
        super().__init__(f"Client {client_id} not found", payload={"client_id": client_id})
        self.client_id = client_id


class SaleNotFound(NotFoundError):
    def __init__(self, sale_id: int):
        super().__init__(f"Sale {sale_id} not found", payload={"sale_id": sale_id})


class ExchangeNotFound(NotFoundError):
    def __init__(self, exchange_id: int):
        super().__init__(f"Exchange {exchange_id} not found", payload={"exchange_id": exchange_id})


class BusinessRuleError(PDVError):
    status_code = 400


class InsufficientStock(BusinessRuleError):
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            payload={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class LineTotalMismatch(BusinessRuleError):
    def __init__(self, line: int, expected: Decimal, received: Decimal):
        super().__init__(
            f"Item {line}: total_price {received} does not match quantity x unit_price ({expected})",
            payload={"line": line, "expected": str(expected), "received": str(received)},
        )


class SaleTotalMismatch(BusinessRuleError):
    def __init__(self, expected: Decimal, received: Decimal):
        super().__init__(
            f"total_amount {received} does not match items minus discount ({expected})",
            payload={"expected": str(expected), "received": str(received)},
        )


class InvalidSale(BusinessRuleError):
    pass


class InvalidExchange(BusinessRuleError):
    pass


class InvalidStatusTransition(BusinessRuleError):
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change exchange status from {current} to {requested}",
            payload={"current": current, "requested": requested},
        )


class Conflict(BusinessRuleError):
    status_code = 409


class ProductInUse(Conflict):
    def __init__(self, product_id: int):
        super().__init__(
            f"Product {product_id} is referenced by recorded sales and cannot be deleted",
            payload={"product_id": product_id},
        )


class PersistenceFailure(PDVError):
    status_code = 503

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)
