# Overview: Domain exceptions raised by the service layer and translated to HTTP status codes by routes.

from __future__ import annotations


class ServiceError(Exception):
    """Base class for business-rule failures raised by services."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFoundError(ServiceError):
    """A referenced record does not exist in the caller's shop."""


class CheckoutError(ServiceError):
    """Base for failures of the sale-creation transaction."""
    code = "CHECKOUT_FAILED"


class InvalidSaleRequest(CheckoutError):
    code = "INVALID_REQUEST"


class ProductNotFound(CheckoutError, NotFoundError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}", details={"product_id": product_id})
        self.product_id = product_id


class InsufficientStock(CheckoutError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int | None):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class LedgerConfigurationError(CheckoutError):
    """A fixed chart-of-accounts code required by a workflow is missing."""
    code = "LEDGER_CONFIGURATION"

    def __init__(self, code: str):
        super().__init__(f"OHADA code {code} not found", details={"ohada_code": code})
        self.ohada_code = code


class SaleNotFound(NotFoundError):
    def __init__(self, sale_id: str):
        super().__init__("Sale not found", details={"sale_id": sale_id})


class SaleStatusError(ServiceError):
    """Requested sale status transition is not allowed."""


class ReturnError(ServiceError):
    """Raised for return operation errors."""


class LedgerError(ServiceError):
    """Raised for manual ledger entry errors."""
