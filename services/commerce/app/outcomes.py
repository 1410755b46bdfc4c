"""
Commerce Service: command outcomes

Commands return one of these values instead of raising for expected
failures (missing records, guard failures, bad status strings). Only
infrastructure faults are raised. Each outcome knows the HTTP status it
maps to.
"""

from dataclasses import dataclass
from typing import ClassVar, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    status_code: ClassVar[int] = 200
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Created(Ok[T]):
    status_code: ClassVar[int] = 201


class Failure:
    status_code: ClassVar[int] = 500
    ok: ClassVar[bool] = False

    @property
    def message(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class NotFound(Failure):
    resource: str
    identity: str
    status_code: ClassVar[int] = 404

    @property
    def message(self) -> str:
        return f"{self.resource} with ID '{self.identity}' not found."


class Conflict(Failure):
    status_code: ClassVar[int] = 409


@dataclass(frozen=True)
class InsufficientStock(Conflict):
    product_id: str
    product_name: str
    sku: str
    requested: int
    available: int

    @property
    def message(self) -> str:
        return (
            f"Insufficient stock for product '{self.product_name}' (SKU: {self.sku}). "
            f"Requested: {self.requested}, Available: {self.available}."
        )


@dataclass(frozen=True)
class NegativeStock(Conflict):
    product_id: str
    stock: int
    adjustment: int

    @property
    def message(self) -> str:
        return (
            "Stock adjustment would result in negative stock. "
            f"Current stock: {self.stock}, Requested adjustment: {self.adjustment}."
        )


@dataclass(frozen=True)
class OrderShipped(Conflict):
    order_id: str

    @property
    def message(self) -> str:
        return "Cannot update an order that has already been shipped."


class ValidationFailed(Failure):
    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class InvalidStatus(ValidationFailed):
    status: str

    @property
    def message(self) -> str:
        return (
            f"Invalid status: '{self.status}'. "
            "Valid values: Pending, Paid, Shipped, Cancelled."
        )
