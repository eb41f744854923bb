"""Pydantic schemas for transaction endpoints."""

from datetime import date as DateType
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fii_tracker.domain.models import Transaction, TransactionType


class TransactionCreateRequest(BaseModel):
    """Request schema for creating a transaction."""

    ticker: str = Field(..., min_length=1, max_length=12, description="B3 ticker, e.g. MXRF11")
    txn_type: TransactionType = Field(..., description="BUY or SELL")
    quantity: Decimal = Field(..., gt=0, description="Number of shares")
    price: Decimal = Field(..., ge=0, description="Price per share")
    date: DateType = Field(..., description="Trade date (YYYY-MM-DD)")
    costs: Decimal = Field(default=Decimal("0"), ge=0, description="Brokerage and fees")
    notes: Optional[str] = Field(default=None, max_length=500)
    txn_id: Optional[str] = Field(default=None, max_length=64, description="Client-chosen id")

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: str) -> str:
        return v.strip().upper()


class TransactionUpdateRequest(BaseModel):
    """Request schema for updating a transaction (partial update)."""

    ticker: Optional[str] = Field(default=None, min_length=1, max_length=12)
    txn_type: Optional[TransactionType] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    date: Optional[DateType] = None
    costs: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else None


class TransactionResponse(BaseModel):
    """Response schema for a single transaction."""

    txn_id: str
    ticker: str
    txn_type: TransactionType
    quantity: Decimal
    price: Decimal
    date: str
    costs: Decimal
    notes: Optional[str] = None
    gross_amount: Decimal

    @classmethod
    def from_domain(cls, txn: Transaction) -> "TransactionResponse":
        return cls(
            txn_id=txn.txn_id,
            ticker=txn.ticker,
            txn_type=txn.txn_type,
            quantity=txn.quantity,
            price=txn.price,
            date=txn.date,
            costs=txn.costs,
            notes=txn.notes,
            gross_amount=txn.gross_amount,
        )


class TransactionListResponse(BaseModel):
    """Response schema for the transaction list."""

    items: list[TransactionResponse]
    total: int


class ImportSummaryResponse(BaseModel):
    """Result of a bulk import."""

    model_config = {"from_attributes": True}

    imported_count: int
    skipped_count: int
    error_count: int
    errors: list[str]


class AveragePriceResponse(BaseModel):
    """Average cost held right before a transaction."""

    txn_id: str
    average_price: Decimal
