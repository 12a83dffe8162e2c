from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

OverallStatus = Literal["all-succeeded", "partial-success", "all-failed"]


class SymbolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    display_name: str


class PriceQuote(BaseModel):
    """Result of a single upstream lookup; failures are carried as data."""

    ticker: str
    status: Literal["ok", "error"]
    price: Optional[float] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, ticker: str, price: float) -> PriceQuote:
        return cls(ticker=ticker, status="ok", price=price)

    @classmethod
    def failure(cls, ticker: str, message: str) -> PriceQuote:
        return cls(ticker=ticker, status="error", message=message)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class SymbolOutcome(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticker: str
    display_name: str = Field(alias="companyName")
    price: Optional[float] = None
    error: Optional[str] = None
    timestamp: str

    @model_validator(mode="after")
    def _price_xor_error(self) -> SymbolOutcome:
        if (self.price is None) == (self.error is None):
            raise ValueError("exactly one of price or error must be set")
        return self


class QuoteSummary(BaseModel):
    total: int
    successful: int
    failed: int


class AggregateResult(BaseModel):
    overall_status: OverallStatus
    timestamp: str
    outcomes: list[SymbolOutcome] = Field(default_factory=list)
    summary: QuoteSummary


class StocksResponse(BaseModel):
    success: bool = True
    status: OverallStatus
    timestamp: str
    data: list[SymbolOutcome] = Field(default_factory=list)
    summary: QuoteSummary


class FailureDetail(BaseModel):
    ticker: str
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[str | list[FailureDetail]] = None
