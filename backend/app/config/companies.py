from __future__ import annotations

from app.schemas.quote import SymbolDescriptor

# Changing the tracked tickers requires a redeploy.
COMPANIES: tuple[SymbolDescriptor, ...] = (
    SymbolDescriptor(ticker="AAPL", display_name="Apple Inc."),
    SymbolDescriptor(ticker="MSFT", display_name="Microsoft Corporation"),
    SymbolDescriptor(ticker="GOOGL", display_name="Alphabet Inc. (Google)"),
    SymbolDescriptor(ticker="META", display_name="Meta Platforms Inc."),
    SymbolDescriptor(ticker="AMZN", display_name="Amazon.com Inc."),
)
