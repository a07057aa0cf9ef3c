"""Stock price providers."""
from savings_tracker.providers.stocks.alphavantage import AlphaVantageProvider
from savings_tracker.providers.stocks.yfinance import YFinanceProvider

__all__ = ["AlphaVantageProvider", "YFinanceProvider"]
