"""Services layered over the providers: prices, conversion, events, charts, analytics."""
from savings_tracker.services.analytics_service import AnalyticsService
from savings_tracker.services.chart_service import ChartService
from savings_tracker.services.currency_service import CurrencyService
from savings_tracker.services.portfolio_service import PortfolioService
from savings_tracker.services.price_service import PriceService

__all__ = [
    "AnalyticsService",
    "ChartService",
    "CurrencyService",
    "PortfolioService",
    "PriceService",
]
