# ozon_unit_econ/__init__.py
# Разбор отчёта Ozon «Юнит-экономика» и расчёт метрик по артикулам.

from .config import Settings, load_settings
from .errors import ConfigError, EmptyReportError, ReportError, ReportReadError
from .ledger import AnalysisResult, Ledger, aggregate
from .metrics import PortfolioSummary, UnitMetrics, compute_metrics, compute_product_metrics, summarize_portfolio
from .parsing import LineItem, decode_row, locate_header, parse_currency
from .report import load_report, parse_report, parse_report_text

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "ConfigError",
    "EmptyReportError",
    "LineItem",
    "Ledger",
    "PortfolioSummary",
    "ReportError",
    "ReportReadError",
    "Settings",
    "UnitMetrics",
    "aggregate",
    "compute_metrics",
    "compute_product_metrics",
    "decode_row",
    "load_report",
    "load_settings",
    "locate_header",
    "parse_currency",
    "parse_report",
    "parse_report_text",
    "summarize_portfolio",
]
