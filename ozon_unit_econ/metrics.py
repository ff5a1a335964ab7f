# metrics.py
# Производные метрики юнит-экономики.
# Одна функция считает и общий дашборд, и таблицу по артикулам:
# разница только в том, какой Ledger передан.
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .config import DEFAULT_SETTINGS, Settings
from .ledger import AnalysisResult, Ledger


@dataclass(frozen=True)
class UnitMetrics:
    """
    Метрики по одному Ledger. Затраты отрицательные, выручка положительная.
    payout_to_factory заполняется только для общего итога.
    """
    sku: Optional[str]
    name: str
    total_sales_revenue: float
    revenue_share: float
    cross_docking: float
    subscription_allocation: float
    ad_spend: float
    final_promotion_cost: float
    total_costs_pre_tax: float
    profit_pre_tax: float
    income_tax: float
    total_costs: float
    operating_expenses: float
    profit: float
    margin: float
    avg_price: float
    payout_to_factory: Optional[float] = None


@dataclass(frozen=True)
class PortfolioSummary:
    """Итоговая строка таблицы артикулов: налог считается один раз на сумму."""
    sku_count: int
    total_sales_revenue: float
    total_costs_pre_tax: float
    profit_pre_tax: float
    income_tax: float
    profit: float
    margin: float
    delivered_items: float


def total_sales_revenue(ledger: Ledger) -> float:
    """Выручка + баллы за скидки + программы партнёров."""
    return ledger.revenue + ledger.discount_points + ledger.partner_programs


def income_tax(profit_pre_tax: float, rate: float) -> float:
    """Налог только с положительной прибыли; убыток налог не возвращает."""
    return -(profit_pre_tax * rate) if profit_pre_tax > 0 else 0.0


def compute_metrics(
    ledger: Ledger,
    total: Ledger,
    *,
    distribute_ads_evenly: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> UnitMetrics:
    """Считает цепочку метрик для ledger.

    Порядок расчёта фиксирован, следующие шаги используют предыдущие.

    Args:
        ledger: общий итог или итог по артикулу.
        total: общий итог отчёта (для долей выручки и общей рекламы).
        distribute_ads_evenly: распределять рекламу по доле выручки;
            None: взять из settings.distribute_ads_evenly.
        settings: ставки и подписка; по умолчанию DEFAULT_SETTINGS.

    Returns:
        UnitMetrics
    """
    s = settings or DEFAULT_SETTINGS
    if distribute_ads_evenly is None:
        distribute_ads_evenly = s.distribute_ads_evenly

    tsr = total_sales_revenue(ledger)
    grand_tsr = total_sales_revenue(total)
    revenue_share = tsr / grand_tsr if grand_tsr != 0 else 0.0

    cross_docking = -(tsr * s.cross_docking_rate)
    subscription = -(s.subscription_fee * revenue_share)

    if distribute_ads_evenly:
        ad_spend = -(abs(total.promotion_cost) * revenue_share)
    else:
        ad_spend = ledger.promotion_cost
    final_promotion_cost = ad_spend + subscription

    costs_pre_tax = (
        ledger.marketplace_commission
        + ledger.logistics_cost
        + ledger.acquiring_cost
        + ledger.returns_cost
        + ledger.additional_services_cost
        + ledger.cogs
        + final_promotion_cost
        + cross_docking
    )
    profit_pre_tax = tsr + costs_pre_tax
    tax = income_tax(profit_pre_tax, s.income_tax_rate)
    profit = profit_pre_tax + tax

    margin = (profit / tsr) * 100 if tsr != 0 else 0.0
    avg_price = tsr / ledger.delivered_items if ledger.delivered_items > 0 else 0.0

    total_costs = costs_pre_tax + tax
    payout = tsr + (costs_pre_tax - ledger.cogs) if ledger.is_total else None

    return UnitMetrics(
        sku=ledger.sku,
        name=ledger.name,
        total_sales_revenue=tsr,
        revenue_share=revenue_share,
        cross_docking=cross_docking,
        subscription_allocation=subscription,
        ad_spend=ad_spend,
        final_promotion_cost=final_promotion_cost,
        total_costs_pre_tax=costs_pre_tax,
        profit_pre_tax=profit_pre_tax,
        income_tax=tax,
        total_costs=total_costs,
        operating_expenses=total_costs - ledger.cogs,
        profit=profit,
        margin=margin,
        avg_price=avg_price,
        payout_to_factory=payout,
    )


def compute_product_metrics(
    result: AnalysisResult,
    *,
    distribute_ads_evenly: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> List[UnitMetrics]:
    return [
        compute_metrics(p, result.total, distribute_ads_evenly=distribute_ads_evenly, settings=settings)
        for p in result.products
    ]


def summarize_portfolio(
    result: AnalysisResult,
    *,
    distribute_ads_evenly: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> PortfolioSummary:
    """Сводка по таблице артикулов.

    Затраты до налога суммируются по SKU, а налог берётся с общей прибыли,
    а не складывается из налогов отдельных артикулов.
    """
    s = settings or DEFAULT_SETTINGS
    per_sku = compute_product_metrics(result, distribute_ads_evenly=distribute_ads_evenly, settings=s)

    revenue = sum(m.total_sales_revenue for m in per_sku)
    costs = sum(m.total_costs_pre_tax for m in per_sku)
    profit_pre_tax = revenue + costs
    tax = income_tax(profit_pre_tax, s.income_tax_rate)
    profit = profit_pre_tax + tax

    return PortfolioSummary(
        sku_count=len(per_sku),
        total_sales_revenue=revenue,
        total_costs_pre_tax=costs,
        profit_pre_tax=profit_pre_tax,
        income_tax=tax,
        profit=profit,
        margin=(profit / revenue) * 100 if revenue > 0 else 0.0,
        delivered_items=sum(p.delivered_items for p in result.products),
    )
