# export.py
# Таблицы pandas по результату разбора и сохранение отчёта в Excel/CSV.
from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .config import DEFAULT_SETTINGS, Settings
from .ledger import AnalysisResult
from .metrics import compute_metrics, compute_product_metrics, summarize_portfolio, total_sales_revenue

# Колонки затрат, для которых считаем долю от выручки SKU, %
COST_SHARE_COLUMNS = [
    "cogs",
    "marketplace_commission",
    "logistics_cost",
    "acquiring_cost",
    "returns_cost",
    "additional_services_cost",
    "cross_docking",
    "final_promotion_cost",
]

RUS_COLUMNS = {
    "sku": "Артикул",
    "name": "Название товара",
    "revenue": "Выручка, ₽",
    "discount_points": "Баллы за скидки, ₽",
    "partner_programs": "Программы партнёров, ₽",
    "marketplace_commission": "Вознаграждение Ozon, ₽",
    "ordered_items": "Заказано, шт.",
    "delivered_items": "Доставлено, шт.",
    "returned_items": "Возвращено, шт.",
    "logistics_cost": "Логистика, ₽",
    "acquiring_cost": "Эквайринг, ₽",
    "returns_cost": "Возвраты, ₽",
    "additional_services_cost": "Доп. услуги, ₽",
    "promotion_cost": "Продвижение (прямое), ₽",
    "cogs": "Себестоимость проданных, ₽",
    "reported_profit": "Прибыль за период (Ozon), ₽",
    "total_sales_revenue": "Выручка всего, ₽",
    "revenue_share": "Доля выручки",
    "cross_docking": "Кросс-докинг, ₽",
    "subscription_allocation": "Подписка, ₽",
    "ad_spend": "Реклама, ₽",
    "final_promotion_cost": "Продвижение итого, ₽",
    "total_costs_pre_tax": "Затраты до налога, ₽",
    "profit_pre_tax": "Прибыль до налога, ₽",
    "income_tax": "Налог на прибыль, ₽",
    "total_costs": "Затраты с налогом, ₽",
    "operating_expenses": "Затраты без себестоимости, ₽",
    "profit": "Прибыль, ₽",
    "margin": "Маржа, %",
    "avg_price": "Средняя цена, ₽",
    "payout_to_factory": "Перевод на фабрику, ₽",
    "delivered_share_pct": "Доля доставленных, %",
    "marketplace_profit": "Прибыль по колонкам отчёта, ₽",
    "profit_diff": "Расхождение, ₽",
}


def metrics_frame(
    result: AnalysisResult,
    *,
    distribute_ads_evenly: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> pd.DataFrame:
    """
    Таблица по артикулам: суммы из отчёта + метрики + доли затрат в выручке.
    Порядок строк — как в отчёте.
    """
    metrics = compute_product_metrics(result, distribute_ads_evenly=distribute_ads_evenly, settings=settings)
    rows = []
    for ledger, m in zip(result.products, metrics):
        row = {"sku": ledger.sku, "name": ledger.name, **ledger.amounts()}
        row.update({k: v for k, v in asdict(m).items() if k not in ("sku", "name", "payout_to_factory")})
        rows.append(row)
    df = pd.DataFrame(rows)
    if df.empty:
        return df

    tsr = pd.to_numeric(df["total_sales_revenue"], errors="coerce").replace(0, np.nan)
    for c in COST_SHARE_COLUMNS:
        df[f"{c}_pct"] = (df[c].abs() / tsr * 100.0).fillna(0.0)

    delivered_total = float(df["delivered_items"].sum())
    df["delivered_share_pct"] = (df["delivered_items"] / delivered_total * 100.0) if delivered_total > 0 else 0.0
    return df


def summary_frame(
    result: AnalysisResult,
    *,
    distribute_ads_evenly: Optional[bool] = None,
    settings: Optional[Settings] = None,
) -> pd.DataFrame:
    """Сводка «Показатель / Значение» по общему итогу и итоговой строке артикулов."""
    s = settings or DEFAULT_SETTINGS
    m = compute_metrics(result.total, result.total, distribute_ads_evenly=distribute_ads_evenly, settings=s)
    p = summarize_portfolio(result, distribute_ads_evenly=distribute_ads_evenly, settings=s)
    t = result.total

    items = [
        ("Период", f"{result.period[0]:%d.%m.%Y} - {result.period[1]:%d.%m.%Y}" if result.period else ""),
        ("Выручка всего, ₽", m.total_sales_revenue),
        ("Выручка, ₽", t.revenue),
        ("Баллы за скидки, ₽", t.discount_points),
        ("Программы партнёров, ₽", t.partner_programs),
        ("Себестоимость проданных, ₽", t.cogs),
        ("Вознаграждение Ozon, ₽", t.marketplace_commission),
        ("Логистика, ₽", t.logistics_cost),
        ("Эквайринг, ₽", t.acquiring_cost),
        ("Возвраты, ₽", t.returns_cost),
        ("Доп. услуги, ₽", t.additional_services_cost),
        ("Кросс-докинг, ₽", m.cross_docking),
        ("Продвижение итого (с подпиской), ₽", m.final_promotion_cost),
        ("Налог на прибыль, ₽", m.income_tax),
        ("Затраты с налогом, ₽", m.total_costs),
        ("Затраты без себестоимости, ₽", m.operating_expenses),
        ("Прибыль, ₽", m.profit),
        ("Маржа, %", m.margin),
        ("Перевод на фабрику, ₽", m.payout_to_factory),
        ("Заказано, шт.", t.ordered_items),
        ("Доставлено, шт.", t.delivered_items),
        ("Возвращено, шт.", t.returned_items),
        ("Артикулов", p.sku_count),
        ("Прибыль по артикулам, ₽", p.profit),
        ("Маржа по артикулам, %", p.margin),
    ]
    return pd.DataFrame(items, columns=["Показатель", "Значение"])


def reconcile_frame(result: AnalysisResult) -> pd.DataFrame:
    """
    Сверка с колонкой «Прибыль за период» из самого отчёта.
    marketplace_profit — прибыль только по колонкам отчёта: без кросс-докинга,
    подписки и налога, которые мы моделируем сами.
    """
    rows = []
    for p in result.products:
        marketplace_profit = (
            total_sales_revenue(p)
            + p.marketplace_commission
            + p.logistics_cost
            + p.acquiring_cost
            + p.returns_cost
            + p.additional_services_cost
            + p.promotion_cost
            + p.cogs
        )
        rows.append({
            "sku": p.sku,
            "name": p.name,
            "reported_profit": p.reported_profit,
            "marketplace_profit": marketplace_profit,
            "profit_diff": marketplace_profit - p.reported_profit,
        })
    return pd.DataFrame(rows, columns=["sku", "name", "reported_profit", "marketplace_profit", "profit_diff"])


def _rus(df: pd.DataFrame) -> pd.DataFrame:
    mapping = dict(RUS_COLUMNS)
    for c in COST_SHARE_COLUMNS:
        mapping[f"{c}_pct"] = f"{RUS_COLUMNS[c].replace(', ₽', '')}, % выручки"
    return df.rename(columns=mapping)


def save_report(
    result: AnalysisResult,
    output_path: str | Path,
    *,
    distribute_ads_evenly: Optional[bool] = None,
    settings: Optional[Settings] = None,
    top: int = 5,
) -> Path:
    """Сохраняет отчёт.

    .xlsx — несколько листов (сводка, артикулы, TOP прибыльные/убыточные, сверка);
    .csv — только таблица артикулов (utf-8-sig, чтобы Excel открыл кириллицу).
    """
    output_path = Path(output_path)
    suffix = output_path.suffix.lower()
    if suffix not in (".xlsx", ".csv"):
        raise ValueError(f"Unsupported file format: {output_path}")

    articles = metrics_frame(result, distribute_ads_evenly=distribute_ads_evenly, settings=settings)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".csv":
        _rus(articles).to_csv(output_path, index=False, encoding="utf-8-sig")
        return output_path

    summary = summary_frame(result, distribute_ads_evenly=distribute_ads_evenly, settings=settings)
    if articles.empty:
        top_df = flop_df = articles
    else:
        top_df = articles.sort_values("profit", ascending=False).head(top)
        flop_df = articles.sort_values("profit", ascending=True).head(top)

    with pd.ExcelWriter(output_path) as writer:
        summary.to_excel(writer, sheet_name="Сводка", index=False)
        _rus(articles).to_excel(writer, sheet_name="Артикулы", index=False)
        _rus(top_df).to_excel(writer, sheet_name=f"TOP{top} прибыльные", index=False)
        _rus(flop_df).to_excel(writer, sheet_name=f"TOP{top} убыточные", index=False)
        _rus(reconcile_frame(result)).to_excel(writer, sheet_name="Сверка", index=False)
    return output_path
