# ledger.py
# Свёртка строк отчёта в общий итог и итоги по артикулам.
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd

from .parsing import LineItem, decode_row

logger = logging.getLogger(__name__)

# Суммируемые поля (unit_cost не суммируется — он нужен только для cogs)
LEDGER_FIELDS: Tuple[str, ...] = (
    "revenue",
    "discount_points",
    "partner_programs",
    "marketplace_commission",
    "ordered_items",
    "delivered_items",
    "returned_items",
    "logistics_cost",
    "acquiring_cost",
    "returns_cost",
    "additional_services_cost",
    "promotion_cost",
    "cogs",
    "reported_profit",
)


@dataclass(frozen=True)
class Ledger:
    """
    Накопитель сумм по набору строк.
    sku=None — общий итог по отчёту; для артикула хранится ещё и название
    (первое встреченное, справочное).
    """
    sku: Optional[str] = None
    name: str = ""
    revenue: float = 0.0
    discount_points: float = 0.0
    partner_programs: float = 0.0
    marketplace_commission: float = 0.0
    ordered_items: float = 0.0
    delivered_items: float = 0.0
    returned_items: float = 0.0
    logistics_cost: float = 0.0
    acquiring_cost: float = 0.0
    returns_cost: float = 0.0
    additional_services_cost: float = 0.0
    promotion_cost: float = 0.0
    cogs: float = 0.0
    reported_profit: float = 0.0

    @property
    def is_total(self) -> bool:
        return self.sku is None

    def amounts(self) -> Dict[str, float]:
        """Только числовые поля, в порядке LEDGER_FIELDS."""
        return {f: getattr(self, f) for f in LEDGER_FIELDS}


@dataclass(frozen=True)
class AnalysisResult:
    """
    Результат разбора одного файла.
    Не изменяется после создания; повторный разбор того же текста даёт те же суммы.
    """
    total: Ledger
    products: Tuple[Ledger, ...] = ()
    period: Optional[Tuple[date, date]] = None
    header_index: int = 0

    @property
    def skus(self) -> Tuple[str, ...]:
        return tuple(p.sku for p in self.products)

    def product(self, sku: str) -> Ledger:
        for p in self.products:
            if p.sku == sku:
                return p
        raise KeyError(f"Артикул {sku!r} не найден в отчёте")


def _items_frame(items: Iterable[LineItem]) -> pd.DataFrame:
    cols = ["sku", "name", *LEDGER_FIELDS]
    rows = [asdict(it) for it in items]
    if not rows:
        return pd.DataFrame(columns=cols)
    return pd.DataFrame(rows)[cols]


def aggregate(
    rows: Iterable[Mapping[str, Any]],
    *,
    cogs_mode: str = "NET",
    period: Optional[Tuple[date, date]] = None,
    header_index: int = 0,
) -> AnalysisResult:
    """Разбирает все строки и складывает их в общий итог и итоги по SKU.

    Args:
        rows: строки таблицы (колонка -> сырое значение).
        cogs_mode: "NET" или "GROSS", см. parsing.compute_cogs.
        period: период отчёта из преамбулы (если найден).
        header_index: индекс строки заголовков в исходном файле.

    Returns:
        AnalysisResult: артикулы идут в порядке первого появления.
    """
    df = _items_frame(decode_row(r, cogs_mode=cogs_mode) for r in rows)
    if df.empty:
        return AnalysisResult(total=Ledger(), products=(), period=period, header_index=header_index)

    for c in LEDGER_FIELDS:
        df[c] = df[c].astype(float)

    by_sku = df.groupby("sku", sort=False).agg(
        name=("name", "first"),
        **{c: (c, "sum") for c in LEDGER_FIELDS},
    )
    products = tuple(
        Ledger(sku=str(sku), name=str(r["name"]), **{c: float(r[c]) for c in LEDGER_FIELDS})
        for sku, r in by_sku.iterrows()
    )
    # Общий итог: сумма итогов по SKU в том же порядке
    total = Ledger(**{c: float(sum(getattr(p, c) for p in products)) for c in LEDGER_FIELDS})

    logger.info("Разобрано строк: %d, артикулов: %d", len(df), len(products))
    return AnalysisResult(total=total, products=products, period=period, header_index=header_index)


