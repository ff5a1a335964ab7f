"""
tests/conftest.py

Общие фикстуры: синтетические CSV-выгрузки Ozon «Юнит-экономика»
с преамбулой перед настоящей строкой заголовков.
"""

from __future__ import annotations

import csv
import io
from typing import Dict, List, Optional, Sequence

import pytest

HEADER: List[str] = [
    "Артикул",
    "Название товара",
    "Выручка",
    "Баллы за скидки",
    "Программы партнёров",
    "Вознаграждение Ozon",
    "Заказано товаров, шт",
    "Доставлено товаров, шт",
    "Возвращено товаров, шт",
    "Обработка отправления",
    "Логистика",
    "Доставка до места выдачи",
    "Стоимость размещения",
    "Эквайринг",
    "Обработка возврата",
    "Обратная логистика",
    "Утилизация",
    "Обработка ошибок продавца",
    "Оплата за клик",
    "Оплата за заказ",
    "Звёздные товары",
    "Платный бренд",
    "Себестоимость",
    "Прибыль за период",
]

# 5 строк преамбулы: заголовок таблицы оказывается на строке с индексом 5
PREAMBLE: List[str] = [
    "Отчёт «Юнит-экономика»",
    "Период: 01.01.2026 - 31.01.2026",
    "Магазин: ООО Тест",
    "Валюта: RUB",
    "",
]


def build_report(
    rows: Sequence[Dict[str, str]],
    *,
    preamble: Optional[Sequence[str]] = None,
    header: Sequence[str] = HEADER,
    sep: str = ";",
    newline: str = "\n",
) -> str:
    """Собирает текст CSV: преамбула + заголовок + строки (пропуски -> пустые ячейки)."""
    buf = io.StringIO()
    for line in PREAMBLE if preamble is None else preamble:
        buf.write(line + newline)
    writer = csv.writer(buf, delimiter=sep, lineterminator=newline)
    writer.writerow(header)
    for r in rows:
        writer.writerow([r.get(c, "") for c in header])
    return buf.getvalue()


@pytest.fixture()
def scenario_row() -> Dict[str, str]:
    """Одна строка: выручка 1000, баллы 50, комиссия -150, эквайринг -20, себестоимость 40 × 5 шт."""
    return {
        "Артикул": "ART-1",
        "Название товара": "Кружка керамическая",
        "Выручка": "1 000,00",
        "Баллы за скидки": "50",
        "Программы партнёров": "0",
        "Вознаграждение Ozon": "-150,00",
        "Заказано товаров, шт": "6",
        "Доставлено товаров, шт": "5",
        "Возвращено товаров, шт": "0",
        "Обработка отправления": "0",
        "Логистика": "0",
        "Доставка до места выдачи": "0",
        "Стоимость размещения": "0",
        "Эквайринг": "-20",
        "Обработка возврата": "0",
        "Обратная логистика": "0",
        "Утилизация": "0",
        "Обработка ошибок продавца": "0",
        "Оплата за клик": "0",
        "Оплата за заказ": "0",
        "Звёздные товары": "0",
        "Платный бренд": "0",
        "Себестоимость": "40",
        "Прибыль за период": "680",
    }


@pytest.fixture()
def scenario_text(scenario_row) -> str:
    return build_report([scenario_row])


@pytest.fixture()
def multi_rows() -> List[Dict[str, str]]:
    """Три строки по двум артикулам плюс строка без артикула."""
    return [
        {
            "Артикул": "A",
            "Название товара": "Товар A",
            "Выручка": "2 000,50",
            "Баллы за скидки": "100",
            "Программы партнёров": "25,5",
            "Вознаграждение Ozon": "-300",
            "Заказано товаров, шт": "12",
            "Доставлено товаров, шт": "10",
            "Возвращено товаров, шт": "2",
            "Обработка отправления": "-10",
            "Логистика": "-120,25",
            "Доставка до места выдачи": "-15",
            "Стоимость размещения": "-5",
            "Эквайринг": "-30",
            "Обработка возврата": "-8",
            "Обратная логистика": "-12",
            "Утилизация": "-1",
            "Обработка ошибок продавца": "-2",
            "Оплата за клик": "-40",
            "Оплата за заказ": "-20",
            "Звёздные товары": "-5",
            "Платный бренд": "-3",
            "Себестоимость": "100",
            "Прибыль за период": "500",
        },
        {
            "Артикул": "B",
            "Название товара": "Товар B",
            "Выручка": "500",
            "Баллы за скидки": "0",
            "Вознаграждение Ozon": "-75",
            "Доставлено товаров, шт": "4",
            "Логистика": "-40",
            "Эквайринг": "-7,5",
            "Оплата за клик": "-60",
            "Себестоимость": "50",
        },
        {
            "Артикул": "A",
            "Название товара": "Товар A (новое название)",
            "Выручка": "1000",
            "Вознаграждение Ozon": "-150",
            "Доставлено товаров, шт": "5",
            "Возвращено товаров, шт": "1",
            "Себестоимость": "100",
        },
        {
            "Название товара": "Без артикула",
            "Выручка": "300",
            "Доставлено товаров, шт": "3",
        },
    ]


@pytest.fixture()
def clean_env(monkeypatch):
    """Убирает переменные окружения, влияющие на настройки расчёта."""
    for key in (
        "SUBSCRIPTION_FEE",
        "CROSS_DOCKING_RATE",
        "INCOME_TAX_RATE",
        "COGS_MODE",
        "DISTRIBUTE_ADS",
        "OZON_UNIT_ECON_CONFIG",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch
