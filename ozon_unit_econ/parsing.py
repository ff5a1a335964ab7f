"""
parsing.py
==========

Разбор выгрузки Ozon «Юнит-экономика» (CSV) до уровня строк.

Структура файла
---------------
Перед таблицей идёт «шапка» произвольной длины: название отчёта, период,
магазин и т. п. Настоящая строка заголовков ищется по двум колонкам,
которые в преамбуле не встречаются: «Выручка» и «Баллы за скидки».
Всё, что начинается с найденной строки, читается как обычный CSV
(разделитель «;» или «,», поля в кавычках поддерживаются).

Числа в отчёте записаны в русской локали («-1 234,56 ₽»), поэтому каждая
ячейка проходит через :func:`parse_currency`. Битые значения и
отсутствующие колонки превращаются в 0 — одна плохая ячейка не должна
ронять весь отчёт.
"""

from __future__ import annotations

import io
import logging
import re
import warnings
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from pandas.errors import ParserError, ParserWarning

logger = logging.getLogger(__name__)

# ---- Поиск заголовка ----

REVENUE_MARKER = "Выручка"
DISCOUNT_POINTS_MARKER = "Баллы за скидки"
HEADER_SCAN_LIMIT = 20
FALLBACK_HEADER_INDEX = 3

# ---- Колонки отчёта ----

SKU_COLUMN = "Артикул"
NAME_COLUMN = "Название товара"
UNKNOWN_SKU = "Unknown"

REVENUE_COLUMN = "Выручка"
DISCOUNT_POINTS_COLUMN = "Баллы за скидки"
PARTNER_PROGRAMS_COLUMN = "Программы партнёров"
COMMISSION_COLUMN = "Вознаграждение Ozon"
ORDERED_COLUMN = "Заказано товаров, шт"
DELIVERED_COLUMN = "Доставлено товаров, шт"
RETURNED_COLUMN = "Возвращено товаров, шт"
ACQUIRING_COLUMN = "Эквайринг"
UNIT_COST_COLUMN = "Себестоимость"
REPORTED_PROFIT_COLUMN = "Прибыль за период"

# Группы затрат: поле LineItem -> колонки отчёта, которые в него складываются
LOGISTICS_COLUMNS = (
    "Обработка отправления",
    "Логистика",
    "Доставка до места выдачи",
    "Стоимость размещения",
)
RETURNS_COLUMNS = (
    "Обработка возврата",
    "Обратная логистика",
)
ADDITIONAL_SERVICES_COLUMNS = (
    "Утилизация",
    "Обработка ошибок продавца",
)
PROMOTION_COLUMNS = (
    "Оплата за клик",
    "Оплата за заказ",
    "Звёздные товары",
    "Платный бренд",
)

_NON_NUMERIC = re.compile(r"[^0-9,.\-]")
# Самый длинный числовой префикс, как у parseFloat: "1.2.3" -> 1.2
_FLOAT_PREFIX = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")
_LINE_BREAK = re.compile(r"\r?\n")
_PERIOD_RE = re.compile(r"(\d{2}\.\d{2}\.\d{4})\s*(?:-|–|—|по)\s*(\d{2}\.\d{2}\.\d{4})")


def parse_currency(value: Any) -> float:
    """Преобразует строку с суммой в русской локали в float.

    Удаляет все символы, кроме цифр, минуса, запятых и точек, заменяет
    первую запятую на точку и берёт числовой префикс. Пустые и
    нераспознанные значения дают 0.

    Запятые-разделители тысяч («1,234.56») не поддерживаются: после замены
    первой запятой получится 1.234.

    Args:
        value: значение ячейки (обычно строка, допускается None).

    Returns:
        float: число со знаком или 0.0.
    """
    if value is None:
        return 0.0
    text = str(value)
    if not text:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", text).replace(",", ".", 1)
    m = _FLOAT_PREFIX.match(cleaned)
    if not m:
        return 0.0
    return float(m.group(0))


def split_lines(text: str) -> List[str]:
    """Делит текст на строки по \\n и \\r\\n."""
    return _LINE_BREAK.split(text)


def locate_header(text: Union[str, Sequence[str]]) -> int:
    """Возвращает индекс (с нуля) строки заголовков таблицы.

    Смотрим не дальше первых HEADER_SCAN_LIMIT строк. Если заголовок не
    найден — берём строку FALLBACK_HEADER_INDEX (когда строк хотя бы 4),
    иначе 0. Ошибку не поднимаем: при неверном фолбэке все поля просто
    окажутся нулевыми.
    """
    lines = split_lines(text) if isinstance(text, str) else list(text)
    for i, line in enumerate(lines[:HEADER_SCAN_LIMIT]):
        if REVENUE_MARKER in line and DISCOUNT_POINTS_MARKER in line:
            return i
    fallback = FALLBACK_HEADER_INDEX if len(lines) > FALLBACK_HEADER_INDEX else 0
    logger.debug("Заголовок не найден в первых %d строках, берём строку %d", HEADER_SCAN_LIMIT, fallback)
    return fallback


def extract_period(lines: Iterable[str]) -> Optional[Tuple[date, date]]:
    """Ищет в преамбуле период отчёта вида «01.01.2026 - 31.01.2026»."""
    for line in lines:
        m = _PERIOD_RE.search(line)
        if not m:
            continue
        try:
            start = datetime.strptime(m.group(1), "%d.%m.%Y").date()
            end = datetime.strptime(m.group(2), "%d.%m.%Y").date()
        except ValueError:
            continue
        return start, end
    return None


def _detect_separator(header_line: str) -> str:
    # В заголовках Ozon бывают запятые («Заказано товаров, шт»), поэтому
    # сравниваем количество, а не просто наличие «;»
    return ";" if header_line.count(";") >= header_line.count(",") and ";" in header_line else ","


def _read_frame(table_text: str, sep: str) -> pd.DataFrame:
    # index_col=False: первая колонка не уходит в индекс, лишние поля строки отбрасываются
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=ParserWarning)
        return pd.read_csv(
            io.StringIO(table_text),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
        )


def _read_by_line(header_line: str, table_text: str, sep: str) -> pd.DataFrame:
    """Построчное чтение: строки, которые не разбираются, пропускаются."""
    frames = []
    for line in split_lines(table_text)[1:]:
        if not line.strip():
            continue
        try:
            frames.append(_read_frame(f"{header_line}\n{line}\n", sep))
        except ParserError as e:
            logger.warning("Пропущена строка CSV (%s): %.80s", e, line)
    if not frames:
        return _read_frame(f"{header_line}\n", sep)
    return pd.concat(frames, ignore_index=True)


def read_table(table_text: str) -> List[Dict[str, str]]:
    """Читает CSV (первая строка — заголовки) в список словарей.

    Все значения остаются строками, пустые ячейки и недостающие поля
    становятся "". Лишние поля в строке обрезаются по ширине заголовка.
    Если файл целиком не разбирается (например, незакрытая кавычка),
    он читается построчно без испорченных строк.
    """
    table_text = table_text.lstrip("\r\n")
    if not table_text.strip():
        return []

    header_line = split_lines(table_text)[0]
    sep = _detect_separator(header_line)
    logger.debug("Разделитель CSV: %r", sep)

    try:
        df = _read_frame(table_text, sep)
    except ParserError as e:
        logger.warning("CSV не разобран целиком (%s), читаем построчно", e)
        try:
            df = _read_by_line(header_line, table_text, sep)
        except ParserError as header_error:
            logger.warning("Строка заголовков не разбирается: %s", header_error)
            return []
    df = df.fillna("")
    return df.to_dict(orient="records")


@dataclass(frozen=True)
class LineItem:
    """Одна строка отчёта после разбора. Затраты — отрицательные числа."""
    sku: str
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
    unit_cost: float = 0.0
    cogs: float = 0.0
    reported_profit: float = 0.0


def _text(row: Mapping[str, Any], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value)


def _value(row: Mapping[str, Any], column: str) -> float:
    return parse_currency(_text(row, column))


def _sum(row: Mapping[str, Any], columns: Iterable[str]) -> float:
    total = 0.0
    for c in columns:
        total += _value(row, c)
    return total


def compute_cogs(unit_cost: float, delivered: float, returned: float, *, cogs_mode: str = "NET") -> float:
    """Себестоимость проданных товаров (со знаком минус).

    NET: -(unit_cost * (delivered - returned)), GROSS: -(unit_cost * delivered).
    """
    qty = delivered - returned if cogs_mode.upper() == "NET" else delivered
    return -(unit_cost * qty)


def decode_row(row: Mapping[str, Any], *, cogs_mode: str = "NET") -> LineItem:
    """Превращает строку отчёта (колонка -> строка) в LineItem.

    Отсутствующие колонки читаются как пустая строка, то есть 0.
    """
    delivered = _value(row, DELIVERED_COLUMN)
    returned = _value(row, RETURNED_COLUMN)
    unit_cost = _value(row, UNIT_COST_COLUMN)
    sku = _text(row, SKU_COLUMN).strip() or UNKNOWN_SKU

    return LineItem(
        sku=sku,
        name=_text(row, NAME_COLUMN).strip(),
        revenue=_value(row, REVENUE_COLUMN),
        discount_points=_value(row, DISCOUNT_POINTS_COLUMN),
        partner_programs=_value(row, PARTNER_PROGRAMS_COLUMN),
        marketplace_commission=_value(row, COMMISSION_COLUMN),
        ordered_items=_value(row, ORDERED_COLUMN),
        delivered_items=delivered,
        returned_items=returned,
        logistics_cost=_sum(row, LOGISTICS_COLUMNS),
        acquiring_cost=_value(row, ACQUIRING_COLUMN),
        returns_cost=_sum(row, RETURNS_COLUMNS),
        additional_services_cost=_sum(row, ADDITIONAL_SERVICES_COLUMNS),
        promotion_cost=_sum(row, PROMOTION_COLUMNS),
        unit_cost=unit_cost,
        cogs=compute_cogs(unit_cost, delivered, returned, cogs_mode=cogs_mode),
        reported_profit=_value(row, REPORTED_PROFIT_COLUMN),
    )
