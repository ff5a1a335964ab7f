"""
report.py — точка входа: файл отчёта Ozon -> AnalysisResult.

Чтение байтов — единственная асинхронная часть: путь и синхронный read()
уходят в отдельный поток, асинхронный read() (например, загруженный через
веб-форму файл) просто ожидается. Разбор и свёртка идут синхронно, в один
проход, без ввода-вывода.

Ошибкой заканчиваются только два случая: файл не прочитался
(ReportReadError) и файл пустой (EmptyReportError). Всё остальное
деградирует в нулевые значения.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from pathlib import Path
from typing import IO, Optional, Union

from .config import DEFAULT_SETTINGS, Settings
from .errors import EmptyReportError, ReportReadError
from .ledger import AnalysisResult, aggregate
from .parsing import extract_period, locate_header, read_table, split_lines

logger = logging.getLogger(__name__)

ReportSource = Union[str, "os.PathLike[str]", bytes, bytearray, IO[bytes]]

ENCODING = "utf-8-sig"


async def _read_bytes(source: ReportSource) -> Union[bytes, str]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        return await asyncio.to_thread(Path(source).expanduser().read_bytes)

    reader = getattr(source, "read", None)
    if reader is None:
        raise TypeError(f"Ожидался путь, bytes или файловый объект, получено {type(source).__name__}")
    if inspect.iscoroutinefunction(reader):
        return await reader()
    data = await asyncio.to_thread(reader)
    if inspect.isawaitable(data):
        data = await data
    return data


async def read_report_text(source: ReportSource) -> str:
    """Читает источник целиком и декодирует в текст (UTF-8, BOM допускается)."""
    try:
        data = await _read_bytes(source)
    except (OSError, ValueError) as e:
        # ValueError: например, read() у уже закрытого файла
        raise ReportReadError(f"Не удалось прочитать файл: {e}") from e

    if isinstance(data, str):
        text = data
    else:
        try:
            text = bytes(data).decode(ENCODING)
        except UnicodeDecodeError as e:
            raise ReportReadError(f"Файл не в кодировке UTF-8: {e}") from e

    if not text:
        raise EmptyReportError("Пустой файл")
    return text


def parse_report_text(text: str, *, settings: Optional[Settings] = None) -> AnalysisResult:
    """Синхронный разбор уже прочитанного текста отчёта."""
    s = settings or DEFAULT_SETTINGS
    lines = split_lines(text)
    header_index = locate_header(lines)
    rows = read_table("\n".join(lines[header_index:]))
    return aggregate(
        rows,
        cogs_mode=s.cogs_mode,
        period=extract_period(lines[:header_index]),
        header_index=header_index,
    )


async def parse_report(source: ReportSource, *, settings: Optional[Settings] = None) -> AnalysisResult:
    """
    Читает отчёт и возвращает AnalysisResult.

    Параметры:
    - source: путь к файлу, bytes или объект с read() (синхронным или async)
    - settings: режим COGS и ставки; по умолчанию DEFAULT_SETTINGS

    Исключения: ReportReadError, EmptyReportError.
    """
    text = await read_report_text(source)
    name = getattr(source, "name", None) or (str(source) if isinstance(source, (str, os.PathLike)) else "<bytes>")
    logger.info("Отчёт прочитан: %s (%d символов)", name, len(text))
    return parse_report_text(text, settings=settings)


def load_report(source: ReportSource, *, settings: Optional[Settings] = None) -> AnalysisResult:
    """Синхронная обёртка над parse_report (для CLI и скриптов)."""
    return asyncio.run(parse_report(source, settings=settings))
