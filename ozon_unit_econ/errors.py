# errors.py
# Ошибки, которые доходят до вызывающего кода.
# Битые числа, пропавшие колонки и ненайденный заголовок сюда не попадают:
# они молча превращаются в нули.
from __future__ import annotations


class ReportError(Exception):
    """Базовая ошибка обработки отчёта."""


class EmptyReportError(ReportError):
    """Файл прочитан, но текста в нём нет."""


class ReportReadError(ReportError):
    """Не удалось прочитать или декодировать файл."""


class ConfigError(ReportError, ValueError):
    """Некорректные настройки (файл, переменные окружения, cogs_mode)."""
