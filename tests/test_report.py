"""
tests/test_report.py

Разбор отчёта целиком: источники (путь, bytes, файловые объекты),
ошибки чтения, поиск заголовка и период.
"""

from __future__ import annotations

import asyncio
import io
from datetime import date

import pytest

from ozon_unit_econ.config import Settings
from ozon_unit_econ.errors import EmptyReportError, ReportError, ReportReadError
from ozon_unit_econ.parsing import UNKNOWN_SKU
from ozon_unit_econ.report import load_report, parse_report, parse_report_text, read_report_text

from .conftest import build_report


class AsyncUpload:
    """Файл из веб-формы: read() — корутина."""

    def __init__(self, data: bytes, name: str = "upload.csv") -> None:
        self._data = data
        self.name = name

    async def read(self) -> bytes:
        return self._data


class BrokenUpload:
    def read(self) -> bytes:
        raise OSError("соединение разорвано")


# ---------------------------------------------------------------------------
# Источники
# ---------------------------------------------------------------------------


class TestSources:
    def test_path(self, tmp_path, scenario_text) -> None:
        path = tmp_path / "report.csv"
        path.write_bytes(scenario_text.encode("utf-8"))
        result = asyncio.run(parse_report(path))
        assert result.skus == ("ART-1",)
        assert result.total.revenue == 1000

    def test_str_path(self, tmp_path, scenario_text) -> None:
        path = tmp_path / "report.csv"
        path.write_bytes(scenario_text.encode("utf-8"))
        assert load_report(str(path)).skus == ("ART-1",)

    def test_bytes_with_bom(self, scenario_text) -> None:
        data = scenario_text.encode("utf-8-sig")
        result = asyncio.run(parse_report(data))
        assert result.header_index == 5
        assert result.total.discount_points == 50

    def test_sync_file_object(self, scenario_text) -> None:
        result = asyncio.run(parse_report(io.BytesIO(scenario_text.encode("utf-8"))))
        assert result.total.acquiring_cost == -20

    def test_async_file_object(self, scenario_text) -> None:
        result = asyncio.run(parse_report(AsyncUpload(scenario_text.encode("utf-8"))))
        assert result.total.marketplace_commission == -150

    def test_text_file_object(self, scenario_text) -> None:
        result = asyncio.run(parse_report(io.StringIO(scenario_text)))
        assert result.skus == ("ART-1",)

    def test_unsupported_source(self) -> None:
        with pytest.raises(TypeError):
            asyncio.run(parse_report(42))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Ошибки
# ---------------------------------------------------------------------------


class TestErrors:
    def test_empty_file(self) -> None:
        with pytest.raises(EmptyReportError):
            asyncio.run(parse_report(b""))

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ReportReadError):
            load_report(tmp_path / "нет.csv")

    def test_read_failure_is_chained(self) -> None:
        with pytest.raises(ReportReadError) as exc_info:
            asyncio.run(read_report_text(BrokenUpload()))
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_closed_file_object(self, scenario_text) -> None:
        upload = io.BytesIO(scenario_text.encode("utf-8"))
        upload.close()
        with pytest.raises(ReportReadError) as exc_info:
            asyncio.run(parse_report(upload))
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_not_utf8(self) -> None:
        with pytest.raises(ReportReadError):
            asyncio.run(parse_report("Выручка;Баллы за скидки\n".encode("cp1251")))

    def test_errors_share_base_class(self) -> None:
        assert issubclass(EmptyReportError, ReportError)
        assert issubclass(ReportReadError, ReportError)


# ---------------------------------------------------------------------------
# Разбор текста
# ---------------------------------------------------------------------------


class TestParseReportText:
    def test_period_from_preamble(self, scenario_text) -> None:
        result = parse_report_text(scenario_text)
        assert result.period == (date(2026, 1, 1), date(2026, 1, 31))

    def test_reparse_is_identical(self, scenario_text) -> None:
        assert parse_report_text(scenario_text) == parse_report_text(scenario_text)

    def test_crlf_and_comma_separator(self, multi_rows) -> None:
        text = build_report(multi_rows, sep=",", newline="\r\n")
        result = parse_report_text(text)
        assert result.header_index == 5
        assert result.skus == ("A", "B", UNKNOWN_SKU)
        assert result.product("A").revenue == pytest.approx(3000.5)

    def test_short_file_without_header_degrades_to_zero(self) -> None:
        result = parse_report_text("a,b\n1,2")
        assert result.header_index == 0
        assert result.skus == (UNKNOWN_SKU,)
        assert all(v == 0 for v in result.total.amounts().values())

    def test_unterminated_quote_does_not_abort_report(self, scenario_row) -> None:
        text = build_report([scenario_row]) + 'ART-2;"Кружка;100\n'
        result = parse_report_text(text)
        assert result.skus[0] == "ART-1"
        assert result.product("ART-1").revenue == 1000
        assert result.total.revenue == 1000

    def test_header_only_file(self) -> None:
        result = parse_report_text(build_report([]))
        assert result.products == ()
        assert result.total.revenue == 0

    def test_settings_cogs_mode(self, multi_rows) -> None:
        text = build_report(multi_rows)
        net = parse_report_text(text)
        gross = parse_report_text(text, settings=Settings(cogs_mode="gross"))
        assert net.product("A").cogs == pytest.approx(-1200)
        assert gross.product("A").cogs == pytest.approx(-1500)
