#!/usr/bin/env python3
"""
cli.py — консольный разбор отчёта Ozon «Юнит-экономика».

Использование:
  ozon-unit-econ "data/Юнит-экономика_01.01.2026-31.01.2026.csv" \
    --output output/unit_econ.xlsx --distribute-ads --top 10

Примечания:
- Ставки и подписку можно задать в YAML (--config) или переменными окружения
  SUBSCRIPTION_FEE / CROSS_DOCKING_RATE / INCOME_TAX_RATE / COGS_MODE / DISTRIBUTE_ADS.
- Логи дублируются в logs/unit_econ.log. При ошибке возвращается ненулевой код.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import COGS_MODES, load_settings
from .errors import ReportError
from .export import metrics_frame, save_report
from .metrics import compute_metrics
from .report import load_report

logger = logging.getLogger("ozon_unit_econ")

LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_dir: Optional[Path] = Path("logs"), level: int = logging.INFO) -> None:
    """Лог в stdout и (если задана папка) в log_dir/unit_econ.log."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "unit_econ.log", encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, handlers=handlers, force=True)


def make_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Юнит-экономика по отчёту Ozon: итоги, метрики по артикулам, выгрузка в Excel/CSV",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("report", help="CSV «Юнит-экономика» из личного кабинета Ozon")
    p.add_argument("--output", "--выход", dest="output", default=None, help="Путь к .xlsx или .csv (опционально)")
    p.add_argument("--config", dest="config", default=None, help="YAML с настройками (unit_econ_config.yaml)")
    p.add_argument("--distribute-ads", dest="distribute_ads", action="store_true", default=None,
                   help="Распределять рекламу по доле выручки, а не по прямым расходам артикула")
    p.add_argument("--cogs-mode", dest="cogs_mode", choices=list(COGS_MODES), default=None,
                   help="NET — себестоимость по (доставлено − возвращено), GROSS — по доставленным")
    p.add_argument("--top", dest="top", type=int, default=5, help="Сколько артикулов показать в топе")
    p.add_argument("--log-dir", dest="log_dir", default="logs", help="Папка для логов ('' — не писать в файл)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = make_parser().parse_args(argv)
    setup_logging(Path(args.log_dir) if args.log_dir else None)

    report_path = Path(args.report).expanduser()
    if not report_path.exists():
        logger.error("Не найден файл отчёта: %s", report_path)
        return 2

    try:
        settings = load_settings(args.config)
        if args.cogs_mode:
            settings = replace(settings, cogs_mode=args.cogs_mode)
        if args.distribute_ads:
            settings = replace(settings, distribute_ads_evenly=True)

        result = load_report(report_path, settings=settings)

        m = compute_metrics(result.total, result.total, settings=settings)
        if result.period:
            logger.info("Период: %s — %s", f"{result.period[0]:%d.%m.%Y}", f"{result.period[1]:%d.%m.%Y}")
        logger.info("Артикулов: %d", len(result.products))
        logger.info("Выручка всего: %s ₽", f"{m.total_sales_revenue:,.2f}")
        logger.info("Затраты с налогом: %s ₽", f"{m.total_costs:,.2f}")
        logger.info("Прибыль: %s ₽ (маржа %.1f%%)", f"{m.profit:,.2f}", m.margin)
        logger.info("Перевод на фабрику: %s ₽", f"{m.payout_to_factory:,.2f}")

        if args.output:
            out = save_report(result, args.output, settings=settings, top=args.top)
            print(f"✔ Отчёт сохранён: {out.resolve()}")
    except (ReportError, ValueError) as e:
        logger.error("ОШИБКА: %s", e)
        return 1

    # Короткая сводка в консоли
    df = metrics_frame(result, settings=settings)
    if not df.empty:
        top = df.sort_values("profit", ascending=False).head(args.top)
        print(f"\nТоп-{args.top} артикулов по прибыли:")
        with pd.option_context("display.max_columns", 0, "display.width", 140):
            print(top[["sku", "total_sales_revenue", "profit", "margin"]].to_string(index=False))
    else:
        print("\nВ отчёте нет строк с артикулами.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
