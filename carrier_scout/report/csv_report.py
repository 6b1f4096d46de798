# carrier_scout/report/csv_report.py

"""
Генерация CSV-отчёта и списка принятых URL для CarrierScout.

Оба файла пишутся один раз, в конце запуска.
"""
from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from carrier_scout.config import ScraperConfig
from carrier_scout.logger import logger
from carrier_scout.models import CSV_HEADERS, BatchResult, CarrierRecord


def render_csv(records: Iterable[CarrierRecord], output_path: Path | str) -> Path:
    """
    Сохраняет записи в CSV (UTF-8, все поля в кавычках, кавычки удваиваются).

    Заголовок пишется всегда, даже если записей нет.
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(
            f,
            fieldnames=list(CSV_HEADERS.values()),
            quoting=csv.QUOTE_ALL,
            lineterminator="\n",
        )
        writer.writeheader()
        for record in records:
            writer.writerow(record.as_row())

    return output


def render_urls(urls: Iterable[str], output_path: Path | str) -> Path:
    """Сохраняет принятые URL, по одному на строку."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    lines = list(urls)
    output.write_text("".join(f"{u}\n" for u in lines), encoding="utf-8")
    return output


def output_paths(output_dir: Path | str, batch_index: int, now: datetime) -> Tuple[Path, Path]:
    """Имена файлов вида ``carriers_batch_<i>_<timestamp>.csv`` и ``..._urls.txt``."""
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    stem = Path(output_dir) / f"carriers_batch_{batch_index}_{stamp}"
    return stem.with_suffix(".csv"), stem.parent / f"{stem.name}_urls.txt"


def write_result(
    result: BatchResult, config: ScraperConfig, now: Optional[datetime] = None
) -> List[Path]:
    """Пишет файлы, которые нужны в текущем режиме, и возвращает их пути."""
    csv_path, urls_path = output_paths(config.output_dir, config.batch_index, now or datetime.now())
    written: List[Path] = []
    if config.mode.wants_records:
        written.append(render_csv(result.records, csv_path))
        logger.info("CSV written: %s (rows=%d)", csv_path, len(result.records))
    if config.mode.wants_urls:
        written.append(render_urls(result.urls, urls_path))
        logger.info("URL list written: %s (urls=%d)", urls_path, len(result.urls))
    if not result.accepted:
        logger.warning("No valid data extracted for this batch (all identifiers were filtered out)")
    return written
