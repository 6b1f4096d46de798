#!/usr/bin/env python3
"""
Точка входа CarrierScout для командной строки.

Команды:
  run       Обработать пакет идентификаторов и записать CSV / список URL
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов, {batch} = номер пакета (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда run опции (часть читается и из переменных окружения):
  --input PATH        Файл с идентификаторами (default: batch.txt, затем mc_list.txt)
  --mode MODE         full | urls | both
  --concurrency N     Размер среза                      [env: CONCURRENCY]
  --delay MS          Пауза между срезами               [env: DELAY]
  --batch-index N     Номер пакета в имени файла        [env: BATCH_INDEX]
  --min-age-days N    Минимальный возраст регистрации
  --output-dir DIR    Каталог для результатов
  --extractor NAME    regex | soup

Пример:
  carrier-scout run --input mc_list.txt --mode both --concurrency 8
"""
import asyncio
import sys
from pathlib import Path

import click

from carrier_scout import __version__
from carrier_scout.config import OperatingMode, load_config, with_overrides
from carrier_scout.engine import run_batch
from carrier_scout.logger import DEFAULT_FORMAT, batch_log_file, bind_batch, configure
from carrier_scout.report import write_result
from carrier_scout.utils import discover_input, read_identifiers

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="CarrierScout, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Путь к файлу конфигурации YAML/JSON.",
)
@click.option(
    "--log-level", "log_level",
    default="INFO", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Уровень логирования",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Путь к файлу логов; {batch} заменяется номером пакета",
)
@click.option(
    "--log-format", "log_format",
    default=DEFAULT_FORMAT,
    help="Строка формата для логов",
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд CarrierScout CLI."""
    deferred = log_file is not None and "{batch}" in str(log_file)
    configure(level=log_level, log_file=None if deferred else log_file, log_format=log_format)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f"Ошибка загрузки конфигурации: {e}")
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["logging"] = {"level": log_level, "log_file": log_file, "log_format": log_format}


@cli.command("run", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--input", "-i", "input_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Файл с идентификаторами (по одному в строке)",
)
@click.option("--mode", default=None, type=click.Choice([m.value for m in OperatingMode]),
              help="full: записи, urls: только URL, both: всё")
@click.option("--concurrency", default=None, type=click.IntRange(min=1), envvar="CONCURRENCY",
              help="Число идентификаторов в срезе")
@click.option("--delay", "delay_ms", default=None, type=click.IntRange(min=0), envvar="DELAY",
              help="Пауза между срезами, мс")
@click.option("--batch-index", default=None, type=click.IntRange(min=0), envvar="BATCH_INDEX",
              help="Номер пакета")
@click.option("--min-age-days", default=None, type=click.IntRange(min=0),
              help="Минимальный возраст регистрации, дней")
@click.option("--output-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Каталог для CSV и списка URL")
@click.option("--extractor", default=None, type=click.Choice(["regex", "soup"]),
              help="Стратегия разбора HTML")
@click.pass_context
def run(ctx, input_path, mode, concurrency, delay_ms, batch_index, min_age_days, output_dir, extractor):
    """Обработать пакет идентификаторов и записать результаты."""
    try:
        cfg = with_overrides(
            ctx.obj["config"],
            mode=mode,
            concurrency=concurrency,
            delay_ms=delay_ms,
            batch_index=batch_index,
            min_age_days=min_age_days,
            output_dir=output_dir,
            extractor=extractor,
        )
    except Exception as e:
        print_error(f"Ошибка конфигурации: {e}")

    bind_batch(cfg.batch_index)
    log_opts = ctx.obj["logging"]
    if log_opts["log_file"] is not None:
        configure(
            level=log_opts["level"],
            log_file=batch_log_file(log_opts["log_file"], cfg.batch_index),
            log_format=log_opts["log_format"],
        )

    try:
        source = discover_input(input_path)
    except FileNotFoundError as e:
        print_error(f"Входной файл не найден: {e}")
    identifiers = read_identifiers(source)

    click.echo(f"Running batch {cfg.batch_index} with {len(identifiers)} identifiers.")
    if not identifiers:
        click.echo("No identifiers in this batch. Exiting.")
        return

    try:
        result = asyncio.run(run_batch(cfg, identifiers))
        written = write_result(result, cfg)
    except Exception as e:
        print_error(f"Ошибка при обработке пакета: {e}")

    click.echo(f"Accepted {result.accepted} of {result.processed} identifiers.")
    for path in written:
        click.echo(f"Written: {path}")


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj["config"]
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
