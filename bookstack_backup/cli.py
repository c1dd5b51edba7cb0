# === FILE: bookstack_backup/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для бэкапа BookStack через командную строку.

Команды:
  run       Запустить планировщик (cron) для всех экземпляров и ждать SIGINT/SIGTERM
  crawl     Однократно выгрузить все (или указанные) экземпляры
  config    Показать разобранную конфигурацию (секреты скрыты)

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: config.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  bookstack-backup --config config.yaml crawl --instance wiki
"""
import asyncio
import signal
import sys
from pathlib import Path

import click

from bookstack_backup import __version__
from bookstack_backup.config import load_config
from bookstack_backup.exceptions import SchedulerSetupError
from bookstack_backup.logger import DEFAULT_FORMAT, configure, logger
from bookstack_backup.orchestrator import CrawlOrchestrator
from bookstack_backup.scheduler import InstanceScheduler

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def build_scheduler(instances) -> InstanceScheduler:
    try:
        return InstanceScheduler(instances, orchestrator_factory=CrawlOrchestrator)
    except SchedulerSetupError as e:
        print_error(f'Ошибка расписания: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='bookstack-backup, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='config.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Периодический бэкап BookStack в Markdown."""
    configure(level=log_level, log_file=log_file, log_format=log_format)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


async def _serve(scheduler: InstanceScheduler) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            logger.debug("Signal handler for %s is not supported here", sig)
    scheduler.start()
    try:
        await stop.wait()
    finally:
        scheduler.shutdown()


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def run(ctx):
    """Запустить планировщик и работать до SIGINT/SIGTERM."""
    cfg = ctx.obj['config']
    scheduler = build_scheduler(cfg.instances)
    click.echo(f'Scheduling {len(cfg.instances)} instance(s)')
    asyncio.run(_serve(scheduler))


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--instance', '-i', 'names',
    multiple=True,
    help='Имя экземпляра (можно указать несколько раз); по умолчанию все'
)
@click.pass_context
def crawl(ctx, names):
    """Однократно выгрузить экземпляры и вывести сводку."""
    cfg = ctx.obj['config']
    known = {inst.name for inst in cfg.instances}
    unknown = [n for n in names if n not in known]
    if unknown:
        print_error(f'Неизвестный экземпляр: {", ".join(unknown)}')

    scheduler = build_scheduler(cfg.instances)
    results = asyncio.run(scheduler.run_now(list(names) or None))

    failed = False
    for instance, report in results:
        if report is None:
            failed = True
            click.echo(f'{instance.name}: failed')
        else:
            click.echo(f'{instance.name}: {report.summary()}')
    if failed:
        sys.exit(1)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
