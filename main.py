from __future__ import annotations

import argparse
import asyncio
from datetime import date
from pathlib import Path
import sys

from loguru import logger

from app.viewmodels.report_vm import ReportOptions, ReportVM
from core.models import LayoutConstants
from core.services.interfaces import ImportFailed, ImportNotice, ImportProgress, ImportStarted
from core.services.sort_service import GroupOrder
from infrastructure.attachment_stream import AttachmentStreamClient, parse_job_id
from infrastructure.logging import init_logging
from infrastructure.page_repository import JsonPageRepository
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def _parse_day(value: str | None, key: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"{key} must be a YYYY-MM-DD date") from exc


def _parse_layout_constants(settings: JsonSettings) -> LayoutConstants:
    defaults = LayoutConstants()
    return LayoutConstants(
        page_capacity=settings.get_int("layout.page_capacity", defaults.page_capacity),
        row_height=settings.get_int("layout.row_height", defaults.row_height),
        header_height=settings.get_int("layout.header_height", defaults.header_height),
        group_gap=settings.get_int("layout.group_gap", defaults.group_gap),
        row_capacity=max(1, settings.get_int("layout.row_capacity", defaults.row_capacity)),
    )


def _parse_options(settings: JsonSettings, args: argparse.Namespace) -> ReportOptions:
    show_dates = settings.get_bool("report.show_dates", True)
    if args.no_dates:
        show_dates = False
    order = GroupOrder.parse(settings.get("report.group_order"))
    if args.chronological:
        order = GroupOrder.CHRONOLOGICAL
    return ReportOptions(
        show_dates=show_dates,
        group_order=order,
        date_from=_parse_day(args.date_from or settings.get("report.date_from"), "date_from"),
        date_to=_parse_day(args.date_to or settings.get("report.date_to"), "date_to"),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo-report",
        description="Import job photos and lay them out into report pages.",
    )
    parser.add_argument("job_id", help="Job number in the job management system")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument("--output", default=None, help="Page list JSON path")
    parser.add_argument("--company-id", type=int, default=None)
    parser.add_argument("--no-dates", action="store_true", help="Disable date grouping")
    parser.add_argument("--chronological", action="store_true", help="Sort days ascending")
    parser.add_argument("--from", dest="date_from", default=None, help="First day, YYYY-MM-DD")
    parser.add_argument("--to", dest="date_to", default=None, help="Last day, YYYY-MM-DD")
    return parser


def _log_notice(notice: ImportNotice) -> None:
    if isinstance(notice, ImportStarted):
        logger.info("Fetching {} photos", notice.total)
    elif isinstance(notice, ImportProgress):
        logger.info("{} / {} photos ({} failed)", notice.loaded, notice.total, notice.failed)
    elif isinstance(notice, ImportFailed):
        logger.error("Import failed: {}", notice.message)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = JsonSettings(args.settings)
    init_logging(
        settings.get("logging.directory"),
        level=str(settings.get("logging.level", "INFO")),
    )

    try:
        job_id = parse_job_id(args.job_id)
        constants = _parse_layout_constants(settings)
        options = _parse_options(settings, args)
        company_id = args.company_id
        if company_id is None:
            company_id = settings.get_int("dashboard.company_id", 0)
        client = AttachmentStreamClient(
            base_url=str(settings.get("dashboard.base_url", "http://localhost:3000")),
            company_id=company_id,
            timeout=settings.get_float("dashboard.timeout_seconds", 30.0),
        )
    except ValueError as ex:
        logger.error("{}", ex)
        return 2

    vm = ReportVM(JsonPageRepository(), constants=constants, options=options)
    result = asyncio.run(vm.import_stream(client.iter_chunks(job_id), _log_notice))

    output = args.output or str(Path.cwd() / f"report_{job_id}_pages.json")
    pages = vm.build_pages()
    vm.export_pages(output)

    print(f"Job {job_id}: {result.state.value}, {vm.photo_count} photos, {len(pages)} pages")
    print(f"Pages written to {output}")
    if result.message:
        print(f"Error: {result.message}", file=sys.stderr)
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
