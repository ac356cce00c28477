"""App Ideas Finder -- command-line entry point.

Startup sequence:
    1. Load pipeline configuration (needed for log_dir, db_path, report_dir)
    2. Setup logging (must happen before any code that logs)
    3. Load remaining configuration (store, model)
    4. Initialize database (engine, tables, session factory)
    5. Run one analysis and write its markdown report

Usage:
    python main.py app <app id or App Store URL> [--user USER_ID]
    python main.py idea "<business idea>" [--name NAME] [--user USER_ID]
    python main.py show <share slug>

Without ``--user`` the run is not checked against, or counted toward, any
subscription.
"""

import argparse
import logging
import sys

import httpx

from ideas_finder.analyzer import ModelClient
from ideas_finder.analyzer.types import StageStatus
from ideas_finder.config import ModelSettings, PipelineSettings, StoreSettings
from ideas_finder.config.settings import PROJECT_ROOT
from ideas_finder.db import (
    SqlEntitlementChecker,
    SqlResultCache,
    SqlResultStore,
    SqlUsageRecorder,
    get_analysis_by_slug,
    get_engine,
    get_session_factory,
    init_db,
)
from ideas_finder.errors import (
    AnalysisAbortedError,
    EntitlementError,
    SubjectNotFoundError,
)
from ideas_finder.logging import setup_logging
from ideas_finder.report import write_report
from ideas_finder.runner import AnalysisService

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="app-ideas-finder",
        description="Turn App Store reviews or a business idea into a product analysis.",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user", default=None, help="user id for entitlement and usage")
    sub = parser.add_subparsers(dest="command", required=True)

    app = sub.add_parser("app", parents=[common], help="analyse an App Store app")
    app.add_argument("app", help="numeric app id or App Store URL")

    idea = sub.add_parser("idea", parents=[common], help="analyse a free-text business idea")
    idea.add_argument("idea", help="the business idea text")
    idea.add_argument("--name", default=None, help="working business name")

    show = sub.add_parser("show", help="re-export a saved analysis by its share slug")
    show.add_argument("slug", help="share slug printed when the analysis was saved")

    return parser.parse_args(argv)


def _log_status(key: str, status: StageStatus) -> None:
    logger.info("  %-20s %s", key, status.value)


def _show(slug: str, session_factory, pipeline: PipelineSettings) -> int:
    """Write the report for a saved analysis without any model calls."""
    with session_factory() as session:
        record = get_analysis_by_slug(session, slug)
    if record is None:
        logger.error("No saved analysis with share slug %s", slug)
        return 1
    report_path = write_report(record, PROJECT_ROOT / pipeline.report_dir)
    logger.info("Report for %s written to %s", record.subject_name, report_path)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run one analysis requested on the command line."""
    args = _parse_args(argv)

    # 1. Load pipeline config first -- needed for logging and database paths
    pipeline = PipelineSettings()

    # 2. Setup logging BEFORE anything else logs
    setup_logging(
        log_dir=pipeline.log_dir,
        max_bytes=pipeline.log_max_bytes,
        backup_count=pipeline.log_backup_count,
    )

    logger.info("App Ideas Finder starting")

    # 3. Load remaining configuration
    store = StoreSettings()
    model = ModelSettings()

    # Log non-sensitive config values (never log secrets like api_key)
    logger.info(
        "Config loaded -- store: country=%s, max_review_pages=%s, similar_apps=%s",
        store.country,
        store.max_review_pages,
        store.similar_apps_limit,
    )
    logger.info(
        "Config loaded -- model: endpoint=%s, model_id=%s, temperature=%s, "
        "max_tokens=%s, api_key_set=%s",
        model.endpoint,
        model.model_id,
        model.temperature,
        model.max_tokens,
        bool(model.api_key),
    )
    logger.info(
        "Config loaded -- pipeline: db_path=%s, log_dir=%s, cache_max_age_days=%s",
        pipeline.db_path,
        pipeline.log_dir,
        pipeline.cache_max_age_days,
    )

    if args.command != "show" and not model.api_key:
        logger.error("MODEL_API_KEY is not set (see .env.example)")
        return 2

    # 4. Initialize database
    engine = get_engine(pipeline.db_path)
    init_db(engine)
    session_factory = get_session_factory(engine)
    logger.info("Database initialized at %s", pipeline.db_path)

    if args.command == "show":
        exit_code = _show(args.slug, session_factory, pipeline)
        engine.dispose()
        return exit_code

    # 5. Run the analysis
    exit_code = 0
    with httpx.Client(
        timeout=store.request_timeout_seconds,
        headers={"User-Agent": store.user_agent},
        follow_redirects=True,
    ) as http, ModelClient(model) as model_client:
        service = AnalysisService(
            model_client=model_client,
            model_settings=model,
            store_settings=store,
            http_client=http,
            entitlement=SqlEntitlementChecker(session_factory),
            usage=SqlUsageRecorder(session_factory),
            cache=SqlResultCache(session_factory, pipeline.cache_max_age_days),
            store=SqlResultStore(session_factory),
            status_listener=_log_status,
        )
        try:
            if args.command == "app":
                record = service.run_app(args.app, user_id=args.user)
            else:
                record = service.run_idea(args.idea, name=args.name, user_id=args.user)
        except (SubjectNotFoundError, EntitlementError) as exc:
            logger.error("Cannot start analysis: %s", exc)
            exit_code = 1
        except AnalysisAbortedError as exc:
            logger.error(
                "Analysis aborted: %s (spent $%.6f on %d calls)",
                exc,
                exc.context.cost.total,
                exc.context.cost.call_count,
            )
            exit_code = 1
        else:
            report_path = write_report(record, PROJECT_ROOT / pipeline.report_dir)
            logger.info(
                "Run complete -- %s%s, $%.6f, share slug %s, report at %s",
                record.subject_name,
                " (cached)" if record.cached else "",
                record.api_cost,
                record.share_slug,
                report_path,
            )

    engine.dispose()
    return exit_code


if __name__ == "__main__":
    sys.exit(main() or 0)
