from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from feedback_insights.config.loader import ConfigError, load_config_or_default
from feedback_insights.excel.reader import IngestionFormatError
from feedback_insights.logging.error_log import ErrorLogBuffer
from feedback_insights.logging.init import log_summary, setup_logging
from feedback_insights.services.analysis_client import AnalysisClient
from feedback_insights.services.pipeline import AnalysisSession
from feedback_insights.services.progress import ProgressTracker
from feedback_insights.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env and config (defaults when config/analyzer.yml is absent)
- Resolve the API key from the configured environment variable
- Run one analysis for the given workbook and print the result as JSON
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_ANALYSIS_FAILED = 2


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv (existing environment wins by default)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="feedback-insights",
        description="Analyze a faculty feedback workbook with Gemini",
    )
    p.add_argument("file", type=Path, help="Workbook (.xlsx / .xls); only the first sheet is read")
    p.add_argument("--config", type=Path, default=None, help="Config YAML (default: config/analyzer.yml)")
    p.add_argument("--output", type=Path, default=None, help="Write the result JSON here instead of stdout")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers & first normalized rows then exit")
    return p.parse_args(argv)


def _inspect_data(path: Path) -> int:
    from feedback_insights.excel.normalizer import normalize_record
    from feedback_insights.excel.reader import read_feedback_records

    try:
        records = read_feedback_records(path)
    except IngestionFormatError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    headers: list[str] = []
    for r in records:
        for k in r:
            if k not in headers:
                headers.append(k)
    print(f"FILE: {path.name} rows={len(records)} cols={headers}")
    for r in records[:3]:
        row = normalize_record(r)
        print(f"  faculty={row.faculty_name!r} section={row.section!r} rating={row.rating} comment={row.comment!r}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む (テストで main([...]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    try:
        cfg = load_config_or_default(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source: Path = args.file
    if not source.exists():
        logger.error(f"file not found: {source}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(source)

    api_key = os.getenv(cfg.api_key_env)
    if not api_key:
        logger.error(f"credential: environment variable {cfg.api_key_env} is not set")
        return EXIT_FATAL

    error_log = ErrorLogBuffer(Path(cfg.error_log_dir))
    client = AnalysisClient(
        api_key,
        model_name=cfg.model,
        timeout_seconds=cfg.timeout_seconds,
        error_log=error_log,
    )
    session = AnalysisSession(client, comment_sample_limit=cfg.comment_sample_limit, error_log=error_log)

    logger.info(f"Analyzing {source.name} with {cfg.model}")
    with ProgressTracker() as tracker:
        result = session.analyze(source, progress=tracker)

    log_path = error_log.flush()
    if result is None:
        logger.error(f"analysis: {session.error_message}")
        if log_path is not None:
            logger.info(f"diagnostics written to {log_path}")
        if isinstance(session.error, IngestionFormatError):
            return EXIT_FATAL
        return EXIT_ANALYSIS_FAILED

    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    if args.output is not None:
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info(f"result written to {args.output}")
    else:
        print(payload)

    if result.top_performers:
        logger.info(f"top performers: {', '.join(result.top_performers)}")
    if session.stats is not None:
        # log_summary が "SUMMARY " を付与するので先頭を除去
        log_summary(render_summary_line(session.stats)[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
