"""Command line entry point for paper ingestion and analysis."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

from .analysis import PaperAnalyst
from .config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .errors import PaperSkimError, user_message
from .extractor import PdfTextExtractor
from .fetcher import HttpFetcher
from .ledger import SQLiteUsageLedger
from .llm import ClaudeClient
from .metadata import MetadataResolver
from .models import ChatTurn
from .output_writer import MarkdownWriter
from .pipeline import IngestPipeline
from .reconstruct import StructureReconstructor
from .renderer import render_analysis_report
from .retry import call_with_retry


@dataclass(slots=True)
class Services:
    """Process-wide collaborators, built once from config."""

    config: AppConfig
    pipeline: IngestPipeline
    analyst: PaperAnalyst
    ledger: SQLiteUsageLedger
    writer: MarkdownWriter


def _build_runtime_log_lines(config) -> list[str]:
    return [
        f"  model_name={config.model.model_name}",
        f"  fetch_timeout_seconds={config.fetch.timeout_seconds}",
        f"  fetch_max_bytes={config.fetch.max_bytes}",
        f"  max_pages={config.extract.max_pages}",
        f"  analysis_max_chars={config.limits.analysis_max_chars}",
        f"  context_max_chars={config.limits.context_max_chars}",
        f"  db_path={config.runtime.db_path}",
        f"  output_dir={config.runtime.output_dir}",
        f"  output_pdf={config.runtime.output_pdf}",
        f"  retry_attempts={config.runtime.retry_attempts}",
    ]


def build_services(config: AppConfig) -> Services:
    """Build dependencies from config."""

    ledger = SQLiteUsageLedger(config.runtime.db_path)
    ledger.init_db()

    fetcher = HttpFetcher(
        timeout_seconds=config.fetch.timeout_seconds,
        max_bytes=config.fetch.max_bytes,
        user_agent=config.fetch.user_agent,
    )
    pipeline = IngestPipeline(
        fetcher=fetcher,
        extractor=PdfTextExtractor(
            max_pages=config.extract.max_pages,
            min_text_chars=config.extract.min_text_chars,
        ),
        reconstructor=StructureReconstructor(),
        metadata=MetadataResolver(fetcher),
    )
    transport = ClaudeClient(
        endpoint=config.model.endpoint,
        api_version=config.model.api_version,
        timeout_seconds=config.model.request_timeout_seconds,
    )
    analyst = PaperAnalyst(
        transport=transport,
        ledger=ledger,
        model=config.model,
        limits=config.limits,
        pricing=config.pricing,
    )
    writer = MarkdownWriter(output_dir=config.runtime.output_dir, output_pdf=config.runtime.output_pdf)
    return Services(config=config, pipeline=pipeline, analyst=analyst, ledger=ledger, writer=writer)


def _retrying(services: Services, fn):  # type: ignore[no-untyped-def]
    runtime = services.config.runtime
    return call_with_retry(fn, attempts=runtime.retry_attempts, backoff_seconds=runtime.retry_backoff_seconds)


def run_ingest(services: Services, url: str) -> dict:
    ingest = _retrying(services, lambda: services.pipeline.ingest(url))
    report = render_analysis_report(ingest)
    output_path = services.writer.write(ingest.display_title(), report, key=ingest.url)
    return {
        "title": ingest.display_title(),
        "page_count": ingest.page_count,
        "byte_size": ingest.byte_size,
        "output_path": output_path,
    }


def run_analyze(services: Services, url: str, actor_id: str) -> dict:
    ingest = _retrying(services, lambda: services.pipeline.ingest(url))
    markdown = ingest.document.to_markdown()
    analysis = _retrying(services, lambda: services.analyst.analyze_document(markdown, actor_id))
    report = render_analysis_report(ingest, analysis)
    output_path = services.writer.write(ingest.display_title(), report, key=ingest.url)
    return {
        "title": ingest.display_title(),
        "rating": analysis.rating,
        "category": analysis.category,
        "tags": analysis.tags,
        "cost_estimate": str(analysis.cost_estimate),
        "output_path": output_path,
    }


def run_ask(services: Services, url: str, excerpt: str, question: str, actor_id: str) -> str:
    ingest = _retrying(services, lambda: services.pipeline.ingest(url))
    markdown = ingest.document.to_markdown()
    reply = _retrying(
        services,
        lambda: services.analyst.answer_annotation(markdown, excerpt, question, actor_id),
    )
    return reply.response_text


def run_chat(services: Services, url: str, turns: list[ChatTurn], actor_id: str) -> str:
    ingest = _retrying(services, lambda: services.pipeline.ingest(url))
    markdown = ingest.document.to_markdown()
    reply = _retrying(services, lambda: services.analyst.chat(markdown, turns, actor_id))
    return reply.response_text


def parse_turn(value: str) -> ChatTurn:
    """Parse a ``role=text`` command line turn."""

    role, sep, content = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"Turn must look like role=text, got {value!r}")
    try:
        return ChatTurn(role=role.strip().lower(), content=content)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest and analyze research papers")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config json. Default: config/default_config.json",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="Fetch a paper and write its reconstructed text")
    ingest.add_argument("url")

    analyze = commands.add_parser("analyze", help="Ingest a paper and run the AI analysis")
    analyze.add_argument("url")
    analyze.add_argument("--actor", required=True)

    ask = commands.add_parser("ask", help="Ask a question about a highlighted excerpt")
    ask.add_argument("url")
    ask.add_argument("--excerpt", required=True)
    ask.add_argument("--question", required=True)
    ask.add_argument("--actor", required=True)

    chat = commands.add_parser("chat", help="Continue a conversation about a paper")
    chat.add_argument("url")
    chat.add_argument("--turn", dest="turns", type=parse_turn, action="append", required=True)
    chat.add_argument("--actor", required=True)

    usage = commands.add_parser("usage", help="Show the spend of one actor")
    usage.add_argument("--actor", required=True)
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI main function."""

    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    effective_config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    config = load_config(effective_config_path)
    print(f"[STEP] Loading configuration from {effective_config_path.resolve()}")
    for line in _build_runtime_log_lines(config):
        print(line)
    services = build_services(config)

    try:
        if args.command == "ingest":
            result = run_ingest(services, args.url)
            print(f"Ingested '{result['title']}' ({result['page_count']} pages) -> {result['output_path']}")
        elif args.command == "analyze":
            result = run_analyze(services, args.url, args.actor)
            print(
                f"Analyzed '{result['title']}': rating {result['rating']}/10, "
                f"{result['category']}, ${result['cost_estimate']} -> {result['output_path']}"
            )
        elif args.command == "ask":
            print(run_ask(services, args.url, args.excerpt, args.question, args.actor))
        elif args.command == "chat":
            print(run_chat(services, args.url, args.turns, args.actor))
        else:
            summary = services.ledger.summarize(args.actor)
            print(
                f"{summary.actor_id}: {summary.total_queries} queries, "
                f"total ${summary.total_cost}, this month ${summary.monthly_cost}"
            )
    except (PaperSkimError, ValueError) as exc:
        logging.getLogger(__name__).debug("Command failed", exc_info=True)
        print(f"[STEP] Failed: {user_message(exc) if isinstance(exc, PaperSkimError) else exc}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
