"""Social insights command-line runner.

Wires configuration, storage, the ingestion pipeline, analytics and the
chat assistant together: upload a CSV export, inspect the stored posts
and their summary, and ask grounded questions about them.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from .analytics import summarize
from .chat import ChatAssistant
from .config import AppConfig
from .database import SocialInsightsDatabase
from .llm_client import LLMClient
from .logging_config import get_logger, setup_logging
from .models import (
    AnalyticsSummary,
    ConversationMessage,
    IngestionError,
    IngestionReport,
    LLMNotConfiguredError,
    NormalizedRecord,
    SocialInsightsError,
    UploadLockedError,
)
from .pipeline import DatasetPipeline
from .report import REPORT_FORMATS, ReportBuilder
from .session import DatasetSession


class SocialInsightsRunner:
    """Application object owning the session, storage and collaborators."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        db: Optional[SocialInsightsDatabase] = None,
        client: Optional[LLMClient] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.logger = logger or get_logger("runner")
        self.db = db or SocialInsightsDatabase(db_path=self.config.db_path)
        self.client = client or LLMClient(self.config.llm)

        self.pipeline = DatasetPipeline(
            default_timezone=self.config.default_timezone,
            encoding=self.config.encoding,
        )
        self.session = DatasetSession(self.db.load_dataset())
        self.assistant = ChatAssistant(
            self.client,
            self.db,
            self.session,
            context_limit=self.config.context_limit,
            history_window=self.config.history_window,
        )
        self.report_builder = ReportBuilder()

    def upload(self, path: Union[str, Path], password: Optional[str]) -> IngestionReport:
        """Run the pipeline over a CSV file and persist the new dataset.

        The stored and in-memory datasets are only replaced when the upload
        is accepted as a whole.
        """
        if not self.config.check_upload_password(password):
            raise UploadLockedError("Incorrect password")

        path = Path(path)
        run_id = self.db.start_upload_run(filename=path.name)
        self.logger.info(f"Processing upload: {path}")

        try:
            report = self.pipeline.run_file(path)
        except IngestionError as exc:
            self.db.complete_upload_run(run_id, status="rejected", metadata={"error": str(exc)})
            raise

        try:
            self.db.replace_posts(report.dataset)
        except Exception as exc:
            self.db.complete_upload_run(run_id, status="failed", report=report, metadata={"error": str(exc)})
            raise

        self.session.replace(report.dataset)
        self.db.complete_upload_run(run_id, report=report)
        return report

    def records(self, limit: Optional[int] = None) -> List[NormalizedRecord]:
        dataset = self.session.dataset
        return list(dataset) if limit is None else dataset.head(limit)

    def summary(self) -> AnalyticsSummary:
        return summarize(self.session.dataset)

    def render_summary(self, output_format: str = "text", record_limit: Optional[int] = None) -> str:
        return self.report_builder.render(
            self.session.dataset,
            output_format=output_format,
            record_limit=record_limit,
        )

    def ask(self, question: str, focus: Optional[str] = None) -> str:
        if not self.config.is_llm_configured():
            raise LLMNotConfiguredError("OpenAI API key is not configured")
        self.session.focus(focus)
        return self.assistant.ask(question)

    def history(self) -> List[ConversationMessage]:
        return self.db.get_history()


def _format_record(record: NormalizedRecord) -> str:
    return (
        f"{record.formatted_date} | {record.network} | {record.profile} | "
        f"{record.engagements} engagements | {record.message_url}\n    {record.message}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Social insights - upload post metrics and ask grounded questions about them"
    )
    parser.add_argument("--config", type=Path, help="Path to YAML configuration file")
    parser.add_argument("--db-path", type=Path, help="Path to database (overrides config)")
    parser.add_argument("--log-file", type=Path, help="Write logs to file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Upload a CSV export, replacing the current dataset")
    upload.add_argument("csv_path", type=Path, help="CSV file to ingest")
    upload.add_argument("--password", required=True, help="Upload password")

    records = subparsers.add_parser("records", help="List stored posts, most recent first")
    records.add_argument("--limit", type=int, help="Maximum number of posts to list")

    summary = subparsers.add_parser("summary", help="Show the analytics summary")
    summary.add_argument("--format", choices=REPORT_FORMATS, default="text", help="Output format")
    summary.add_argument("--limit", type=int, help="Maximum number of posts in the report")
    summary.add_argument("--output", "-o", type=Path, help="Write the report to a file")

    ask = subparsers.add_parser("ask", help="Ask a question about the dataset")
    ask.add_argument("question", help="Question text")
    ask.add_argument("--focus", metavar="MESSAGE_URL", help="Ground the answer on a single post")

    subparsers.add_parser("history", help="Show the chat transcript")
    subparsers.add_parser("clear-history", help="Delete the chat transcript")

    edit = subparsers.add_parser("edit-message", help="Edit a transcript message")
    edit.add_argument("message_id", type=int)
    edit.add_argument("content")

    delete = subparsers.add_parser("delete-message", help="Delete a transcript message")
    delete.add_argument("message_id", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the social insights runner."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(
        log_file=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        config = AppConfig.load(args.config)
        if args.db_path:
            config.db_path = args.db_path

        runner = SocialInsightsRunner(config=config, logger=logger)

        if args.command == "upload":
            report = runner.upload(args.csv_path, args.password)
            print(f"Uploaded {report.accepted} posts")

        elif args.command == "records":
            for record in runner.records(args.limit):
                print(_format_record(record))

        elif args.command == "summary":
            content = runner.render_summary(args.format, record_limit=args.limit)
            if args.output:
                args.output.write_text(content, encoding="utf-8")
                logger.info(f"Report written to {args.output}")
            else:
                print(content)

        elif args.command == "ask":
            print(runner.ask(args.question, focus=args.focus))

        elif args.command == "history":
            for message in runner.history():
                marker = " (edited)" if message.edited else ""
                print(f"[{message.id}] {message.created_at} {message.role}{marker}: {message.content}")

        elif args.command == "clear-history":
            removed = runner.db.clear_history()
            print(json.dumps({"cleared": removed}))

        elif args.command == "edit-message":
            if not runner.db.edit_message(args.message_id, args.content):
                raise KeyError(f"No message with id {args.message_id}")

        elif args.command == "delete-message":
            if not runner.db.delete_message(args.message_id):
                raise KeyError(f"No message with id {args.message_id}")

        return 0

    except (SocialInsightsError, KeyError) as e:
        logger.error(str(e))
        return 1

    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
