"""Report rendering for the analytics summary and record table.

Builds a display structure from a dataset and its AnalyticsSummary and
renders it to HTML or plaintext with Jinja2 templates, or exports the
records as CSV.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .analytics import summarize
from .models import Dataset, NormalizedRecord

REPORT_FORMATS = ("text", "html", "json", "csv")

CSV_FIELDNAMES = [
    "Network",
    "Message URL",
    "Date",
    "Message",
    "Type",
    "Content Type",
    "Profile",
    "Followers",
    "Engagements",
]


class ReportBuilder:
    """Builds dataset reports."""

    def __init__(
        self,
        title: str = "Social Insights Report",
        template_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.title = title

        if template_dir is None:
            project_root = Path(__file__).parent.parent.parent
            template_dir = project_root / "templates" / "social_insights"
        else:
            template_dir = Path(template_dir)

        self.template_dir = template_dir
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def build_report(self, dataset: Dataset, *, record_limit: Optional[int] = None) -> Dict[str, Any]:
        """Build the report data structure for a dataset."""
        summary = summarize(dataset)
        records = list(dataset) if record_limit is None else dataset.head(record_limit)
        return {
            "title": self.title,
            "generated_at": datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC"),
            "summary": summary.to_dict(),
            "records": [self._format_record(record) for record in records],
            "shown_count": len(records),
        }

    @staticmethod
    def _format_record(record: NormalizedRecord) -> Dict[str, Any]:
        return {
            "network": record.network,
            "profile": record.profile,
            "formatted_date": record.formatted_date,
            "type": record.type,
            "content_type": record.content_type,
            "message": record.message,
            "followers": record.followers,
            "engagements": record.engagements,
            "url": record.message_url,
        }

    def render_html(self, report_data: Dict[str, Any]) -> str:
        template = self.jinja_env.get_template("report.html")
        return template.render(**report_data)

    def render_text(self, report_data: Dict[str, Any]) -> str:
        template = self.jinja_env.get_template("report.txt")
        return template.render(**report_data)

    def export_to_csv(self, dataset: Dataset) -> str:
        """Export the records with their normalized values."""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_FIELDNAMES)
        writer.writeheader()
        for record in dataset:
            writer.writerow(
                {
                    "Network": record.network,
                    "Message URL": record.message_url,
                    "Date": record.occurred_at.isoformat(),
                    "Message": record.message,
                    "Type": record.type,
                    "Content Type": record.content_type,
                    "Profile": record.profile,
                    "Followers": record.followers,
                    "Engagements": record.engagements,
                }
            )
        return output.getvalue()

    def render(
        self,
        dataset: Dataset,
        *,
        output_format: str = "text",
        record_limit: Optional[int] = None,
    ) -> str:
        """Render a dataset report in the requested format."""
        if output_format not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format {output_format!r}")
        if output_format == "csv":
            return self.export_to_csv(dataset)
        report_data = self.build_report(dataset, record_limit=record_limit)
        if output_format == "json":
            return json.dumps(report_data, indent=2)
        if output_format == "html":
            return self.render_html(report_data)
        return self.render_text(report_data)

