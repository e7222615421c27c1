"""Dataset pipeline: from an uploaded CSV to an active, sorted Dataset.

The pipeline runs header reconciliation once, normalizes every row, drops
the rows it cannot use and hands a fully built Dataset to the session in a
single swap. Structural problems (unreadable file, missing columns, no
usable rows) raise an ``IngestionError`` before the session is touched.
"""

from __future__ import annotations

import csv
import io
from datetime import tzinfo
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

from .headers import REQUIRED_KEYS, HeaderReconciler
from .logging_config import get_logger
from .models import (
    DISCARD_DUPLICATE_URL,
    DISCARD_MISSING_FIELD,
    Dataset,
    Discard,
    IngestionReport,
    NoValidDataError,
    NormalizedRecord,
    TokenizationError,
)
from .normalizer import RecordNormalizer
from .parser_utils import is_blank
from .session import DatasetSession

logger = get_logger("pipeline")

Row = Sequence[object]


def read_csv(
    source: Union[bytes, str],
    *,
    encoding: str = "utf-8",
) -> Tuple[List[str], List[List[str]]]:
    """Tokenize CSV content into a header row and data rows.

    Blank lines are skipped. Any decoding or quoting problem is reported
    as a ``TokenizationError``.
    """
    if isinstance(source, bytes):
        try:
            text = source.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise TokenizationError(f"Error reading CSV file: {exc}") from exc
    else:
        text = source

    try:
        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        rows = [row for row in reader if any(cell.strip() for cell in row)]
    except csv.Error as exc:
        raise TokenizationError(f"Error parsing CSV file: {exc}") from exc

    if not rows:
        raise TokenizationError("Error parsing CSV file: file is empty")
    return rows[0], rows[1:]


def read_csv_file(path: Union[str, Path], *, encoding: str = "utf-8") -> Tuple[List[str], List[List[str]]]:
    """Read and tokenize a CSV file from disk."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise TokenizationError(f"Error reading CSV file: {exc}") from exc
    return read_csv(data, encoding=encoding)


def sort_most_recent_first(records: Iterable[NormalizedRecord]) -> List[NormalizedRecord]:
    """Sort descending by occurrence; equal instants keep their order."""
    return sorted(records, key=lambda record: record.occurred_at.timestamp(), reverse=True)


class DatasetPipeline:
    """Orchestrates header reconciliation and row normalization."""

    def __init__(
        self,
        reconciler: Optional[HeaderReconciler] = None,
        normalizer: Optional[RecordNormalizer] = None,
        *,
        default_timezone: Union[str, tzinfo, None] = "UTC",
        encoding: str = "utf-8",
    ) -> None:
        self.reconciler = reconciler or HeaderReconciler()
        self.normalizer = normalizer or RecordNormalizer(default_timezone=default_timezone)
        self.encoding = encoding

    def run(
        self,
        headers: Sequence[str],
        rows: Iterable[Row],
        *,
        session: Optional[DatasetSession] = None,
    ) -> IngestionReport:
        """Build a Dataset from tokenized rows.

        When a session is given, the new Dataset replaces its active one
        only after every row has been processed successfully.

        Raises:
            MissingColumnsError: required columns are missing.
            NoValidDataError: no row survived normalization.
        """
        mapping = self.reconciler.reconcile(headers)

        accepted: List[NormalizedRecord] = []
        discards: List[Discard] = []
        seen_urls: Set[str] = set()
        rows_read = 0

        for row_number, row in enumerate(rows, start=1):
            rows_read += 1
            raw = mapping.extract(row)

            empty = [key for key in REQUIRED_KEYS if is_blank(raw.get(key))]
            if empty:
                discards.append(
                    Discard(
                        reason=DISCARD_MISSING_FIELD,
                        row_number=row_number,
                        detail=f"empty fields: {', '.join(empty)}",
                    )
                )
                continue

            result = self.normalizer.normalize(raw, row_number=row_number)
            if isinstance(result, Discard):
                discards.append(result)
                continue

            if result.message_url in seen_urls:
                discards.append(
                    Discard(
                        reason=DISCARD_DUPLICATE_URL,
                        row_number=row_number,
                        detail=f"duplicate message URL {result.message_url}",
                    )
                )
                continue

            seen_urls.add(result.message_url)
            accepted.append(result)

        for discard in discards:
            logger.debug("Row %s discarded (%s): %s", discard.row_number, discard.reason, discard.detail)

        if not accepted:
            logger.warning(f"Upload rejected: none of {rows_read} rows were usable")
            raise NoValidDataError(rows_read)

        dataset = Dataset(records=tuple(sort_most_recent_first(accepted)))
        report = IngestionReport(dataset=dataset, rows_read=rows_read, discards=discards)

        logger.info(
            f"Ingested {report.accepted} of {rows_read} rows "
            f"({report.discarded} discarded: {report.discard_counts()})"
        )

        if session is not None:
            session.replace(dataset)
        return report

    def run_csv(
        self,
        source: Union[bytes, str],
        *,
        session: Optional[DatasetSession] = None,
    ) -> IngestionReport:
        """Tokenize CSV content and run the pipeline over it."""
        headers, rows = read_csv(source, encoding=self.encoding)
        return self.run(headers, rows, session=session)

    def run_file(
        self,
        path: Union[str, Path],
        *,
        session: Optional[DatasetSession] = None,
    ) -> IngestionReport:
        """Read a CSV file from disk and run the pipeline over it."""
        headers, rows = read_csv_file(path, encoding=self.encoding)
        return self.run(headers, rows, session=session)
