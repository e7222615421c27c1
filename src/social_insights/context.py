"""Selection and rendering of the grounding context for chat requests."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import Dataset, NormalizedRecord

DEFAULT_CONTEXT_LIMIT = 5

SYSTEM_PROMPT_TEMPLATE = """You are an AI analyst specializing in social media data analysis. You have access to {total} social media posts.

Your task is to analyze the provided data based on user queries. Important guidelines:

1. ONLY use information from the provided dataset
2. Do NOT introduce external information or assumptions
3. When analyzing, consider ALL available columns:
   - Network (platform)
   - Profile (user information)
   - Followers (audience size)
   - Date (temporal patterns)
   - Type (post category)
   - Content Type (media format)
   - Message (actual content)
   - Engagements (interaction metrics)
   - Message URL (source link)
4. Provide specific examples from the data to support your analysis
5. When asked about trends or patterns, use actual numbers and percentages from the data
6. If information is not available in the data, clearly state that instead of making assumptions

Current context ({count} posts):
{context}

Remember: Base ALL insights EXCLUSIVELY on the provided data."""


def select_context(
    dataset: Dataset,
    focused: Optional[NormalizedRecord] = None,
    limit: int = DEFAULT_CONTEXT_LIMIT,
) -> List[NormalizedRecord]:
    """Pick the records that ground a question.

    A focused record is used on its own; otherwise the first ``limit``
    records of the (most-recent-first) dataset are returned.
    """
    if focused is not None:
        return [focused]
    return dataset.head(limit)


def render_record(record: NormalizedRecord) -> str:
    lines = [
        "Post Details:",
        f"- Network: {record.network}",
        f"- Profile: {record.profile} (Followers: {record.followers})",
        f"- Date: {record.formatted_date}",
        f"- Type: {record.type}",
        f"- Content Type: {record.content_type}",
        f'- Message: "{record.message}"',
        f"- Engagements: {record.engagements}",
        f"- URL: {record.message_url}",
    ]
    return "\n".join(lines)


def render_context(records: Sequence[NormalizedRecord]) -> str:
    """Render records as key/value blocks separated by blank lines."""
    return "\n\n".join(render_record(record) for record in records)


def build_system_prompt(total_records: int, records: Sequence[NormalizedRecord]) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        total=total_records,
        count=len(records),
        context=render_context(records),
    )
