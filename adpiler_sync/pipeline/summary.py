"""Plain-text comments posted back to the card."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adpiler_sync.pipeline.orchestrator import PublishJobError, PublishResult


def success_comment(result: "PublishResult") -> str:
    record = result.record
    lines = [
        "✅ Uploaded to AdPiler",
        f"Mode: {record.mode.value}",
        f"Campaign: {record.campaign_id}",
        f"Creative ID: {record.entity_id}",
        f"Files uploaded: {record.uploaded_count}",
    ]
    if record.mode.value != "display":
        lines.append(f"Paid: {'yes' if record.paid else 'no (organic)'}")
    if result.preview_urls:
        lines.append("Preview:")
        lines.extend(f"  {url}" for url in result.preview_urls)
    return "\n".join(lines)


def failure_comment(error: "PublishJobError") -> str:
    mode = error.mode.value if error.mode else "unselected"
    return f"❌ AdPiler upload failed ({mode})\n{error}"
