"""Markdown rendering for analyzed papers."""

from __future__ import annotations

from .models import IngestResult, PaperAnalysis


def render_analysis_report(ingest: IngestResult, analysis: PaperAnalysis | None = None) -> str:
    """Render the analysis card followed by the reconstructed paper."""

    title = ingest.display_title()
    metadata = ingest.metadata
    blocks = [f"# {title}", ""]

    blocks.append("## Paper Information")
    if metadata is not None and metadata.authors:
        blocks.append(f"- **Authors**: {'; '.join(metadata.authors)}")
    if metadata is not None and metadata.published_date:
        blocks.append(f"- **Published**: {metadata.published_date}")
    blocks.extend(
        [
            f"- **Source**: [{ingest.url}]({ingest.url})",
            f"- **PDF Link**: [{ingest.pdf_url}]({ingest.pdf_url})",
            f"- **Pages**: {ingest.page_count}",
        ]
    )

    if analysis is not None:
        tags = ", ".join(analysis.tags) if analysis.tags else "N/A"
        blocks.extend(
            [
                f"- **Rating**: {analysis.rating}/10",
                f"- **Category**: {analysis.category}",
                f"- **Tags**: {tags}",
                f"- **Analysis Cost**: ${analysis.cost_estimate:.4f}",
            ]
        )

    if metadata is not None and metadata.abstract:
        blocks.extend(["", "## Abstract", metadata.abstract])

    if analysis is not None:
        blocks.extend(["", "## Summary", analysis.full_summary() or "N/A"])

    blocks.extend(["", "## Paper Content", ""])
    # Demote paper headings so they nest under "Paper Content".
    for line in ingest.document.to_markdown().splitlines():
        blocks.append(f"#{line}" if line.startswith("#") else line)

    return "\n".join(blocks).strip() + "\n"
