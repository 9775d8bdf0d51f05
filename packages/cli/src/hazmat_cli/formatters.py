"""Output formatters for CLI results.

Provides two output formats:
- markdown: Human-readable report
- json: Machine-parseable JSON (camelCase keys, as the model returns them)
"""

import json
from typing import Iterable

from pydantic import BaseModel

from hazmat_contracts import (
    KnowledgeServerConfig,
    LocalDocumentRecord,
    SdsExtraction,
    Severity,
    Suggestion,
    ValidationResult,
)

SDS_LABELS = {
    "un_number": "UN Number",
    "proper_shipping_name": "Proper Shipping Name",
    "hazard_class": "Hazard Class",
    "packing_group": "Packing Group",
    "technical_name": "Technical Name",
    "packing_instruction": "Packing Instruction",
    "packaging_type": "Packaging Type",
}


def format_json(value: BaseModel | Iterable[BaseModel]) -> str:
    """Serialize a model (or list of models) as indented JSON."""
    if isinstance(value, BaseModel):
        data = value.model_dump(mode="json", by_alias=True)
    else:
        data = [item.model_dump(mode="json", by_alias=True) for item in value]
    return json.dumps(data, indent=2)


def format_result_markdown(result: ValidationResult) -> str:
    """Format a validation verdict as markdown.

    Args:
        result: Normalized validation result

    Returns:
        Markdown-formatted string
    """
    lines = [f"# Validation Result: {result.status.value}", ""]

    model_status = (result.metadata or {}).get("model_status")
    if model_status:
        lines.append(
            f"*Model reported {model_status}; status raised to {result.status.value} "
            "based on issue severity.*"
        )
        lines.append("")

    if not result.issues:
        lines.append("No compliance issues found.")
    else:
        counts = {s: sum(1 for i in result.issues if i.severity == s) for s in Severity}
        summary = ", ".join(f"{n} {s.value.lower()}" for s, n in counts.items() if n)
        lines.append(f"Found {len(result.issues)} issue(s): {summary}")

        for index, issue in enumerate(result.issues, 1):
            lines.append("")
            lines.append(
                f"## {index}. [{issue.severity.value}] {issue.description} "
                f"(confidence {issue.confidence}%)"
            )
            if issue.regulation_reference:
                lines.append(f"**Regulation**: {issue.regulation_reference}")
            if issue.recommendation:
                lines.append(f"**Recommendation**: {issue.recommendation}")
            if issue.explanation:
                lines.append(f"\n> {issue.explanation.replace(chr(10), chr(10) + '> ')}")

    if result.usage:
        usage = result.usage
        lines.append("")
        lines.append("---")
        lines.append(
            f"Model: {usage.model_id} | Tokens: {usage.total_tokens:,} "
            f"(in {usage.prompt_tokens:,} / out {usage.candidate_tokens:,}) | "
            f"Est. cost: ${usage.estimated_cost:.6f}"
        )

    return "\n".join(lines)


def format_sds_markdown(extraction: SdsExtraction, source_name: str) -> str:
    """Format extracted SDS fields as a markdown table."""
    found = extraction.found_fields()
    if not found:
        return f"No shipping information found in **{source_name}**."

    lines = [
        f"# Shipping Data from {source_name}",
        "",
        "| Field | Value | Confidence |",
        "|---|---|---|",
    ]
    for field, label in SDS_LABELS.items():
        value = getattr(extraction, field) or "-"
        confidence = extraction.confidence.get(field)
        shown = f"{confidence}%" if confidence is not None and field in found else "-"
        lines.append(f"| {label} | {value} | {shown} |")
    return "\n".join(lines)


def format_suggestions_markdown(field: str, suggestions: list[Suggestion]) -> str:
    if not suggestions:
        return f"No suggestions for **{field}**."

    lines = [f"# Suggestions for {field}", ""]
    for index, suggestion in enumerate(suggestions, 1):
        lines.append(f"{index}. **{suggestion.value}** ({suggestion.confidence}%)")
        if suggestion.reasoning:
            lines.append(f"   {suggestion.reasoning}")
    return "\n".join(lines)


def format_documents(records: list[LocalDocumentRecord]) -> str:
    """Format local documents as an aligned listing."""
    if not records:
        return "No documents in the local store."

    lines = [f"Found {len(records)} documents:", ""]
    for record in records:
        added = record.timestamp.strftime("%Y-%m-%d %H:%M")
        lines.append(
            f"  {record.id[:12]}  [{record.type.value:4}] w={record.weight:3}  "
            f"{record.name[:40]:40} {len(record.content):>8,} chars  {added}"
        )
    return "\n".join(lines)


def format_servers(servers: list[KnowledgeServerConfig]) -> str:
    if not servers:
        return "No knowledge servers configured."

    lines = [f"Found {len(servers)} knowledge servers:", ""]
    for server in servers:
        state = "on " if server.enabled else "off"
        lines.append(f"  [{state}] w={server.weight:3}  {server.name:24} {server.url}")
    return "\n".join(lines)
