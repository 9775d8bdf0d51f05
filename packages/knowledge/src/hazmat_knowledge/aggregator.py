"""Context aggregation.

Merges remote and local context into one ranking and renders it as the
prompt's context block.
"""

from typing import Iterable

from hazmat_contracts import LocalDocumentRecord, SourceContext, SourceType


def merge(
    remote: Iterable[SourceContext], local: Iterable[SourceContext]
) -> list[SourceContext]:
    """Concatenate remote then local contexts, ordered by descending weight.

    The sort is stable: on equal weights remote sources stay ahead of local
    ones and each pool keeps its input order.
    """
    return sorted([*remote, *local], key=lambda source: -source.weight)


def render(sources: list[SourceContext]) -> str:
    """Render contexts as a prompt block; "" when there are none.

    Example:
        >>> render([ctx])
        '### Source: regs (IATA) | Type: RemoteServer | Weight: 80\\n...'
    """
    return "\n\n".join(
        f"### Source: {source.source_name} | Type: {source.source_type.value}"
        f" | Weight: {source.weight}\n{source.content}"
        for source in sources
    )


def contexts_from_documents(records: Iterable[LocalDocumentRecord]) -> list[SourceContext]:
    """Convert stored documents into local contexts."""
    return [
        SourceContext(
            source_name=record.name,
            source_type=SourceType.LOCAL_STORE,
            content=record.content,
            weight=record.weight,
            uri=f"local://{record.id}",
        )
        for record in records
    ]
