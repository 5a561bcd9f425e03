"""Export archived works to Markdown and JSON formats."""

import json

from .core import HistoryEntry, entry_to_dict


def entry_to_markdown(entry: HistoryEntry) -> str:
    """Export a work and its conversation as clean Markdown."""
    lines = [f"# {entry.topic or 'Sem titulo'}", ""]

    lines.append(f"**Nivel:** {entry.level.value}")
    lines.append(f"**Formato:** {entry.format.value}")
    lines.append(f"**Data:** {entry.date}")
    lines.append(f"**Custo:** {entry.point_cost} pts")
    if entry.page_count > 0:
        unit = "slides" if entry.format.value == "slides" else "paginas"
        lines.append(f"**Tamanho:** {entry.page_count} {unit}")
    lines.extend(["", "---", "", entry.content, ""])

    if entry.messages:
        lines.extend(["---", "", "## Conversa", ""])
        for msg in entry.messages:
            label = "Usuario" if msg.role.value == "user" else "Assistente"
            lines.append(f"### {label} ({msg.timestamp})")
            lines.append("")
            lines.append(msg.content)
            for idx, f in enumerate(msg.artifact_files, 1):
                lines.append(f"- [Baixar arquivo {idx}]({f.file_url})")
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def entry_to_json(entry: HistoryEntry) -> str:
    """Export a work as structured JSON, in its stored shape."""
    return json.dumps(entry_to_dict(entry), indent=2, ensure_ascii=False)
