"""Local generator used when no agent endpoint is configured.

It produces a deterministic academic outline for the prompt, which is enough
to exercise the whole session/points/history cycle without a network.
"""

import logging

from ..classify import classify
from ..core import Format
from ..provider import GenerationContext, GenerationProvider
from ..result import GenerationResult

logger = logging.getLogger(__name__)


class OfflineProvider(GenerationProvider):
    name = "offline"

    def is_available(self) -> bool:
        return True

    async def generate(
        self, prompt: str, agent_id: str, context: GenerationContext
    ) -> GenerationResult:
        logger.debug("Offline generation for session %s", context["session_id"])
        level, fmt = classify(prompt)
        title = prompt.strip().splitlines()[0][:120] if prompt.strip() else "Trabalho"

        if fmt is Format.SLIDES:
            sections = ["Slide 1: Introducao", "Slide 2: Desenvolvimento", "Slide 3: Conclusao"]
        else:
            sections = ["Introducao", "Desenvolvimento", "Conclusao", "Referencias"]

        lines = [f"# {title}", "", f"_Nivel: {level.value}_", ""]
        for section in sections:
            lines.extend([f"## {section}", "", f"Conteudo de {section.lower()} sobre: {title}.", ""])
        return GenerationResult.ok("\n".join(lines).rstrip())
