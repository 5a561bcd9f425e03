"""Append-only archive of completed generations, newest first."""

from collections import deque
from typing import Iterable, Iterator

from .config import RECENT_HISTORY_SIZE
from .core import Format, HistoryEntry, Level

ALL = "all"


class HistoryArchive:
    """Completed works in reverse chronological order.

    Entries are only ever prepended. Nothing here removes an entry; the
    whole archive is dropped only when the local store is reset.
    """

    def __init__(self, entries: Iterable[HistoryEntry] = ()):
        # ``entries`` is expected newest first, as persisted.
        self._entries: deque[HistoryEntry] = deque(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(tuple(self._entries))

    def append(self, entry: HistoryEntry) -> None:
        self._entries.appendleft(entry)

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def get(self, entry_id: str, *, show_samples: bool = False) -> HistoryEntry | None:
        for entry in self.display(show_samples):
            if entry.id == entry_id:
                return entry
        return None

    def display(self, show_samples: bool = False) -> list[HistoryEntry]:
        """Entries to show; the sample works stand in for an empty archive."""
        if show_samples and not self._entries:
            return list(SAMPLE_HISTORY)
        return list(self._entries)

    def filter(
        self,
        search: str = "",
        level: str = ALL,
        format: str = ALL,
        *,
        show_samples: bool = False,
    ) -> list[HistoryEntry]:
        """Entries matching all three predicates.

        ``search`` is a case-insensitive substring of the topic (empty matches
        everything); ``level`` and ``format`` are exact enum values or "all".
        """
        needle = (search or "").lower()
        level = _enum_value(level)
        format = _enum_value(format)

        results = []
        for entry in self.display(show_samples):
            if needle and needle not in (entry.topic or "").lower():
                continue
            if level != ALL and entry.level.value != level:
                continue
            if format != ALL and entry.format.value != format:
                continue
            results.append(entry)
        return results

    def recent(self, n: int = RECENT_HISTORY_SIZE, *, show_samples: bool = False) -> list[HistoryEntry]:
        return self.display(show_samples)[: max(0, n)]

    def clear(self) -> None:
        self._entries.clear()


def _enum_value(value) -> str:
    if isinstance(value, (Level, Format)):
        return value.value
    return value or ALL


# ── Sample works ─────────────────────────────────────────────────
# Shown only when the user asks for sample data and has no history yet.

SAMPLE_HISTORY: tuple[HistoryEntry, ...] = (
    HistoryEntry(
        id="sample-1",
        topic="Revolucao Industrial e suas consequencias sociais",
        level=Level.FACULDADE,
        format=Format.DOCUMENTO,
        page_count=10,
        content=(
            "# Revolucao Industrial e suas consequencias sociais\n\n"
            "## Introducao\n\n"
            "A Revolucao Industrial foi um dos marcos mais significativos da historia moderna, "
            "transformando profundamente as relacoes economicas, sociais e culturais da humanidade.\n\n"
            "## Desenvolvimento\n\n"
            "### Contexto Historico\n\n"
            "A Revolucao Industrial teve inicio na Inglaterra, no final do seculo XVIII, e se espalhou "
            "progressivamente por toda a Europa e outros continentes.\n\n"
            "### Consequencias Sociais\n\n"
            "- Urbanizacao acelerada\n- Surgimento da classe operaria\n"
            "- Mudancas nas relacoes de trabalho\n- Impactos ambientais\n\n"
            "## Conclusao\n\n"
            "A Revolucao Industrial transformou irreversivelmente a sociedade, criando as bases para "
            "o mundo moderno.\n\n"
            "## Referencias\n\n"
            "1. HOBSBAWM, Eric. A Era das Revolucoes. Paz & Terra, 2010.\n"
            "2. THOMPSON, E.P. A Formacao da Classe Operaria Inglesa. Paz & Terra, 2012."
        ),
        date="18/02/2026",
        point_cost=75,
    ),
    HistoryEntry(
        id="sample-2",
        topic="Fotossintese e ciclo do carbono",
        level=Level.MEDIO,
        format=Format.SLIDES,
        page_count=15,
        content=(
            "# Fotossintese e Ciclo do Carbono\n\n"
            "## Slide 1: Introducao\n\n"
            "A fotossintese e o processo pelo qual plantas convertem energia solar em energia quimica.\n\n"
            "## Slide 2: Processo da Fotossintese\n\n"
            "- Fase clara (fotoquimica)\n- Fase escura (ciclo de Calvin)\n- Fatores limitantes\n\n"
            "## Slide 3: Ciclo do Carbono\n\n"
            "O ciclo do carbono e essencial para a manutencao da vida na Terra."
        ),
        date="17/02/2026",
        point_cost=75,
    ),
    HistoryEntry(
        id="sample-3",
        topic="Operacoes matematicas basicas",
        level=Level.FUNDAMENTAL,
        format=Format.DOCUMENTO,
        page_count=5,
        content=(
            "# Operacoes Matematicas Basicas\n\n"
            "## Introducao\n\n"
            "As quatro operacoes matematicas basicas sao a base de todo o conhecimento matematico.\n\n"
            "## Adicao\n\nA adicao e a operacao de somar dois ou mais numeros.\n\n"
            "## Subtracao\n\nA subtracao e a operacao inversa da adicao.\n\n"
            "## Multiplicacao\n\nA multiplicacao e uma forma simplificada de adicoes repetidas.\n\n"
            "## Divisao\n\nA divisao distribui um valor em partes iguais."
        ),
        date="16/02/2026",
        point_cost=75,
    ),
    HistoryEntry(
        id="sample-4",
        topic="Redes de computadores e protocolos TCP/IP",
        level=Level.TECNICO,
        format=Format.DOCUMENTO,
        page_count=8,
        content=(
            "# Redes de Computadores e Protocolos TCP/IP\n\n"
            "## Introducao\n\n"
            "As redes de computadores sao essenciais para a comunicacao moderna.\n\n"
            "## Modelo OSI\n\n"
            "- Camada fisica\n- Camada de enlace\n- Camada de rede\n- Camada de transporte\n\n"
            "## Protocolo TCP/IP\n\n"
            "O TCP/IP e o conjunto de protocolos que fundamenta a Internet."
        ),
        date="15/02/2026",
        point_cost=75,
    ),
    HistoryEntry(
        id="sample-5",
        topic="Literatura brasileira: Machado de Assis",
        level=Level.MEDIO,
        format=Format.DOCUMENTO,
        page_count=7,
        content=(
            "# Literatura Brasileira: Machado de Assis\n\n"
            "## Introducao\n\n"
            "Machado de Assis e considerado o maior escritor brasileiro de todos os tempos.\n\n"
            "## Obras Principais\n\n"
            "- Dom Casmurro\n- Memorias Postumas de Bras Cubas\n- Quincas Borba\n\n"
            "## Estilo Literario\n\n"
            "Machado desenvolveu um estilo unico, marcado pela ironia e pela profundidade psicologica."
        ),
        date="14/02/2026",
        point_cost=75,
    ),
)
