"""The ordered message log of one work session."""

from typing import Iterable, Iterator

from .core import ArtifactFile, Message, Role, generate_id, timestamp_now


class Session:
    """Messages of a single work session, bound to one session id.

    The log only grows: one user message per round and, when the round
    succeeds, one assistant message.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self._messages: list[Message] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def append_user(self, text: str) -> Message:
        return self._append(Role.USER, text)

    def append_assistant(self, text: str, artifact_files: Iterable[ArtifactFile] = ()) -> Message:
        return self._append(Role.ASSISTANT, text, tuple(artifact_files))

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def topic_source(self) -> str | None:
        """Content of the first user message; fixed for the session's lifetime."""
        for msg in self._messages:
            if msg.role is Role.USER:
                return msg.content
        return None

    def reset(self, session_id: str) -> "Session":
        return Session(session_id)

    def _append(
        self, role: Role, text: str, artifact_files: tuple[ArtifactFile, ...] = ()
    ) -> Message:
        msg = Message(
            id=generate_id(),
            role=role,
            content=text,
            timestamp=timestamp_now(),
            artifact_files=artifact_files,
        )
        self._messages.append(msg)
        return msg
