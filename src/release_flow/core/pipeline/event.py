# src/release_flow/core/pipeline/event.py
"""
Evento de repositório que dispara runs.

O `RepositoryEvent` é a única entrada do Trigger Listener:
{event_type, ref, changed_paths[], revision}. Pode ser construído
diretamente (helpers `tag_push`, `branch_push`, `pull_request`) ou a
partir de um payload no formato de webhook do host de source control
(`from_payload`).

Decisões arquiteturais:
    - `event_type` é mantido como string crua: tipos desconhecidos não
      são erro, apenas não casam com nenhum pipeline
    - `changed_paths=None` significa "lista indisponível" (e não "vazia")
    - Payload malformado produz `None` (no-op silencioso), nunca exceção
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

TAG_PREFIX = "refs/tags/"
BRANCH_PREFIX = "refs/heads/"


class EventType(str, Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"


def _strip_branch(ref: str) -> str:
    return ref[len(BRANCH_PREFIX):] if ref.startswith(BRANCH_PREFIX) else ref


@dataclass(frozen=True)
class RepositoryEvent:
    """Evento de push ou pull request normalizado."""

    event_type: str
    ref: str
    revision: str = ""
    changed_paths: Optional[Tuple[str, ...]] = None
    base_ref: str = ""

    # -----------------------------
    # Construtores explícitos
    # -----------------------------
    @classmethod
    def tag_push(cls, tag: str, *, revision: str = "") -> "RepositoryEvent":
        return cls(event_type=EventType.PUSH.value, ref=f"{TAG_PREFIX}{tag}", revision=revision)

    @classmethod
    def branch_push(
        cls,
        branch: str,
        *,
        changed_paths: Optional[Iterable[str]] = None,
        revision: str = "",
    ) -> "RepositoryEvent":
        return cls(
            event_type=EventType.PUSH.value,
            ref=f"{BRANCH_PREFIX}{branch}",
            revision=revision,
            changed_paths=tuple(changed_paths) if changed_paths is not None else None,
        )

    @classmethod
    def pull_request(
        cls,
        base: str,
        *,
        head_ref: str = "",
        changed_paths: Optional[Iterable[str]] = None,
        revision: str = "",
    ) -> "RepositoryEvent":
        return cls(
            event_type=EventType.PULL_REQUEST.value,
            ref=head_ref,
            revision=revision,
            changed_paths=tuple(changed_paths) if changed_paths is not None else None,
            base_ref=base,
        )

    # -----------------------------
    # Derivados
    # -----------------------------
    @property
    def tag(self) -> Optional[str]:
        """Nome da tag quando o evento é um push de tag."""
        if self.event_type != EventType.PUSH.value:
            return None
        if not self.ref.startswith(TAG_PREFIX):
            return None
        return self.ref[len(TAG_PREFIX):]

    @property
    def branch(self) -> Optional[str]:
        """Branch do push (None para tags e pull requests)."""
        if self.event_type != EventType.PUSH.value:
            return None
        if not self.ref.startswith(BRANCH_PREFIX):
            return None
        return self.ref[len(BRANCH_PREFIX):]

    @property
    def target_branch(self) -> Optional[str]:
        """Branch alvo do pull request."""
        if self.event_type != EventType.PULL_REQUEST.value or not self.base_ref:
            return None
        return _strip_branch(self.base_ref)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "ref": self.ref,
            "revision": self.revision,
            "changed_paths": list(self.changed_paths) if self.changed_paths is not None else None,
            "base_ref": self.base_ref,
        }

    # -----------------------------
    # Payloads externos
    # -----------------------------
    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        event_type: Optional[str] = None,
    ) -> Optional["RepositoryEvent"]:
        """
        Normaliza um payload de evento.

        Formatos aceitos:
            - plano: {"event_type", "ref", "revision", "changed_paths", "base_ref"}
            - webhook push: {"ref", "after", "commits": [{"added", "modified", "removed"}]}
            - webhook pull_request: {"pull_request": {"base": {"ref"}, "head": {"ref", "sha"}}}

        Returns:
            Optional[RepositoryEvent]: None quando o payload é malformado
            ou representa a remoção de uma ref.
        """
        if not isinstance(payload, Mapping):
            return None

        etype = event_type or payload.get("event_type")
        if etype is None:
            etype = EventType.PULL_REQUEST.value if "pull_request" in payload else EventType.PUSH.value
        if not isinstance(etype, str):
            return None

        if etype == EventType.PULL_REQUEST.value and isinstance(payload.get("pull_request"), Mapping):
            return cls._from_pull_request_payload(payload)

        ref = payload.get("ref")
        if not isinstance(ref, str) or not ref:
            return None
        if payload.get("deleted") is True:
            return None

        revision = payload.get("revision", payload.get("after", ""))
        if not isinstance(revision, str):
            return None

        changed = _changed_paths_from(payload)
        base_ref = payload.get("base_ref") or ""
        if not isinstance(base_ref, str):
            base_ref = ""

        return cls(
            event_type=etype,
            ref=ref,
            revision=revision,
            changed_paths=changed,
            base_ref=base_ref,
        )

    @classmethod
    def _from_pull_request_payload(cls, payload: Mapping[str, Any]) -> Optional["RepositoryEvent"]:
        pr = payload["pull_request"]
        base = pr.get("base") if isinstance(pr.get("base"), Mapping) else {}
        head = pr.get("head") if isinstance(pr.get("head"), Mapping) else {}
        base_ref = base.get("ref")
        if not isinstance(base_ref, str) or not base_ref:
            return None
        head_ref = head.get("ref") if isinstance(head.get("ref"), str) else ""
        revision = head.get("sha") if isinstance(head.get("sha"), str) else ""
        return cls.pull_request(
            base_ref,
            head_ref=head_ref,
            changed_paths=_changed_paths_from(payload),
            revision=revision,
        )


def _changed_paths_from(payload: Mapping[str, Any]) -> Optional[Tuple[str, ...]]:
    """Extrai paths alterados; None quando a informação não está disponível."""
    explicit = payload.get("changed_paths")
    if explicit is not None:
        if not isinstance(explicit, (list, tuple)) or not all(isinstance(p, str) for p in explicit):
            return None
        return tuple(explicit)

    commits = payload.get("commits")
    if not isinstance(commits, list) or not commits:
        return None

    paths: Dict[str, None] = {}
    for commit in commits:
        if not isinstance(commit, Mapping):
            return None
        for key in ("added", "modified", "removed"):
            entries = commit.get(key) or []
            if not isinstance(entries, list):
                return None
            for entry in entries:
                if isinstance(entry, str):
                    paths[entry] = None
    return tuple(paths)
