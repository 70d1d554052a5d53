from __future__ import annotations
from typing import Dict, Iterable, List

from .models import GenerationType


class GenerationRegistry:
    """Outstanding generation ids per type.

    Every successful poll replaces both collections wholesale. ``cancel``
    removes an id right away; the next poll is what resyncs with the server.
    """

    def __init__(self):
        self._ids: Dict[GenerationType, List[str]] = {kind: [] for kind in GenerationType}

    def replace_all(self, image_ids: Iterable[str], text_ids: Iterable[str]) -> None:
        self._ids = {
            GenerationType.image: list(dict.fromkeys(image_ids)),
            GenerationType.text: list(dict.fromkeys(text_ids)),
        }

    def cancel(self, gen_id: str, kind: GenerationType | str) -> bool:
        ids = self._ids[GenerationType(kind)]
        if gen_id not in ids:
            return False
        ids.remove(gen_id)
        return True

    def ids(self, kind: GenerationType | str) -> List[str]:
        return list(self._ids[GenerationType(kind)])

    def snapshot(self) -> Dict[str, List[str]]:
        return {kind.value: list(ids) for kind, ids in self._ids.items()}

    def clear(self) -> None:
        self._ids = {kind: [] for kind in GenerationType}
