# riskscan/utils/evidence.py
import threading
from typing import Iterable, List


def push_note_once(notes: List[str], msg: str) -> None:
    if msg not in notes:
        notes.append(msg)


class EvidenceLog:
    """
    Ordered, de-duplicated note list shared by the workers of one scan.
    Thread-safe; insertion order is kept.
    """

    def __init__(self, notes: Iterable[str] = ()):
        self._notes: List[str] = []
        self._lock = threading.Lock()
        for n in notes:
            self.add(n)

    def add(self, msg: str) -> None:
        with self._lock:
            push_note_once(self._notes, msg)

    @property
    def notes(self) -> List[str]:
        with self._lock:
            return list(self._notes)

    def __contains__(self, msg: str) -> bool:
        with self._lock:
            return msg in self._notes

    def __len__(self) -> int:
        with self._lock:
            return len(self._notes)
