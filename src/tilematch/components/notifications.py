from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True)
class Notification:
    kind: str  # 'points' | 'error' | 'info'
    message: str
    remaining: float


@dataclass(slots=True)
class NotificationQueue:
    """Singleton component holding notifications until they expire."""
    items: List[Notification] = field(default_factory=list)

    def push(self, kind: str, message: str, lifetime: float) -> Notification:
        note = Notification(kind=kind, message=message, remaining=lifetime)
        self.items.append(note)
        return note

    def advance(self, dt: float) -> None:
        for note in self.items:
            note.remaining -= dt
        self.items = [note for note in self.items if note.remaining > 0.0]

    def messages(self) -> List[str]:
        return [note.message for note in self.items]
