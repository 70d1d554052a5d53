from typing import Optional


class RateGate:
    """At most one grant per ``min_spacing_ms``, however often it is asked."""

    def __init__(self):
        self.last_granted: Optional[int] = None

    def try_acquire(self, now: int, min_spacing_ms: int) -> bool:
        if self.last_granted is not None and now - self.last_granted < min_spacing_ms:
            return False
        self.last_granted = now
        return True

    def reset(self) -> None:
        self.last_granted = None
