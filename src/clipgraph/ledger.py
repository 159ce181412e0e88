"""Transition offset ledger.

Every xfade makes the picture track shorter than the clip positions say:
after a 0.5 s transition, everything later in the timeline plays 0.5 s
earlier. The ledger records the cumulative overlap at each picture clip so
audio and overlays can be moved from timeline time into visual time.
"""

from dataclasses import dataclass, field

from .common import round_half_up


@dataclass
class TransitionLedger:
    # (position, cumulative overlap) per picture clip, in position order.
    entries: list[tuple[float, float]] = field(default_factory=list)

    def record(self, position: float, transition_duration: float = 0.0) -> float:
        """Record a picture clip; return the cumulative offset at it.

        The first clip's transition has nothing to overlap and is ignored.
        """
        if not self.entries:
            offset = 0.0
        else:
            offset = self.entries[-1][1] + max(0.0, transition_duration)
        self.entries.append((position, offset))
        return offset

    def offset_at(self, t: float) -> float:
        """Cumulative transition seconds of picture clips at or before t."""
        offset = 0.0
        for position, cumulative in self.entries:
            if position <= t:
                offset = cumulative
            else:
                break
        return offset

    def to_visual(self, t: float) -> float:
        return t - self.offset_at(t)

    def delay_ms(self, position: float) -> int:
        """adelay value in milliseconds for something placed at `position`."""
        return round_half_up(max(0.0, self.to_visual(position)) * 1000)
