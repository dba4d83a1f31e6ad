"""Rolling graphs and summary text describing the network quality of a session."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Iterable, Optional, Sequence

from .session import Session
from .types import MAX_PLAYERS, NetworkStats

MAX_GRAPH_SIZE = 4096
MAX_FAIRNESS = 20
TEXT_UPDATE_INTERVAL = 500


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def _graph() -> deque[int]:
    return deque(maxlen=MAX_GRAPH_SIZE)


def fairness(local_frames_behind: int, remote_frames_behind: int) -> int:
    """Combine both sides' view of frame advantage into one unfairness figure."""
    if local_frames_behind < 0 and remote_frames_behind < 0:
        # Both think it is unfair, which in fact is fair: subtract.
        return abs(abs(local_frames_behind) - abs(remote_frames_behind))
    if local_frames_behind > 0 and remote_frames_behind > 0:
        # Only possible with negative transmit time.
        return 0
    return abs(local_frames_behind) + abs(remote_frames_behind)


def format_stats(stats: NetworkStats) -> dict[str, str]:
    """Render the summary lines shown for a connection."""
    frame_lag = stats.ping * 60.0 / 1000 if stats.ping else 0.0
    return {
        "network_lag": f"{stats.ping} ms",
        "frame_lag": f"{frame_lag:.1f} frames",
        "bandwidth": f"{stats.kbps_sent / 8.0:.2f} kilobytes/sec",
        "local_ahead": f"{stats.local_frames_behind} frames",
        "remote_ahead": f"{stats.remote_frames_behind} frames",
    }


class PerfMon:
    """Collects per-frame network statistics into bounded graphs.

    Each graph keeps the most recent ``MAX_GRAPH_SIZE`` samples.  The summary
    ``text`` is refreshed at most every ``TEXT_UPDATE_INTERVAL`` ms.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self.clock = clock or _monotonic_ms
        self.num_players = 0
        self.graph_size = 0
        self.ping_graph = [_graph() for _ in range(MAX_PLAYERS)]
        self.local_fairness_graph = [_graph() for _ in range(MAX_PLAYERS)]
        self.remote_fairness_graph = [_graph() for _ in range(MAX_PLAYERS)]
        self.fairness_graph = _graph()
        self.text: dict[str, str] = {}
        self._last_text_update_time = 0

    def update(self, session: Session, handles: Iterable[int]) -> None:
        """Sample the statistics of every remote player in ``handles``."""
        handles = list(handles)
        if len(handles) > MAX_PLAYERS:
            raise ValueError(f"at most {MAX_PLAYERS} players can be monitored")
        self.num_players = len(handles)
        self.graph_size = min(self.graph_size + 1, MAX_GRAPH_SIZE)

        stats = NetworkStats()
        for j, handle in enumerate(handles):
            stats = session.get_network_stats(handle)
            self.ping_graph[j].append(stats.ping)
            self.local_fairness_graph[j].append(stats.local_frames_behind)
            self.remote_fairness_graph[j].append(stats.remote_frames_behind)
        if handles:
            # Only the last player's figure is kept for the shared graph.
            self.fairness_graph.append(
                fairness(stats.local_frames_behind, stats.remote_frames_behind)
            )

        now = self.clock()
        if now > self._last_text_update_time + TEXT_UPDATE_INTERVAL:
            self.text = format_stats(stats)
            self._last_text_update_time = now

    def series(self, values: Sequence[int]) -> list[int]:
        """Return the samples of a graph that fall in the window, oldest first."""
        if not self.graph_size:
            return []
        return list(values)[-self.graph_size:]