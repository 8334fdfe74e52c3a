from typing import Any, Callable, Dict, List


class StatsReport:
    """One entry of a ``getStats`` result, in the legacy report shape.

    Exposes ``id``, ``timestamp`` and ``type`` as attributes and the remaining
    values through ``names()`` and ``stat(name)``.
    """

    def __init__(self, id: str, timestamp: float, type: str,
                 names: Callable[[], List[str]], stat: Callable[[str], Any]):
        self.id = id
        self.timestamp = timestamp
        self.type = type
        self.names = names
        self.stat = stat

    @classmethod
    def from_remote(cls, item: Dict[str, Any]) -> 'StatsReport':
        stats = dict(item.get('stats') or {})
        return cls(
            item.get('id'),
            item.get('timestamp'),
            item.get('type'),
            names=lambda: list(stats.keys()),
            stat=lambda name: stats.get(name),
        )

    def __repr__(self) -> str:
        return f"<StatsReport id={self.id} type={self.type}>"


class StatsResponse:
    def __init__(self, reports: List[StatsReport]):
        self._reports = reports

    def result(self) -> List[StatsReport]:
        return list(self._reports)


def normalize_stats(items: List[Dict[str, Any]]) -> StatsResponse:
    return StatsResponse([StatsReport.from_remote(item) for item in items or []])
