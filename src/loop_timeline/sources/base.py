"""Clases base para fuentes de datos de glucosa."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from loop_timeline.model import GlucoseSample, Looper
from loop_timeline.storage import Settings


class GlucoseDataSource(ABC):
    """Abstract glucose data source bound to one looper."""

    def __init__(self, looper: Looper, settings: Settings) -> None:
        """Create a data source.

        Args:
            looper: Looper whose samples are fetched.
            settings: App settings in effect for this cycle.
        """
        self._looper = looper
        self._settings = settings

    @property
    def looper(self) -> Looper:
        return self._looper

    @abstractmethod
    async def fetch_glucose_samples(self) -> list[GlucoseSample]:
        """Fetch every available sample, in any order.

        Raises:
            DataSourceError: If samples cannot be fetched or parsed.
        """


DataSourceFactory = Callable[[Looper, Settings], GlucoseDataSource]
