from abc import ABC, abstractmethod
from typing import Mapping, Optional


Tags = Optional[Mapping[str, str]]


class MetricsCollector(ABC):
    """
    A sink for client metrics. Implementations forward to whatever backend the application uses.
    """

    @abstractmethod
    def increment_counter(self, name: str, tags: Tags = None) -> None:
        pass

    @abstractmethod
    def record_histogram(self, name: str, value: float, tags: Tags = None) -> None:
        pass

    @abstractmethod
    def record_gauge(self, name: str, value: float, tags: Tags = None) -> None:
        pass


class NoopMetrics(MetricsCollector):
    def increment_counter(self, name: str, tags: Tags = None) -> None:
        pass

    def record_histogram(self, name: str, value: float, tags: Tags = None) -> None:
        pass

    def record_gauge(self, name: str, value: float, tags: Tags = None) -> None:
        pass
