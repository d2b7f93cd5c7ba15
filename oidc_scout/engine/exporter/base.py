"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseExporter(ABC):
    """Uniform exporter contract for discovered endpoint output."""

    @abstractmethod
    def export(self, line: str) -> None:
        """Persist a single line."""

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
