"""Exporter SPI and implementations."""

from .base import BaseExporter
from .file_exporter import EndpointFileExporter

__all__ = ["BaseExporter", "EndpointFileExporter"]
