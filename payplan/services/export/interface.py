"""
Calendar Export Interface

The engine resolves bill instances; turning them into a calendar file or a
third-party calendar sync is the collaborator's job. The core knows no
file format.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from payplan.models.bill import BillInstance


class CalendarExporterInterface(ABC):
    """Receives resolved bill instances for export."""

    @abstractmethod
    def export(self, instances: Sequence[BillInstance]) -> bool:
        """
        Export bill instances.

        Args:
            instances: Occurrences ordered by due date

        Returns:
            True if the export succeeded
        """
        pass


class CollectingExporter(CalendarExporterInterface):
    """Keeps every exported batch in memory. Use in tests."""

    def __init__(self):
        self.batches: list[list[BillInstance]] = []

    def export(self, instances: Sequence[BillInstance]) -> bool:
        self.batches.append(list(instances))
        return True
