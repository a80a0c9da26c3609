"""Calendar export collaborator."""

from payplan.services.export.interface import CalendarExporterInterface, CollectingExporter

__all__ = ["CalendarExporterInterface", "CollectingExporter"]
