"""Exception types raised by the planning engine."""
from __future__ import annotations


class PlannerError(ValueError):
    """Base class for rejected edits. Nothing raised here is fatal."""


class DateValidationError(PlannerError):
    """A start/due pair is unparseable or inverted."""


class CsvImportError(DateValidationError):
    """A CSV file could not be imported; nothing was applied."""


class CycleError(PlannerError):
    """A move would place a task inside its own subtree."""


class TaskNotFoundError(PlannerError, LookupError):
    """A task path no longer points at a task."""


class ProjectNotFoundError(PlannerError, LookupError):
    """No project carries the requested id."""


class GeometryError(PlannerError):
    """Pointer math cannot produce a finite bar."""


class RosterError(PlannerError):
    """The person-in-charge roster rejected a change."""


class SnapshotError(PlannerError):
    """A saved snapshot could not be read."""
