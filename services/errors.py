# services/errors.py
"""Errors raised by the component-tracking services and mapped to HTTP by the routes."""


class ComponentTrackingError(Exception):
    status_code = 500


class InvalidInput(ComponentTrackingError):
    """Bad or missing input: non-positive distances, unknown ids, empty stock."""
    status_code = 400


class NotFound(ComponentTrackingError):
    """The bike, component or catalog entry does not exist for this user (or is no longer active)."""
    status_code = 404


class Conflict(ComponentTrackingError):
    """A bike already has an active component of the requested type."""
    status_code = 409


class DependencyFailure(ComponentTrackingError):
    """The database or an upstream API failed."""
    status_code = 502
