"""Domain error types.

Routes let these propagate; ``icebreaker.main`` maps each one to an HTTP
status. Failures of derived work (review refresh, broadcast) are never
raised to the request that triggered them.
"""


class DomainError(Exception):
    """Base domain error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with id {identifier} not found")


class EmptyPopulationError(NotFoundError):
    """Grouping was requested for an event with no participants."""

    def __init__(self, event_id: str):
        self.resource = "Participants"
        self.identifier = event_id
        DomainError.__init__(self, f"No users found for event {event_id}")


class ConflictError(DomainError):
    """Resource conflict error."""


class ValidationFailure(DomainError):
    """Request content rejected before any write."""


class AuthorizationError(DomainError):
    """Authorization error."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)
