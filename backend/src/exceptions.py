class DomainError(Exception):
    """Base exception class for all domain-specific exceptions."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ResourceNotFoundError(DomainError):
    """Exception raised when a requested entity is not found."""

    def __init__(self, resource_type: str, resource_id: object | None = None, message: str | None = None) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        if message is None:
            message = (
                f"{resource_type} with ID {resource_id} not found"
                if resource_id is not None
                else f"{resource_type} not found"
            )
        super().__init__(message)


class BadRequestError(DomainError):
    """Exception raised for requests the domain rules reject.

    Covers ownership checks, duplicate names, invalid toggle targets and
    constraint violations reported back to the caller.
    """
