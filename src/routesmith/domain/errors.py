from __future__ import annotations

from typing import Optional


class SynthesisError(Exception):
    """Raised when a service model cannot be turned into a route table."""

    def __init__(
        self,
        message: str,
        *,
        resource: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        self.message = message
        self.resource = resource
        self.operation = operation
        super().__init__(str(self))

    def __str__(self) -> str:
        where = []
        if self.resource:
            where.append(f"resource={self.resource}")
        if self.operation:
            where.append(f"operation={self.operation}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class InvalidModelError(SynthesisError):
    pass


class RouteCollisionError(SynthesisError):
    def __init__(
        self,
        message: str,
        *,
        field: str,
        value: str,
        resource: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message, resource=resource, operation=operation)


class ModelLoadError(Exception):
    pass
