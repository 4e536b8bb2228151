"""Error kinds raised (or logged) by the taxonomy context subsystem."""


class TaxonomyError(Exception):
    """Base class for taxonomy subsystem errors."""


class InvalidIdentifier(TaxonomyError, ValueError):
    """No numeric id could be extracted from a transport identifier."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class InvalidSelection(TaxonomyError, ValueError):
    """A selection refers to an entity outside the available set."""

    def __init__(self, message: str, *, field: str | None = None, entity_id: int | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.entity_id = entity_id


class TransportExhausted(TaxonomyError, RuntimeError):
    """Both GraphQL and REST failed for one logical read."""

    def __init__(
        self,
        operation: str,
        *,
        graphql_error: BaseException | str | None = None,
        rest_error: BaseException | None = None,
    ) -> None:
        super().__init__(f"All transports failed for '{operation}': graphql={graphql_error!s}; rest={rest_error!s}")
        self.operation = operation
        self.graphql_error = graphql_error
        self.rest_error = rest_error


class CycleDetected(UserWarning):
    """Warning category for self-referential ancestor chains (never raised)."""
