from typing import Any
from pydantic import ValidationError


class NeighborhoodResolutionError(Exception):
    """Base class for failures while picking a best neighborhood."""


class NoCandidatesError(NeighborhoodResolutionError):
    """No neighborhood can represent the batch (empty candidates or empty tie set)."""

    def __init__(self, message: str = "No candidate neighborhoods to resolve"):
        super().__init__(message)


class DistanceResolutionError(NeighborhoodResolutionError):
    """A required pairwise distance could not be computed. Retryable by the caller."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DistanceProviderError(Exception):
    """Raised by a DistanceProvider when it cannot measure a pair of coordinates."""


class CentroidNotFoundError(LookupError):
    def __init__(self, name: str, city: str, state: str):
        self.name = name
        self.city = city
        self.state = state
        super().__init__(f"No centroid for neighborhood '{name}' ({city}, {state})")


class DataValidationError(Exception):
    def __init__(self, source: str, errors: list[dict[str, Any]], original: ValidationError | None = None):
        self.source = source
        self.errors = errors
        self.original = original
        msg = f"Validation failed for {len(errors)} records from source '{source}'"

        super().__init__(msg)

    def summary(self, limit: int=5) -> str:
        """Human-readable summary of the first few validation issues."""
        lines = []
        for err in self.errors[:limit]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            lines.append(f"- {loc}: {err.get('msg')} ({err.get('type')})")
        if len(self.errors) > limit:
            lines.append(f"... ({len(self.errors) - limit} more)")
        return "\n".join(lines)
