"""
Domain exceptions.

Typed exceptions for explicit error handling.
Core computations never raise these; they are raised by adapters and
application services and caught at the enrichment boundary.
"""

from __future__ import annotations


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    Allows catching all domain errors with single except clause.
    """

    pass


# ═══════════════════════════════════════════════════════════
# MEAL DOMAIN EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class MealDomainError(DomainError):
    """Base exception for meal domain."""

    pass


class EstimationError(MealDomainError):
    """
    AI nutrition estimation failed.

    Raised when:
    - Vision provider returns a non-2xx response
    - Provider is not configured

    Example:
        >>> raise EstimationError("Vision request failed: 502")
    """

    pass


class ProductLookupError(MealDomainError):
    """
    Product database search failed.

    Raised when:
    - OpenFoodFacts search returns an error
    - Search payload cannot be decoded

    Example:
        >>> raise ProductLookupError("Search failed for 'Acme Protein Bar'")
    """

    pass


class MealNotFoundError(MealDomainError):
    """
    Meal log entry not found.

    Raised when:
    - Meal ID doesn't exist
    - Meal belongs to another user
    - Meal was deleted

    Example:
        >>> raise MealNotFoundError("Meal abc123 not found")
    """

    pass


# ═══════════════════════════════════════════════════════════
# ACTIVITY DOMAIN EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ActivityDomainError(DomainError):
    """Base exception for workout tracking."""

    pass


class WorkoutNotFoundError(ActivityDomainError):
    """
    Workout session not found.

    Example:
        >>> raise WorkoutNotFoundError("Workout w_1 not found")
    """

    pass


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(DomainError):
    """
    External service call failed.

    Base class for all external service errors.

    Example:
        >>> raise ExternalServiceError("OpenAI API failed: timeout")
    """

    pass


class RateLimitError(ExternalServiceError):
    """
    API rate limit exceeded.

    Example:
        >>> raise RateLimitError("OpenAI rate limit: 100 requests/hour")
    """

    pass


class TimeoutError(ExternalServiceError):  # noqa: A001
    """
    API call timed out.

    Example:
        >>> raise TimeoutError("OpenFoodFacts API timeout after 10s")
    """

    pass


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class InfrastructureError(DomainError):
    """
    Infrastructure layer error.

    Base class for storage errors.
    """

    pass


class RepositoryError(InfrastructureError):
    """
    Repository operation failed.

    Example:
        >>> raise RepositoryError("Meal store unavailable")
    """

    pass
