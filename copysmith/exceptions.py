"""Typed exceptions for the Copysmith generation flow."""


class CopysmithError(Exception):
    """Base exception for generation errors."""
    pass


class InputValidationError(CopysmithError):
    """Request rejected before any model call (empty required input)."""
    pass


class QuotaExceededError(InputValidationError):
    """Daily generation limit reached for this kind."""
    pass


class SourceResearchError(CopysmithError):
    """Failed to find, vet, format or verify sources."""
    pass


class GenerationError(CopysmithError):
    """Model call or stream failed while generating."""
    pass
