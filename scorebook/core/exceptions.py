"""
Custom exceptions for the Scorebook platform.
"""

from typing import Optional, Any, Dict


class ScorebookException(Exception):
    """Base exception for all Scorebook-related errors."""
    
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(ScorebookException):
    """Raised when data validation fails."""
    pass


class AuthenticationError(ScorebookException):
    """Raised when a credential check fails."""
    pass


class ResourceNotFoundError(ScorebookException):
    """Raised when a requested subject, class or student is not found."""
    pass


class DuplicateEntityError(ScorebookException):
    """Raised when attempting to import a roster entry twice."""
    pass


class PersistenceError(ScorebookException):
    """Raised when persistence operations fail."""
    pass


class NetworkError(ScorebookException):
    """Raised when network operations fail."""
    pass


class ConfigurationError(ScorebookException):
    """Raised when configuration is invalid."""
    pass
