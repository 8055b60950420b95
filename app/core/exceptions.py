"""
Custom exceptions for the application
"""
from typing import Dict, List, Optional


class BaseAppException(Exception):
    """Base application exception"""
    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(BaseAppException):
    """Raised when validation fails"""
    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None, details: str = None):
        super().__init__(message, details)
        self.field_errors = field_errors or {}


class BusinessLogicError(BaseAppException):
    """Raised when business logic constraints are violated"""
    pass


class DuplicateEntryError(BusinessLogicError):
    """Raised when an email is already on the waitlist"""
    pass


class RegistrationClosedError(BusinessLogicError):
    """Raised when submissions are disabled by configuration"""
    pass


class DatabaseError(BaseAppException):
    """Raised when database operations fail"""
    pass


class StoreUnavailableError(DatabaseError):
    """Raised when no waitlist store is configured or reachable"""
    pass


class StoreConfigurationError(DatabaseError):
    """Raised when store credentials are present but unusable"""
    pass


class ExternalServiceError(BaseAppException):
    """Raised when external service calls fail"""
    pass


class EmailConfigurationError(ExternalServiceError):
    """Raised when the selected email provider is missing settings"""
    pass


class EmailDeliveryError(ExternalServiceError):
    """Raised when the email provider rejects or fails a send"""
    pass
