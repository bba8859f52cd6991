# mentorship_hub/exceptions.py
class BusinessLogicError(Exception):
    """Base exception for business logic errors"""
    pass

class ValidationError(BusinessLogicError):
    """Raised when input is malformed (empty or too long content, bad role)"""
    pass

class NotFoundError(BusinessLogicError):
    """Raised when a resource is not found"""
    pass

class AuthorizationError(BusinessLogicError):
    """Raised when the actor lacks the identity or role for an operation"""
    pass

class InvalidStateTransitionError(BusinessLogicError):
    """Raised when a transition is not defined for the current status"""
    pass

class DuplicateRequestError(BusinessLogicError):
    """Raised when an open request (or edge) already exists for the pair"""
    pass

class StoreUnavailableError(BusinessLogicError):
    """Raised when the backing store fails; the caller may retry"""
    pass
