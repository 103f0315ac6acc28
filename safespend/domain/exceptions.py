"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotificationServiceError(DomainException):
    """Platform notification service returned an error or is unavailable"""

    pass


class PermissionNotGrantedError(DomainException):
    """User has not allowed local notifications"""

    pass
