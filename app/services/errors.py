"""
Domain errors raised by the service layer.
The API maps them to HTTP status codes in one place (see main.py).
"""


class NotFoundError(LookupError):
    """A referenced entity does not exist (404)"""


class BusinessRuleError(ValueError):
    """A request violates a domain rule or referential-integrity precondition (400)"""


class PermissionDeniedError(PermissionError):
    """The caller is authenticated but outside the row's scope (403)"""
