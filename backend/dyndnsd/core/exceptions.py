"""
Custom exceptions for the DynDNS server
"""

from typing import Any, Dict, List, Optional


class DynDNSException(Exception):
    """Base exception for DynDNS server operations"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None
    ):
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []
        super().__init__(self.message)


class ConfigurationException(DynDNSException):
    """Exception for configuration errors"""
    pass


class AuthenticationException(DynDNSException):
    """Exception for rejected or malformed HTTP Basic credentials"""

    def __init__(
        self,
        message: str,
        username: Optional[str] = None,
        malformed: bool = False,
        details: Optional[Dict[str, Any]] = None
    ):
        self.username = username
        self.malformed = malformed
        super().__init__(message, details)


class PersistenceException(DynDNSException):
    """Exception for failures to durably save the host database"""
    pass


class PropagationException(DynDNSException):
    """Exception for failures to regenerate or reload the DNS zone"""
    pass
