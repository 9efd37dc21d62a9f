"""Custom exceptions for the application."""


class PresenceError(Exception):
    """Base exception for presence-related errors."""
    pass


class RoutingError(PresenceError):
    """Per-connection error reported back to the originating connection."""
    pass


class JoinRejectedError(RoutingError):
    """Exception raised when a join names an empty or unknown identity."""
    pass


class NotJoinedError(RoutingError):
    """Exception raised when an unjoined connection tries to send a direct message."""
    pass


class RecipientOfflineError(RoutingError):
    """Exception raised when a direct message targets an identity with no live connection."""
    pass


class RegistryError(PresenceError):
    """Exception raised for registry contract violations."""
    pass


class UnknownIdentityError(RegistryError):
    """Exception raised when binding an identity that was never registered."""
    pass


class ConnectionStateError(PresenceError):
    """Exception raised when the transport reports an impossible lifecycle event."""
    pass


class AccountError(PresenceError):
    """Base exception for account store errors."""
    pass


class InvalidCredentialsError(AccountError):
    """Exception raised when a username or password is missing."""
    pass


class AccountExistsError(AccountError):
    """Exception raised when registering a username that is taken."""
    pass


class AuthenticationError(AccountError):
    """Exception raised when a login does not match a registered account."""
    pass


class ConfigError(PresenceError):
    """Exception raised for invalid configuration values."""
    pass
