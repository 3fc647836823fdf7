"""
Exception hierarchy for hostcmd.

All errors are raised synchronously at the point of use. Nothing in this
package retries; retry policy belongs to whatever transport runs the
rendered command.
"""


class HostcmdError(Exception):
    """Base exception for hostcmd errors."""

    pass


class ConfigurationError(HostcmdError, ValueError):
    """Raised for invalid or incomplete connection/elevation configuration."""

    pass


class UnsupportedStateError(HostcmdError, RuntimeError):
    """Raised when a connection is requested in a state that cannot work."""

    pass


class CommandLineError(HostcmdError, ValueError):
    """Raised when a command line cannot be built, parsed or transformed."""

    pass


class ConnectionFailedError(HostcmdError):
    """Raised when the process carrying a command to a host fails to run."""

    def __init__(self, message: str, method: str = "ssh"):
        super().__init__(message)
        self.method = method
        self.suggestions = self._get_suggestions()

    def _get_suggestions(self):
        """Get transport-specific troubleshooting suggestions."""
        if self.method.startswith("ssh"):
            return [
                "Check SSH configuration in ~/.ssh/config",
                "Verify network connectivity and VPN if required",
                "Test connection manually: ssh hostname echo 'test'",
            ]
        return []
