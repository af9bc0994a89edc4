"""Custom exceptions for libvirt-ignition."""

from __future__ import annotations

from typing import List, Optional


class IgnitionError(RuntimeError):
    """Raised on unrecoverable configuration or provisioning errors."""


class InvalidConfiguration(IgnitionError):
    """Payload is neither a readable file nor a JSON object, or a setting is invalid."""


class SecretNotFound(IgnitionError):
    pass


class SecretFieldMissing(IgnitionError):
    pass


class PayloadIOError(IgnitionError):
    """Temporary file creation or copy failed."""


class UploadFailure(IgnitionError):
    """Size probe or storage pool registration failed."""


class DomainDefinitionError(IgnitionError):
    pass


class ProtocolParseFailure(IgnitionError):
    """Unexpected text from the disk tool at handle capture or filesystem lookup."""


class SessionStateError(IgnitionError):
    """A guestfish session step was called out of order."""


class ExternalToolFailure(IgnitionError):
    """Non-zero exit or launch failure of an external command."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        output: str = "",
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.output = output
        self.step = step
