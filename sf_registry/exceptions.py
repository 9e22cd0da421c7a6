"""Custom exceptions for sf-registry."""

from __future__ import annotations

from pathlib import Path


class RegistryError(Exception):
    """Base exception for all registry packaging errors."""


class ProjectRootNotFoundError(RegistryError):
    """Raised when no sfdx-project.json is found above the working directory."""

    def __init__(self, start: Path):
        self.start = start
        super().__init__(f"Cannot find the project root (sfdx-project.json) above {start}")


class ScanError(RegistryError):
    """Raised when a source root exists but cannot be listed."""

    def __init__(self, root: Path, reason: str):
        self.root = root
        super().__init__(f"Error while reading directory '{root}': {reason}")


class ForbiddenFileError(RegistryError):
    """Raised when an artifact directory contains a denylisted file."""

    def __init__(self, path: Path, extension: str):
        self.path = path
        self.extension = extension
        super().__init__(f"Forbidden file detected: {path}. Refused extension: {extension}")


class ResourceValidationError(RegistryError):
    """Base class for static resource validation failures."""

    def __init__(self, resource: str, message: str):
        self.resource = resource
        super().__init__(message)


class MissingResourceError(ResourceValidationError):
    """Raised when a referenced static resource has no payload file."""

    def __init__(self, resource: str):
        super().__init__(resource, f'Static resource "{resource}" is referenced but not found.')


class MissingResourceDescriptorError(ResourceValidationError):
    """Raised when a static resource has no .resource-meta.xml sidecar."""

    def __init__(self, resource: str):
        super().__init__(
            resource, f'Missing .resource-meta.xml file for static resource "{resource}".'
        )


class UnresolvedDirectoryError(RegistryError):
    """Raised when a class name has no known source directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'No directory found for class "{name}".')


class UnknownArtifactError(RegistryError):
    """Raised when the requested root artifact does not exist in the project."""

    def __init__(self, artifact_type: str, name: str):
        self.artifact_type = artifact_type
        self.name = name
        super().__init__(f'No {artifact_type} named "{name}" in the project.')


class MissingRootInputError(RegistryError):
    """Raised when version/description are neither given nor found in registry-meta.json."""


class InvalidRootInputError(RegistryError):
    """Raised when the root version or description fails validation."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f'Invalid version/description for "{name}": {reason}')


class UnrecognizedArtifactError(RegistryError):
    """Raised when an extracted directory is neither a class nor a component."""

    def __init__(self, directory: Path):
        self.directory = directory
        super().__init__(f"Unrecognized source type in directory {directory}")


class ArchiveError(RegistryError):
    """Base class for archives that cannot be unpacked."""


class InvalidArchiveError(ArchiveError):
    """Raised when the downloaded file is not a readable ZIP archive."""

    def __init__(self, archive: Path, reason: str):
        self.archive = archive
        super().__init__(f"Invalid archive {archive}: {reason}")


class UnsafeArchiveError(ArchiveError):
    """Raised when an archive member would be written outside the extraction root."""

    def __init__(self, member: str):
        self.member = member
        super().__init__(f"Archive member escapes the extraction directory: {member}")


class TransportError(RegistryError):
    """Raised when the registry answers with a non-success HTTP status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body}")


class RegistryConnectionError(RegistryError):
    """Raised when no HTTP response could be obtained from the registry."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Network error while contacting {url}: {reason}")


class AuthError(RegistryError):
    """Authentication failure reported by the registry client.

    ``code`` is one of ``no_token``, ``token_expired`` or ``token_invalid``.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        super().__init__(message)
