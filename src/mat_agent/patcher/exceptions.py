"""Exceptions for patch operations."""


class PatchError(Exception):
    """Base exception for all patch operations."""


class MalformedDiffError(PatchError):
    """Raised when diff text cannot be parsed into valid hunks."""


class HunkMismatchError(PatchError):
    """Raised when a hunk's old lines are not found in the content."""


class ExternalPatchError(PatchError):
    """Raised when the external patch tool is missing, times out, or fails."""


class PatchConfigError(PatchError):
    """Raised when a setting is invalid: a missing or non-directory repository
    root, or a tab size or timeout that is not a positive integer.
    """
