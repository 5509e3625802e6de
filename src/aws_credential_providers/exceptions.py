#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Sequence


class CredentialsError(Exception):
    """Base exception type for all exceptions raised in credential resolution."""


class MissingCredentialsError(CredentialsError):
    """A source had no usable credential material.

    Raised for unset environment variables, absent files or profiles, and documents
    without the required fields.
    """


class ProfileFileNotFoundError(MissingCredentialsError):
    """The shared credentials or config file does not exist or can't be read."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Cannot read credentials from {filename}: file not found")
        self.filename = filename


class ProfileNotFoundError(MissingCredentialsError):
    """The requested profile section is not present in the file."""

    def __init__(self, profile: str, filename: str) -> None:
        super().__init__(f"'{profile}' not found in credentials file {filename}")
        self.profile = profile
        self.filename = filename


class SourceUnavailableError(CredentialsError):
    """A network-backed source could not be reached or timed out."""


class MalformedDataError(CredentialsError):
    """A file or response could not be parsed into the expected shape."""


class ChainExhaustedError(CredentialsError):
    """Every resolver in a chain failed.

    The individual failures are kept, in the order they were attempted, so callers
    can see why each source was skipped.
    """

    def __init__(self, causes: Sequence[tuple[str, CredentialsError]]) -> None:
        self.causes: tuple[tuple[str, CredentialsError], ...] = tuple(causes)
        details = "; ".join(f"{name}: {error}" for name, error in self.causes)
        super().__init__(
            f"Unable to resolve credentials from any of {len(self.causes)} "
            f"source(s): {details}"
        )

    @property
    def errors(self) -> list[CredentialsError]:
        """The underlying errors in attempt order."""
        return [error for _, error in self.causes]
