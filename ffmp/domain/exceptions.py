"""
Defines custom exception types for FFMP.

Job-level problems (a missing encoder binary, a nonzero exit code, an unexpected
error inside a worker) are never raised out of the orchestrator; they are turned
into `JobResult` values. The exceptions below cover the conditions that prevent
a run from starting at all.

All custom exceptions inherit from the base `FfmpException`.
"""


class FfmpException(Exception):
    """Base class for all custom exceptions in FFMP."""

    pass


class ConfigurationException(FfmpException):
    """
    Raised when a `Configuration` is invalid.

    Examples are a thread count below one, a missing codec or output pattern
    outside conversion mode, or both input sources being populated at once.
    """

    pass


class InputDiscoveryException(FfmpException):
    """
    Raised when the list of input files cannot be produced.

    This happens when the input directory or the input list file does not exist
    or cannot be read.
    """

    pass
