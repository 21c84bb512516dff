"""Exception hierarchy for cqkernel.

Every cqkernel exception inherits from CQKernelError, so a driver can catch
the whole family at once. Each class also carries a short ``kind`` string
that names the failure category for reporting.
"""


class CQKernelError(Exception):
    """Base exception for all cqkernel errors.

    Example:
        try:
            kernel = CQKernel(params)
        except CQKernelError as e:
            print(f"cannot build kernel ({e.kind}): {e}")
    """

    kind = "cqkernel_error"


class ConfigurationError(CQKernelError, ValueError):
    """Invalid kernel configuration.

    Raised when:
        - Required config fields are missing
        - A config file does not contain a mapping
    """

    kind = "configuration"


class InvalidParameterError(ConfigurationError):
    """A kernel parameter is outside its valid range."""

    kind = "invalid_parameter"


class InvalidGeometryError(ConfigurationError):
    """Derived kernel geometry is degenerate.

    Raised when:
        - The longest or shortest atom length rounds to zero
          (sample rate too low for the requested frequency and Q)
        - An atom would be placed outside the FFT frame
    """

    kind = "invalid_geometry"


class UnsupportedWindowError(ConfigurationError):
    """Window kind is reserved but not implemented, or unknown."""

    kind = "unsupported_window"


class InvalidWindowLengthError(CQKernelError, ValueError):
    """Requested window length is not positive."""

    kind = "invalid_window_length"


class EmptyKernelError(CQKernelError, RuntimeError):
    """Kernel holds no rows.

    Raised when:
        - Construction produced zero rows
        - A projection is invoked against such a kernel
    """

    kind = "empty_kernel"


__all__ = [
    "CQKernelError",
    "ConfigurationError",
    "InvalidParameterError",
    "InvalidGeometryError",
    "UnsupportedWindowError",
    "InvalidWindowLengthError",
    "EmptyKernelError",
]
