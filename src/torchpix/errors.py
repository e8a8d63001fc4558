"""
Exception types for torchpix.

All errors derive from ValueError so callers that catch the builtin keep
working.
"""


class HealpixError(ValueError):
    """Base class for pixelization errors."""


class InvalidResolutionError(HealpixError):
    """NSIDE is not a usable resolution for the requested scheme."""

    def __init__(self, nside, reason: str):
        self.nside = nside
        self.reason = reason
        super().__init__(f"invalid nside {nside!r}: {reason}")


class InvalidPixelError(HealpixError):
    """A pixel index lies outside [0, npix) for the given NSIDE."""

    def __init__(self, nside: int, npix: int):
        self.nside = nside
        self.npix = npix
        super().__init__(f"pixel index out of range [0, {npix}) for nside {nside}")
