"""certexpiry - days left on the TLS certificate chains your services present."""

from certexpiry.version import __version__

__all__ = ["__version__"]
