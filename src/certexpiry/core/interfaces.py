"""Abstract interfaces for chain retrieval."""

from abc import ABC, abstractmethod

from certexpiry.models import Target


class IChainRetriever(ABC):
    """Fetches the certificate chain a service presents."""

    @abstractmethod
    def retrieve(self, target: Target) -> list[bytes]:
        """Return the presented chain as PEM blobs, leaf first.

        Raises:
            HostnameMismatchError: verification was requested and the leaf
                does not cover the target host.
            RetrievalError: on any network, upgrade or handshake failure.
        """
        ...
