"""Certificate chain retrieval: TCP, CONNECT proxy, STARTTLS and TLS."""

from certexpiry.retrieval.hostname import leaf_matches_host
from certexpiry.retrieval.proxy import open_tunnel
from certexpiry.retrieval.retriever import ChainRetriever
from certexpiry.retrieval.starttls import negotiate_starttls

__all__ = [
    "ChainRetriever",
    "leaf_matches_host",
    "negotiate_starttls",
    "open_tunnel",
]
