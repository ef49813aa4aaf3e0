"""
Network Module
Provides HTTP implementations of the pipeline's collaborators.
"""

from .client import HttpFetcher, ApiPageSource

__all__ = [
    'HttpFetcher',
    'ApiPageSource',
]
