"""
HTTP collaborators: the Foreman REST client, GraphQL client and the
taxonomy-scoped decorator.

The taxonomy API and the client factory live in `infrastructure.api.taxonomy`
and `infrastructure.api.factory` (they depend on the transport layer, which in
turn depends on this package).
"""

from infrastructure.api.base import HTTPClient
from infrastructure.api.client import APIError, ForemanClient
from infrastructure.api.graphql import GraphQLClient
from infrastructure.api.scoped import TaxonomyAwareClient

__all__ = [
    "HTTPClient",
    "APIError",
    "ForemanClient",
    "GraphQLClient",
    "TaxonomyAwareClient",
]
