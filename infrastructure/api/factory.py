"""Factory wiring the HTTP clients, the dual-transport executor and the taxonomy API."""

import logging
from dataclasses import dataclass

import httpx

from domain.context.store import TaxonomyStore
from infrastructure.api.client import ForemanClient
from infrastructure.api.graphql import GraphQLClient
from infrastructure.api.scoped import TaxonomyAwareClient
from infrastructure.api.taxonomy import LocationsAPI, OrganizationsAPI, TaxonomyAPI
from infrastructure.config.models import ClientConfig
from infrastructure.transport.executor import DualTransportExecutor

logger = logging.getLogger(__name__)


@dataclass
class Clients:
    """
    Everything built from one ClientConfig.

    - base: unscoped client (auth, GraphQL, taxonomy lists)
    - scoped: same client with the current organization/location injected
    - taxonomy: organizations/locations API facade
    """

    base: ForemanClient
    graphql: GraphQLClient
    scoped: TaxonomyAwareClient
    executor: DualTransportExecutor
    taxonomy: TaxonomyAPI

    async def aclose(self) -> None:
        await self.base.aclose()


def make_clients(
    cfg: ClientConfig,
    store: TaxonomyStore,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Clients:
    """
    Build the client stack for `cfg`.

    Args:
        cfg: Connection configuration
        store: Store whose current context scopes `Clients.scoped`
        transport: Optional httpx transport (tests pass an `httpx.MockTransport`)
    """
    base = ForemanClient.from_cfg(cfg, transport=transport)
    graphql = GraphQLClient(base, path=cfg.graphql_path)
    executor = DualTransportExecutor(graphql, base, graphql_enabled=cfg.graphql_enabled)

    # Taxonomy lists themselves must not be filtered by the current selection
    api_kwargs = {"rest_prefix": cfg.rest_prefix, "per_page": cfg.per_page}
    taxonomy = TaxonomyAPI(
        OrganizationsAPI(base, executor, **api_kwargs),
        LocationsAPI(base, executor, **api_kwargs),
    )

    logger.debug(
        "Clients ready (base_url=%s, graphql=%s)",
        cfg.base_url,
        cfg.graphql_path if cfg.graphql_enabled else "disabled",
    )
    return Clients(
        base=base,
        graphql=graphql,
        scoped=TaxonomyAwareClient(base, lambda: store.context),
        executor=executor,
        taxonomy=taxonomy,
    )
