"""Pydantic models for taxonomy entities, context snapshots and API envelopes."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

TaxonomyType = Literal["organization", "location"]


class TaxonomyEntity(BaseModel):
    """Organization or location as returned by either transport."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., gt=0, description="Positive numeric id (GraphQL ids are resolved before this point).")
    name: str
    title: str | None = Field(
        default=None,
        description="Full hierarchy path for nested entities (legacy convention, e.g. 'Europe / Berlin').",
    )
    description: str | None = None

    @property
    def display_name(self) -> str:
        return self.title or self.name


class EnhancedOrganization(TaxonomyEntity):
    """Organization with hierarchy and count metadata."""

    parent_id: int | None = None
    parent_name: str | None = None
    ancestry: str | None = None
    label: str | None = None
    hosts_count: int | None = None
    users_count: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


class EnhancedLocation(TaxonomyEntity):
    """Location with hierarchy and count metadata."""

    parent_id: int | None = None
    parent_name: str | None = None
    ancestry: str | None = None
    label: str | None = None
    hosts_count: int | None = None
    users_count: int | None = None
    # Organizations this location is assigned to (empty when unknown)
    organizations: tuple[TaxonomyEntity, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None


class TaxonomyTreeNode(BaseModel):
    """One node of a taxonomy forest. `level` is the ancestor-chain length (0 for roots and cycles)."""

    entity: TaxonomyEntity
    children: list["TaxonomyTreeNode"] = Field(default_factory=list)
    level: int = Field(default=0, ge=0)
    expanded: bool = False
    selected: bool = False
    disabled: bool = False


class TaxonomySelection(BaseModel):
    """Serializable form of the current context (ids only)."""

    model_config = ConfigDict(frozen=True)

    organization_id: int | None = None
    location_id: int | None = None


class TaxonomyPermissions(BaseModel):
    """Capability flags supplied by the caller; everything is denied until set."""

    model_config = ConfigDict(frozen=True)

    can_view_organizations: bool = False
    can_edit_organizations: bool = False
    can_create_organizations: bool = False
    can_delete_organizations: bool = False
    can_view_locations: bool = False
    can_edit_locations: bool = False
    can_create_locations: bool = False
    can_delete_locations: bool = False
    can_switch_context: bool = False


class TaxonomyContext(BaseModel):
    """Current organization/location plus the sets they must belong to."""

    model_config = ConfigDict(frozen=True)

    organization: EnhancedOrganization | None = None
    location: EnhancedLocation | None = None
    available_organizations: tuple[EnhancedOrganization, ...] = ()
    available_locations: tuple[EnhancedLocation, ...] = ()
    is_loading: bool = False
    error: str | None = None

    @property
    def selection(self) -> TaxonomySelection:
        return TaxonomySelection(
            organization_id=self.organization.id if self.organization else None,
            location_id=self.location.id if self.location else None,
        )


class TaxonomyValidation(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TaxonomyBreadcrumb(BaseModel):
    id: int
    name: str
    path: str
    type: TaxonomyType


class SortSpec(BaseModel):
    by: str | None = None
    order: str | None = None


ResultT = TypeVar("ResultT")


class PaginatedResponse(BaseModel, Generic[ResultT]):
    """REST pagination envelope; also the shape GraphQL results are normalized into."""

    results: list[ResultT] = Field(default_factory=list)
    total: int = 0
    subtotal: int = 0
    page: int = 1
    per_page: int = 0
    search: str | None = None
    sort: SortSpec | None = None
    can_create: bool | None = None


class GraphQLError(BaseModel):
    message: str
    locations: list[dict[str, int]] | None = None
    path: list[str | int] | None = None
    extensions: dict[str, Any] | None = None


class GraphQLResponse(BaseModel):
    data: dict[str, Any] | None = None
    errors: list[GraphQLError] | None = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
