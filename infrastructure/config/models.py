"""Configuration models (Pydantic classes)."""

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from infrastructure.constants import DEFAULT_PER_PAGE, GRAPHQL_PATH, REST_PREFIX, STATE_FILE


class ClientConfig(BaseModel):
    """
    Connection configuration.
    - Loaded from client.yaml
    - Environment variables override file values (see loader)
    - Consumed by the HTTP/GraphQL clients and the taxonomy service
    """

    base_url: str = Field(..., description="Server root, e.g. https://foreman.example.com")
    rest_prefix: str = Field(default=REST_PREFIX, description="Versioned REST base path.")
    graphql_path: str = Field(
        default=GRAPHQL_PATH,
        description="GraphQL endpoint path (root-level, not under the REST prefix).",
    )
    graphql_enabled: bool = Field(
        default=True,
        description="If False, every read goes straight to REST.",
    )

    # Auth: a token (PAT or base64 "user:password") or explicit basic credentials
    token: str | None = None
    username: str | None = None
    password: str | None = None

    timeout_s: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True
    per_page: int = Field(default=DEFAULT_PER_PAGE, gt=0)

    state_file: Path = Field(
        default_factory=lambda: STATE_FILE,
        description="Where the current selection is persisted between runs.",
    )

    @property
    def rest_base_url(self) -> str:
        return f"{self.base_url}{self.rest_prefix}"

    @model_validator(mode="after")
    def _validate(self) -> "ClientConfig":
        self.base_url = self.base_url.strip().rstrip("/")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got {self.base_url!r}")

        for attr in ("rest_prefix", "graphql_path"):
            value = "/" + str(getattr(self, attr)).strip().strip("/")
            setattr(self, attr, value)

        if self.graphql_path.startswith(self.rest_prefix + "/"):
            raise ValueError("graphql_path must not live under rest_prefix")

        if (self.username is None) != (self.password is None):
            raise ValueError("username and password must be set together")

        if self.token is not None and not self.token.strip():
            self.token = None

        return self
