"""Microsoft Graph mail configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_DEFAULT_SCOPE = "https://graph.microsoft.com/.default"
DEFAULT_BRAND_NAME = "Estados Procesales"


def _default_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="graph-mail",
        base_url=GRAPH_BASE_URL,
        timeout_seconds=30.0,
        retry=RetryPolicy(total=2),
        ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
        cache=None,
    )


@dataclass(frozen=True)
class GraphMailConfig:
    tenant_id: str
    client_id: str
    client_secret: str
    from_address: str
    scope: str = GRAPH_DEFAULT_SCOPE
    brand_name: str = DEFAULT_BRAND_NAME
    resilience: ResilienceConfig = field(default_factory=_default_resilience)

    @property
    def token_url(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}/oauth2/v2.0/token"


def get_graph_mail_config() -> GraphMailConfig:
    values = require_env_vars(
        ("GRAPH_TENANT_ID", "GRAPH_CLIENT_ID", "GRAPH_CLIENT_SECRET", "MAIL_DEFAULT_FROM")
    )
    return GraphMailConfig(
        tenant_id=values["GRAPH_TENANT_ID"],
        client_id=values["GRAPH_CLIENT_ID"],
        client_secret=values["GRAPH_CLIENT_SECRET"],
        from_address=values["MAIL_DEFAULT_FROM"],
        scope=optional_env_var("GRAPH_SCOPE") or GRAPH_DEFAULT_SCOPE,
        brand_name=optional_env_var("MAIL_BRAND_NAME") or DEFAULT_BRAND_NAME,
    )
