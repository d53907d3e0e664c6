"""Settings baked into every generated client, whatever the target."""

from pydantic import BaseModel, ConfigDict


class ClientDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeout_ms: int = 30000
    max_retries: int = 3
    auth_type: str = "none"
    api_key_header: str = "X-API-Key"
    backoff_base_ms: int = 1000
    backoff_cap_ms: int = 10000
    example_base_url: str = "https://api.example.com"


class EnvVars(BaseModel):
    """Environment variable names the generated config modules read."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "API_BASE_URL"
    timeout: str = "API_TIMEOUT"
    max_retries: str = "API_MAX_RETRIES"
    auth_type: str = "API_AUTH_TYPE"
    api_key: str = "API_KEY"
    bearer_token: str = "API_BEARER_TOKEN"
    username: str = "API_USERNAME"
    password: str = "API_PASSWORD"
    access_token: str = "API_ACCESS_TOKEN"
    auth_header_name: str = "API_AUTH_HEADER_NAME"


CLIENT_DEFAULTS = ClientDefaults()
ENV_VARS = EnvVars()
