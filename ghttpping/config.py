from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "ghttpping"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    CORS_ORIGINS: str = "http://localhost:1420"

    # Dual-stack probe: hard upper bound for one family's request
    PROBE_TIMEOUT: float = 10.0

    # Egress echo service, one hostname per address family
    IPV4_ECHO_URL: str = "https://getipv4.0nyx.net/json"
    IPV6_ECHO_URL: str = "https://getipv6.0nyx.net/json"
    EGRESS_TIMEOUT: float = 2.0

    DNS_CHECK_HOSTNAME: str = "example.com"
    DNS_RESOLVE_TIMEOUT: float = 5.0
    DNS_SERVER_TIMEOUT: float = 5.0

    # OS command output is decoded with this codec before parsing
    COMMAND_ENCODING: str = "cp932"
    COMMAND_TIMEOUT: float = 15.0

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
