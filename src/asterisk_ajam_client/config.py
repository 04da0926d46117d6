"""Configuration schemas for the Asterisk AJAM client."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt


class Credentials(BaseModel):
    """Manager account credentials sent with the ``Login`` action."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str = Field(..., min_length=1, description="AMI account username")
    password: str = Field(..., min_length=1, description="AMI account secret")


class ManagerEndpoint(BaseModel):
    """Location of the Asterisk HTTP manager bridge."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = Field(..., min_length=1, description="Hostname or address of the PBX")
    port: PositiveInt = Field(default=8088, le=65535, description="Asterisk HTTP server port")
    scheme: Literal["http", "https"] = Field(
        default="http", description="URL scheme used to reach the bridge"
    )

    @property
    def base_url(self) -> str:
        """Return the root URL under which ``mxml`` and ``rawman`` are served."""
        return f"{self.scheme}://{self.host}:{self.port}/"


class HttpClientConfig(BaseModel):
    """HTTP client tuning parameters for manager requests."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: PositiveFloat = Field(
        default=10.0, description="Per-request timeout in seconds, independent of the caller"
    )
    user_agent: str = Field(
        default="asterisk-ajam-client/0.1", description="User-Agent header for outbound requests"
    )
    max_connections: PositiveInt = Field(
        default=1, description="Connection pool size; one request is in flight at a time"
    )


class PollerConfig(BaseModel):
    """Runtime tuning for polling, retries, stall detection and the session window."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    poll_interval: PositiveFloat = Field(
        default=2.0, description="Seconds between status refresh cycles"
    )
    stall_threshold: PositiveFloat = Field(
        default=5.0,
        description="Age in seconds after which the in-flight request is considered stalled",
    )
    max_attempts: PositiveInt = Field(
        default=3, description="Transport attempts per task before it is abandoned"
    )
    session_window: PositiveFloat = Field(
        default=60.0,
        description="Seconds of validity granted to the session by each successful response",
    )


class ManagerSettings(BaseModel):
    """Everything required to start a client, typically resolved from the environment."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    endpoint: ManagerEndpoint
    credentials: Credentials
    poll_interval: PositiveFloat = 2.0

    @classmethod
    def from_environment(cls, *, env: Mapping[str, str] | None = None) -> ManagerSettings:
        """Build settings from environment variables.

        Recognised variables:
            - ``ASTERISK_AMI_HTTP_HOST`` (required)
            - ``ASTERISK_AMI_HTTP_PORT`` (integer, defaults to 8088)
            - ``ASTERISK_AMI_USERNAME`` (required)
            - ``ASTERISK_AMI_PASSWORD`` (required)
            - ``ASTERISK_REFRESH_INTERVAL`` (seconds, defaults to 2)

        Raises:
            ValueError: If a required key is missing or a numeric value is malformed.

        """
        source = dict(os.environ if env is None else env)
        required = ("ASTERISK_AMI_HTTP_HOST", "ASTERISK_AMI_USERNAME", "ASTERISK_AMI_PASSWORD")
        missing = [key for key in required if not source.get(key)]
        if missing:
            raise ValueError(f"Missing configuration keys: {', '.join(missing)}")

        raw_port = source.get("ASTERISK_AMI_HTTP_PORT", "8088")
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ValueError("ASTERISK_AMI_HTTP_PORT must be an integer") from exc

        raw_interval = source.get("ASTERISK_REFRESH_INTERVAL", "2")
        try:
            interval = float(raw_interval)
        except ValueError as exc:
            raise ValueError("ASTERISK_REFRESH_INTERVAL must be a number of seconds") from exc

        return cls(
            endpoint=ManagerEndpoint(host=source["ASTERISK_AMI_HTTP_HOST"], port=port),
            credentials=Credentials(
                username=source["ASTERISK_AMI_USERNAME"],
                password=source["ASTERISK_AMI_PASSWORD"],
            ),
            poll_interval=interval,
        )
