"""Supervisor tuning configuration model."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class SupervisorConfig(BaseModel):
    """Supervisor configuration section.

    The convergence wait is bounded by max_attempts * poll_interval.

    Attributes:
        poll_interval: Seconds between health polls while starting.
        max_attempts: Health polls before a start is declared timed out.
        settle_delay: Seconds to wait after `up` before the first poll.
        image_cache_ttl: Seconds a successful image check stays valid.
        port_check: Check host ports for conflicts before a stack start.
        http_fallback: Probe HTTP status endpoints when the native health
            signal is absent.
        http_timeout: Timeout in seconds for each HTTP probe.
        log_tail: Number of log lines fetched per service.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    poll_interval: float = Field(default=2.0, ge=0)
    max_attempts: int = Field(default=60, ge=1)
    settle_delay: float = Field(default=3.0, ge=0)
    image_cache_ttl: float = Field(default=3600.0, ge=0)
    port_check: bool = True
    http_fallback: bool = True
    http_timeout: float = Field(default=3.0, gt=0)
    log_tail: int = Field(default=100, ge=1)
