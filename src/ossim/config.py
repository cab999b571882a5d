"""Configuration for the ossim simulator and dashboard."""

from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

PROCESS_NAMES: tuple[str, ...] = (
    "chrome.exe",
    "code.exe",
    "node.exe",
    "python.exe",
    "explorer.exe",
    "firefox.exe",
    "docker.exe",
    "postgres.exe",
    "mysql.exe",
    "nginx.exe",
    "java.exe",
    "teams.exe",
    "slack.exe",
    "spotify.exe",
    "system",
)


class MonitorConfig(BaseSettings):
    """
    Constants consumed by the simulator, the responder and the dashboard.

    Every field can be set as a keyword or through an OSSIM_<FIELD_NAME>
    environment variable, e.g. OSSIM_CPU_ALERT_THRESHOLD=70. Keywords win.
    Values that do not parse or fall outside their range raise a pydantic
    ValidationError at construction; nothing falls back to a default.
    """

    model_config = SettingsConfigDict(
        env_prefix="OSSIM_",
        frozen=True,
        extra="forbid",
        allow_inf_nan=False,
    )

    # Monitoring
    update_interval_ms: int = Field(2000, gt=0, description="Milliseconds between ticks.")
    cpu_alert_threshold: float = Field(85.0, gt=0, le=100)
    memory_alert_threshold: float = Field(85.0, gt=0, le=100)
    max_processes_display: int = Field(8, gt=0)

    # Simulated hardware
    core_count: int = Field(8, gt=0)
    cpu_frequency_ghz: float = Field(3.5, gt=0)
    total_memory_gb: float = Field(16.0, gt=0)
    disk_size_gb: float = Field(512.0, gt=0)

    # Seed values and walk bounds
    initial_cpu_percent: float = Field(35.0, ge=0, le=100)
    initial_memory_used_gb: float = Field(8.5, ge=0)
    disk_usage_percent: float = Field(45.0, ge=0, le=100)
    cpu_floor_percent: float = Field(5.0, ge=0, le=100)
    cpu_ceiling_percent: float = Field(95.0, ge=0, le=100)
    memory_floor_gb: float = Field(2.0, ge=0)
    memory_ceiling_gb: float = Field(14.0, ge=0)

    # Progress bar colouring
    warning_threshold: float = Field(60.0, ge=0, le=100)
    danger_threshold: float = Field(80.0, ge=0, le=100)

    # Chat
    typing_delay_min_ms: int = Field(1000, ge=0)
    typing_delay_max_ms: int = Field(2000, ge=0)
    max_message_length: int = Field(500, gt=0)

    # Comma-separated in the environment: OSSIM_PROCESS_NAMES=init,sshd,bash
    process_names: Annotated[tuple[str, ...], NoDecode] = Field(PROCESS_NAMES, min_length=1)

    @field_validator("process_names", mode="before")
    @classmethod
    def split_process_names(cls, v):
        """Accept a comma-separated string as well as a sequence."""
        if isinstance(v, str):
            return tuple(name.strip() for name in v.split(",") if name.strip())
        return v

    @model_validator(mode="after")
    def check_bounds(self) -> "MonitorConfig":
        """Cross-field checks that keep the random walks and percentages defined."""
        if self.cpu_floor_percent > self.cpu_ceiling_percent:
            raise ValueError("cpu_floor_percent must not exceed cpu_ceiling_percent")
        if not self.cpu_floor_percent <= self.initial_cpu_percent <= self.cpu_ceiling_percent:
            raise ValueError("initial_cpu_percent must lie within the cpu walk bounds")

        if self.memory_floor_gb > self.memory_ceiling_gb:
            raise ValueError("memory_floor_gb must not exceed memory_ceiling_gb")
        if self.memory_ceiling_gb > self.total_memory_gb:
            raise ValueError(
                f"memory_ceiling_gb ({self.memory_ceiling_gb}) exceeds "
                f"total_memory_gb ({self.total_memory_gb})"
            )
        if not self.memory_floor_gb <= self.initial_memory_used_gb <= self.memory_ceiling_gb:
            raise ValueError("initial_memory_used_gb must lie within the memory walk bounds")

        if self.typing_delay_min_ms > self.typing_delay_max_ms:
            raise ValueError("typing_delay_min_ms must not exceed typing_delay_max_ms")
        return self

    @property
    def update_interval(self) -> float:
        """Update interval in seconds."""
        return self.update_interval_ms / 1000
