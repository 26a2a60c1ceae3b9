import re
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .apikey import read_api_key

DEFAULT_PREFIX = "dnsdist"
DEFAULT_CONFIG_FILE = Path("/etc/dnsdist/dnsdist.conf")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"(?:{_DURATION_PART})+")


def parse_duration(value: Union[str, int, float]) -> float:
    """Convert a duration such as ``30s``, ``1m30s`` or ``250ms`` to seconds.

    Bare numbers are taken as seconds.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if text == "0":
            return 0.0
        if not _DURATION_RE.fullmatch(text):
            raise ValueError(f"invalid duration {value!r}")
        seconds = sum(
            float(amount) * _DURATION_UNITS[unit]
            for amount, unit in re.findall(_DURATION_PART, text)
        )
    if seconds < 0:
        raise ValueError(f"duration must not be negative: {value!r}")
    return seconds


def join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DNSDIST_")

    prefix: str = Field(DEFAULT_PREFIX, description="Metric key prefix.")
    hostname: str = Field("127.0.0.1", description="dnsdist webserver host.")
    port: str = Field("8083", description="dnsdist webserver port.")
    timeout: float = Field(
        30.0, description="Timeout in seconds for every phase of the stats request."
    )
    api_key: Optional[str] = Field(
        None, description="Value sent in the X-API-Key header."
    )
    config_file: Path = Field(
        DEFAULT_CONFIG_FILE,
        description="dnsdist configuration scanned for an apiKey when none is given.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "WARNING", description="Python logging level name."
    )

    @field_validator("prefix")
    def default_empty_prefix(cls, value: str) -> str:
        return value or DEFAULT_PREFIX

    @field_validator("timeout", mode="before")
    def convert_duration(cls, value: Union[str, int, float]) -> float:
        return parse_duration(value)

    @field_validator("log_level", mode="before")
    def normalise_log_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value

    @property
    def url(self) -> str:
        return f"http://{join_host_port(self.hostname, self.port)}/jsonstat?command=stats"


def resolve_api_key(settings: Settings) -> str:
    """Return the explicit key, falling back to the one in the dnsdist config."""
    if settings.api_key:
        return settings.api_key
    return read_api_key(settings.config_file)
