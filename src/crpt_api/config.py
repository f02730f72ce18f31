# ABOUTME: Configuration loading and validation for crpt-api.
# ABOUTME: Parses config.yaml into a validated Config dataclass.

from dataclasses import dataclass, fields
from pathlib import Path
import os
import yaml

from .concurrency import RateLimit, TimeUnit
from .crpt import DEFAULT_CONNECT_TIMEOUT, DEFAULT_ENDPOINT, DEFAULT_READ_TIMEOUT
from .errors import InvalidConfiguration

DEFAULT_SIGNATURE_ENV = "CRPT_SIGNATURE"


@dataclass
class Config:
    """Settings for a CrptApi client."""
    request_limit: int
    time_unit: TimeUnit = TimeUnit.SECONDS
    window_size: int = 1
    endpoint: str = DEFAULT_ENDPOINT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    signature_env: str = DEFAULT_SIGNATURE_ENV

    def __post_init__(self):
        self.time_unit = TimeUnit.parse(self.time_unit)
        # Raises InvalidConfiguration for non-positive limits or windows
        RateLimit.per(self.time_unit, self.request_limit, units=self.window_size)

        if not isinstance(self.endpoint, str) or not self.endpoint.startswith(("http://", "https://")):
            raise InvalidConfiguration(f"endpoint must be an http(s) URL, got {self.endpoint!r}")
        for name in ("connect_timeout", "read_timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise InvalidConfiguration(f"{name} must be a positive number, got {value!r}")

    @property
    def rate_limit(self) -> RateLimit:
        return RateLimit.per(self.time_unit, self.request_limit, units=self.window_size)

    def get_signature(self) -> str:
        """Retrieve the document signature from the environment."""
        signature = os.environ.get(self.signature_env)
        if not signature:
            raise InvalidConfiguration(f"Environment variable '{self.signature_env}' not set")
        return signature


def load_config(path: Path) -> Config:
    """Load and validate configuration from a YAML file."""
    if not path.exists():
        raise InvalidConfiguration(f"Config file not found: {path}")

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise InvalidConfiguration(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise InvalidConfiguration(f"Invalid YAML in config file: {e}")

    if not isinstance(raw, dict):
        raise InvalidConfiguration("Config file must contain a YAML mapping")

    if "request_limit" not in raw:
        raise InvalidConfiguration("Missing required config field: request_limit")

    known = {f.name for f in fields(Config)}
    unknown = sorted(map(str, set(raw) - known))
    if unknown:
        raise InvalidConfiguration(f"Unknown config field(s): {', '.join(unknown)}")

    return Config(**raw)
