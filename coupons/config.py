"""
Configuration management for the coupon service.

Loads settings from a YAML config file, with environment overrides.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of the coupons package)."""
    return Path(__file__).resolve().parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class CouponConfig:
    """Configuration for the coupon service."""

    host: str = "0.0.0.0"
    port: int = 8000

    api_prefix: str = "/api"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Load WELCOME100, FESTIVE50P, ELECTRO10 and EXCLUDE-FASHION on startup
    seed_coupons: bool = True

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "CouponConfig":
        """Load configuration from YAML file, then apply env overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        server_config = data.get('server', {})
        api_config = data.get('api', {})
        coupons_config = data.get('coupons', {})

        config = cls(
            host=server_config.get('host', '0.0.0.0'),
            port=int(server_config.get('port', 8000)),
            api_prefix=api_config.get('prefix', '/api'),
            cors_origins=list(api_config.get('cors_origins', ['*'])),
            seed_coupons=bool(coupons_config.get('seed', True)),
        )
        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override fields from HOST / PORT environment variables."""
        if os.getenv("HOST"):
            self.host = os.environ["HOST"]
        if os.getenv("PORT"):
            self.port = int(os.environ["PORT"])


# Global config instance
_config: Optional[CouponConfig] = None


def get_config() -> CouponConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = CouponConfig.from_yaml()
    return _config


def set_config(config: CouponConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
