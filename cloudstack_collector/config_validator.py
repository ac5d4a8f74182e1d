"""
Configuration validation for the CloudStack collector
Validates CLOUDSTACK_* settings before the first collection cycle
"""
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from cloudstack_collector.cs_common import CFG

log = logging.getLogger(__name__)


class ConfigValidator:
    """Validates collector configuration on startup"""

    # CFG key -> (environment variable, description)
    REQUIRED_VARS = {
        "API_KEY": ("CLOUDSTACK_API_KEY", "CloudStack API key"),
        "SECRET_KEY": ("CLOUDSTACK_SECRET_KEY", "CloudStack secret key"),
    }

    # Optional with defaults
    OPTIONAL_VARS = {
        "CLOUDSTACK_API_URL": ("http://localhost:8080/client/api", "CloudStack API URL"),
        "CLOUDSTACK_VERIFY_SSL": ("true", "Verify TLS certificates"),
        "CLOUDSTACK_REQUEST_TIMEOUT": ("30", "Request timeout (seconds)"),
        "CLOUDSTACK_PAGE_SIZE": ("500", "Page size for list commands"),
        "CLOUDSTACK_POLL_INTERVAL": ("60", "Seconds between collection cycles"),
    }

    POSITIVE_INTS = {
        "REQUEST_TIMEOUT": "CLOUDSTACK_REQUEST_TIMEOUT",
        "PAGE_SIZE": "CLOUDSTACK_PAGE_SIZE",
        "POLL_INTERVAL": "CLOUDSTACK_POLL_INTERVAL",
    }

    @classmethod
    def validate(cls, cfg: Optional[Dict[str, Any]] = None) -> Tuple[bool, List[str], List[str]]:
        """
        Validate configuration
        Returns: (is_valid, errors, warnings)
        """
        cfg = cfg if cfg is not None else CFG
        errors = []
        warnings = []

        for key, (var, description) in cls.REQUIRED_VARS.items():
            value = cfg.get(key)
            if not value or not str(value).strip():
                errors.append(f"Missing required env var: {var} ({description})")

        for var, (default, description) in cls.OPTIONAL_VARS.items():
            value = os.getenv(var)
            if not value or value.strip() == "":
                warnings.append(f"Using default for {var}={default} ({description})")

        errors.extend(cls._validate_values(cfg))

        is_valid = len(errors) == 0
        return is_valid, errors, warnings

    @classmethod
    def _validate_values(cls, cfg: Dict[str, Any]) -> List[str]:
        errors = []

        for key, var in cls.POSITIVE_INTS.items():
            raw = cfg.get(key)
            try:
                if int(raw) < 1:
                    errors.append(f"{var} must be positive: {raw}")
            except (TypeError, ValueError):
                errors.append(f"{var} must be a number: {raw}")

        api_url = str(cfg.get("API_URL", ""))
        if not (api_url.startswith("http://") or api_url.startswith("https://")):
            errors.append("CLOUDSTACK_API_URL must start with http:// or https://")

        return errors

    @classmethod
    def log_validation_results(cls, is_valid: bool, errors: List[str], warnings: List[str]) -> bool:
        for warning in warnings:
            log.warning(warning)
        for error in errors:
            log.error(error)
        if is_valid:
            log.info("Configuration validation passed")
        else:
            log.error("Configuration validation failed")
        return is_valid
