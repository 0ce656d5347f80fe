# Path: otpgate/shared/security/permissions_loader.py
from functools import lru_cache
from pathlib import Path
from typing import Dict, List

import yaml

from otpgate.shared.i18n.messages import get_message
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.errors.base import BaseError
from otpgate.shared.errors.domain.security import UnauthorizedAccessError
from otpgate.shared.utilities.types import LanguageCode
from otpgate.shared.utilities.constants import HttpStatus, DomainErrorCode

logger = LoggingService(LogConfig())

PERMISSIONS_PATH = Path(__file__).parent / "permissions_map.yaml"


@lru_cache()
def load_permissions_map() -> Dict[str, List[str]]:
    """Load permissions map from YAML file."""
    try:
        with PERMISSIONS_PATH.open("r", encoding="utf-8") as f:
            permissions = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.critical("Failed to load permissions map", context={"path": str(PERMISSIONS_PATH), "error": str(e)})
        raise BaseError(
            error_code="PERMISSIONS_LOAD_FAILED",
            message=f"Failed to load permissions: {str(e)}",
            status_code=HttpStatus.INTERNAL_SERVER_ERROR.value,
            details={"path": str(PERMISSIONS_PATH)}
        )

    if not isinstance(permissions, dict):
        raise BaseError(
            error_code="INVALID_PERMISSIONS_FORMAT",
            message="Permissions file must contain a mapping of role to scopes",
            status_code=HttpStatus.INTERNAL_SERVER_ERROR.value,
            details={"path": str(PERMISSIONS_PATH)}
        )
    logger.info("Permissions map loaded", context={"roles": list(permissions)})
    return permissions


def get_scopes_for_role(role: str) -> List[str]:
    """Get permission scopes for a role."""
    scopes = load_permissions_map().get(role, [])
    if not isinstance(scopes, list):
        logger.error("Scopes not in list format", context={"role": role})
        return []
    return scopes


def check_permissions(role: str, action: str, resource: str, language: LanguageCode = "en") -> None:
    """Raise 403 unless `role` holds the `{action}:{resource}` scope."""
    scopes = get_scopes_for_role(role)
    required_scope = f"{action}:{resource}"

    if "*" in scopes or required_scope in scopes:
        return

    logger.warning("Access denied", context={"role": role, "required_scope": required_scope})
    raise UnauthorizedAccessError(
        resource=required_scope,
        error_code=DomainErrorCode.PERMISSION_DENIED.value,
        message=get_message("access.denied", language),
        status_code=HttpStatus.FORBIDDEN.value,
        details={"role": role, "required_scope": required_scope},
        language=language
    )
