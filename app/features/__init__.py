from .role_detector import (
    RoleInfo,
    default_role_info,
    detect_industry,
    detect_role_and_industry,
    detect_seniority,
    resolve_role_info,
)

__all__ = [
    "RoleInfo",
    "default_role_info",
    "detect_industry",
    "detect_role_and_industry",
    "detect_seniority",
    "resolve_role_info",
]
