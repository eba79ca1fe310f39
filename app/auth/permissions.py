"""
Central registry of allowed actions per role.
"""
ROLE_SCOPES = {
    "user":   {"checkout", "request_vendor"},
    "vendor": {"checkout", "update_order_status"},
    "admin":  {"*"},
}

def role_has_scope(role: str, action: str) -> bool:
    scopes = ROLE_SCOPES.get(role, set())
    return "*" in scopes or action in scopes
