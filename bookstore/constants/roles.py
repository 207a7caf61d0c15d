USER = "user"
STAFF = "staff"
ADMIN = "admin"

STAFF_ROLES = {STAFF, ADMIN}


def is_staff(role: str | None) -> bool:
    return role in STAFF_ROLES
