from __future__ import annotations

# Per-project access levels, ordered from least to most privileged.
ROLE_VIEWER = 1
ROLE_REPORTER = 2
ROLE_CUSTOMER = 3
ROLE_USER = 4
ROLE_DEVELOPER = 5
ROLE_MANAGER = 6
ROLE_ADMINISTRATOR = 7

ROLE_CHOICES: list[tuple[int, str]] = [
    (ROLE_VIEWER, "Viewer"),
    (ROLE_REPORTER, "Reporter"),
    (ROLE_CUSTOMER, "Customer"),
    (ROLE_USER, "Standard User"),
    (ROLE_DEVELOPER, "Developer"),
    (ROLE_MANAGER, "Manager"),
    (ROLE_ADMINISTRATOR, "Administrator"),
]

# Features and issue sections a partner backend may gate.
PARTNER_FEATURES: tuple[str, ...] = (
    "create_issue",
    "associate_emails",
    "reports",
    "export",
)
PARTNER_ISSUE_SECTIONS: tuple[str, ...] = (
    "partners",
    "drafts",
    "files",
    "time",
    "notes",
    "phone",
    "history",
    "notification_list",
    "authorized_repliers",
)

PHONE_CALL_TYPES: list[tuple[str, str]] = [
    ("incoming", "Incoming"),
    ("outgoing", "Outgoing"),
]
PHONE_NUMBER_TYPES: list[tuple[str, str]] = [
    ("office", "Office"),
    ("home", "Home"),
    ("mobile", "Mobile"),
    ("temp", "Temporary"),
    ("other", "Other"),
]


def get_role_id(name: str) -> int:
    """Look up a role id by its display name (case-insensitive)."""
    normalized = (name or "").strip().lower()
    for role_id, label in ROLE_CHOICES:
        if label.lower() == normalized:
            return role_id
    raise KeyError(f"Unknown role: {name}")


def get_role_title(role_id: int | None) -> str:
    for value, label in ROLE_CHOICES:
        if value == role_id:
            return label
    return "Unknown"
