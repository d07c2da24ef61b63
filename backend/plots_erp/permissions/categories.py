# Overview: Permission category constants for grouping related capabilities.


class PermissionCategory:
    """Capability categories for organization and UI display."""
    GENERAL = "GENERAL"
    SYSTEM = "SYSTEM"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    DOCUMENTS = "DOCUMENTS"
