# Overview: All capability definitions organized by category.
# Each capability is defined as: (code, name, description, category)

from .categories import PermissionCategory


READ_ONLY = "READ_ONLY"
SETTINGS_CRUD = "SETTINGS_CRUD"
HOLD_PLOT = "HOLD_PLOT"
BOOK_PLOT = "BOOK_PLOT"
RE_RELEASE_PLOT = "RE_RELEASE_PLOT"
EDIT_RATES = "EDIT_RATES"
VERIFY_DOCS = "VERIFY_DOCS"
DELETE_ENTITY = "DELETE_ENTITY"


# -- GENERAL --

GENERAL_PERMISSIONS = [
    (
        READ_ONLY,
        "Read Only",
        "View projects, plots, leads and bookings",
        PermissionCategory.GENERAL,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        SETTINGS_CRUD,
        "Manage Settings",
        "Edit hold policy, integrations and project setup",
        PermissionCategory.SYSTEM,
    ),
    (
        DELETE_ENTITY,
        "Delete Entities",
        "Remove leads, documents and other non-transactional records",
        PermissionCategory.SYSTEM,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        EDIT_RATES,
        "Edit Rates",
        "Add plots and set base/current/min/max rates",
        PermissionCategory.INVENTORY,
    ),
    (
        RE_RELEASE_PLOT,
        "Re-release Plot",
        "Cancel a hold or booking and return the plot to inventory",
        PermissionCategory.INVENTORY,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        HOLD_PLOT,
        "Hold Plot",
        "Place a time-boxed hold on an available plot for a lead",
        PermissionCategory.SALES,
    ),
    (
        BOOK_PLOT,
        "Book Plot",
        "Confirm bookings on token receipt and work the sales pipeline",
        PermissionCategory.SALES,
    ),
]


# -- DOCUMENTS --

DOCUMENT_PERMISSIONS = [
    (
        VERIFY_DOCS,
        "Verify Documents",
        "Verify or reject KYC, agreement and registry documents",
        PermissionCategory.DOCUMENTS,
    ),
]


PERMISSION_DEFINITIONS = (
    GENERAL_PERMISSIONS
    + SYSTEM_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + SALES_PERMISSIONS
    + DOCUMENT_PERMISSIONS
)
