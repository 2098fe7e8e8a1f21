"""Status vocabularies for versioned entities and enrollment records."""

DRAFT = "draft"
SUBMITTED = "submitted"
PENDING_APPROVAL = "pending_approval"
APPROVED = "approved"
PENDING_ACTIVATION = "pending_activation"
ACTIVE = "active"
DISABLED = "disabled"
ARCHIVED = "archived"

ENTITY_STATUSES = (
    DRAFT,
    SUBMITTED,
    PENDING_APPROVAL,
    APPROVED,
    PENDING_ACTIVATION,
    ACTIVE,
    DISABLED,
    ARCHIVED,
)

# Versions still being shaped into a future state of the lineage.
LIVE_STATUSES = (DRAFT, PENDING_APPROVAL, APPROVED)

# Versions taken out of service; a lineage ending in one may resume from its highest active version.
RETIRED_STATUSES = (DISABLED, ARCHIVED)

# Pseudo status returned by the machine for a physical delete.
REMOVED = "removed"

ENROLLMENT_DRAFT = "draft"
PENDING_HOD_APPROVAL = "pending_hod_approval"
PENDING_OFFICE_APPROVAL = "pending_office_approval"
ENROLLMENT_APPROVED = "approved"
REJECTED = "rejected"
WITHDRAWN = "withdrawn"

ENROLLMENT_STATUSES = (
    ENROLLMENT_DRAFT,
    PENDING_HOD_APPROVAL,
    PENDING_OFFICE_APPROVAL,
    ENROLLMENT_APPROVED,
    REJECTED,
    WITHDRAWN,
)
TERMINAL_ENROLLMENT_STATUSES = (ENROLLMENT_APPROVED, REJECTED, WITHDRAWN)
WITHDRAWABLE_STATUSES = (ENROLLMENT_DRAFT, PENDING_HOD_APPROVAL, PENDING_OFFICE_APPROVAL)
