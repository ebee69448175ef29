"""
Role-aware presentation of donor records.

Donor PII is only shown to roles that may read donors at org or system
scope, or to the donor themself. Hospitals get a summary limited to
what matching needs. This is display-side only; the data store enforces
its own row-level security.
"""

from typing import Any, Dict, Optional

from core.rbac import Role, can, coerce_role

# Fields a hospital may see about a donor
HOSPITAL_DONOR_FIELDS = ("blood_type", "eligibility_status")


def donor_summary_for_hospital(donor: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce a donor record to the fields a hospital may see.

    Examples:
        >>> donor_summary_for_hospital({"name": "A", "blood_type": "O-", "eligibility_status": "eligible"})
        {'blood_type': 'O-', 'eligibility_status': 'eligible'}
    """
    return {field: donor.get(field) for field in HOSPITAL_DONOR_FIELDS}


def present_donor(
    donor: Dict[str, Any],
    role: Any,
    user_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Present a donor record according to the caller's role.

    Args:
        donor: Donor record
        role: Caller's role
        user_id: Caller's user id, used for self-scope access

    Returns:
        Full copy of the record, the hospital summary, or None if the
        caller may not see the donor at all
    """
    if can(role, "donors:read:system") or can(role, "donors:read:org"):
        return dict(donor)

    if can(role, "donors:read:self") and user_id and donor.get("user_id") == user_id:
        return dict(donor)

    if coerce_role(role) is Role.HOSPITAL_STAFF:
        return donor_summary_for_hospital(donor)

    return None
