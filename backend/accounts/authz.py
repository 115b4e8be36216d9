# accounts/authz.py
"""
Authorization utilities.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require_role: Check the actor's role and raise if not allowed

The company context comes from the X-Company-Id header when present,
otherwise from the user's active company. Either way the user must hold
an ACTIVE membership in that company.
"""

from dataclasses import dataclass

from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated, ValidationError

from accounts.models import CompanyMembership, Company


COMPANY_HEADER = "X-Company-Id"


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor (user + company).

    Attributes:
        user: The authenticated user
        company: The active company (tenant)
        membership: The user's membership in the company
    """
    user: object  # User model
    company: Company
    membership: CompanyMembership

    @property
    def company_id(self) -> int:
        return self.company.id

    @property
    def role(self) -> str:
        """Get the user's role in this company."""
        return self.membership.role

    @property
    def is_owner(self) -> bool:
        return self.membership.role == CompanyMembership.Role.OWNER

    @property
    def is_authenticated(self) -> bool:
        """Mirror Django's user.is_authenticated for compatibility."""
        return bool(getattr(self.user, "is_authenticated", False))


def _requested_company_id(request, user):
    raw = request.headers.get(COMPANY_HEADER)
    if raw is None or raw == "":
        return user.active_company_id
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError({"company": f"Invalid {COMPANY_HEADER} header."})


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Membership is loaded fresh on every request so that deactivating a
    member takes effect immediately.

    Raises:
        NotAuthenticated: If user is not authenticated
        PermissionDenied: If there is no company context or no active membership
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    company_id = _requested_company_id(request, user)
    if not company_id:
        raise PermissionDenied("Company context required. Select a company first.")

    try:
        membership = CompanyMembership.objects.select_related("company").get(
            user=user,
            company_id=company_id,
            is_active=True,
            company__is_active=True,
        )
    except CompanyMembership.DoesNotExist:
        raise PermissionDenied("You are not an active member of the selected company.")

    return ActorContext(
        user=user,
        company=membership.company,
        membership=membership,
    )


def require_role(actor: ActorContext, *roles: str) -> None:
    """
    Require that the actor holds one of the given roles.

    Example:
        require_role(actor, CompanyMembership.Role.OWNER)
    """
    if actor.role not in roles:
        raise PermissionDenied(
            f"Permission denied: requires role {' or '.join(roles)}"
        )
