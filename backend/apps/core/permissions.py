"""
Role based permissions shared by every app.
"""
from rest_framework import permissions
from rest_framework.exceptions import NotFound, PermissionDenied


class HasRole(permissions.BasePermission):
    """
    Allow access only to users whose role is in ``allowed_roles``.
    Use ``HasRole.for_roles('seller', 'admin')`` to build a subclass.
    """
    allowed_roles = ()

    @classmethod
    def for_roles(cls, *roles):
        return type(
            f"HasRole_{'_'.join(roles)}",
            (cls,),
            {'allowed_roles': tuple(roles)}
        )

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.role not in self.allowed_roles:
            raise PermissionDenied(
                f"Access denied. Required role: {' or '.join(self.allowed_roles)}"
            )
        return True


IsCustomer = HasRole.for_roles('customer')
IsSeller = HasRole.for_roles('seller')
IsAdmin = HasRole.for_roles('admin')
IsSellerOrAdmin = HasRole.for_roles('seller', 'admin')


class IsApprovedSeller(permissions.BasePermission):
    """
    Sellers may only act on the catalog once their profile is active.
    Admins are not subject to the check.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.is_admin:
            return True

        from apps.sellers.models import SellerProfile
        try:
            profile = user.seller_profile
        except SellerProfile.DoesNotExist:
            raise NotFound("Seller profile not found")

        if profile.approval_status == SellerProfile.STATUS_PENDING:
            raise PermissionDenied(
                "Your seller account is pending approval")
        if profile.approval_status == SellerProfile.STATUS_BLOCKED:
            raise PermissionDenied("Your seller account has been blocked")
        return True


class IsOwnerOrAdmin(permissions.BasePermission):
    """Object level check against an ``owner_field`` on the view."""

    def has_object_permission(self, request, view, obj):
        if request.user.is_admin:
            return True
        owner_field = getattr(view, 'owner_field', 'user')
        return getattr(obj, f"{owner_field}_id") == request.user.id
