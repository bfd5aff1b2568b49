"""
Admin dashboard service.
Platform statistics and account moderation.
"""
from decimal import Decimal
from typing import Any, Dict

from django.db.models import Q, QuerySet, Sum

from apps.core.models import User
from apps.core.services.base import BaseService, ServiceResult
from apps.orders.models import Order
from apps.products.models import Product
from apps.sellers.models import SellerProfile


class DashboardService(BaseService):
    """
    Back-office operations for administrators.
    """

    RECENT_ORDERS = 5

    def get_stats(self) -> Dict[str, Any]:
        revenue = Order.objects.filter(
            payment_status=Order.PAYMENT_PAID
        ).aggregate(total=Sum('total_price'))['total'] or Decimal('0.00')

        recent_orders = Order.objects.select_related('customer').prefetch_related(
            'items__product'
        ).order_by('-created_at')[:self.RECENT_ORDERS]

        return {
            'total_users': User.objects.count(),
            'total_sellers': SellerProfile.objects.filter(
                approval_status=SellerProfile.STATUS_ACTIVE).count(),
            'total_products': Product.objects.filter(is_active=True).count(),
            'total_orders': Order.objects.count(),
            'total_revenue': revenue,
            'pending_sellers': SellerProfile.objects.filter(
                approval_status=SellerProfile.STATUS_PENDING).count(),
            'recent_orders': list(recent_orders),
        }

    def filter_users(self, params) -> QuerySet:
        queryset = User.objects.order_by('-date_joined')

        role = params.get('role')
        if role:
            queryset = queryset.filter(role=role)

        user_status = params.get('status')
        if user_status:
            queryset = queryset.filter(status=user_status)

        search = (params.get('search') or '').strip()
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search)
            )
        return queryset

    def set_user_status(self, user: User, new_status: str, admin: User) -> ServiceResult:
        if new_status not in dict(User.STATUS_CHOICES):
            return ServiceResult.fail(
                "Status must be active or blocked",
                error_code="INVALID_STATUS"
            )

        if user.id == admin.id and new_status == User.STATUS_BLOCKED:
            return ServiceResult.fail(
                "You cannot block your own account",
                error_code="CANNOT_BLOCK_SELF"
            )

        user.status = new_status
        user.save(update_fields=['status'])

        self.log_info(
            f"User {new_status}",
            user_id=user.id,
            admin_id=admin.id
        )
        return ServiceResult.ok({'user': user, 'message': f'User status updated to {new_status}'})

    def set_user_role(self, user: User, new_role: str, admin: User) -> ServiceResult:
        if new_role not in dict(User.ROLE_CHOICES):
            return ServiceResult.fail(
                "Role must be customer, seller, or admin",
                error_code="INVALID_ROLE"
            )

        old_role = user.role
        user.role = new_role
        user.save(update_fields=['role'])

        message = f'User role updated to {new_role}'
        if new_role == User.ROLE_SELLER and not SellerProfile.objects.filter(user=user).exists():
            message = f'{message}. Please create seller profile.'

        self.log_info(
            "User role changed",
            user_id=user.id,
            old_role=old_role,
            new_role=new_role,
            admin_id=admin.id
        )
        return ServiceResult.ok({'user': user, 'message': message})
