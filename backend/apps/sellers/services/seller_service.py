"""
Seller service.
Handles store profiles, seller statistics, upgrade requests and the
admin approval workflow.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import DecimalField, ExpressionWrapper, F, Sum
from django.utils import timezone

from apps.core.models import User
from apps.core.services.base import BaseService, ServiceResult
from apps.sellers.models import SellerProfile, SellerRequest


class SellerService(BaseService):
    """
    Service for seller accounts.
    A seller can list products only while their profile is active.
    """

    # ==================== Stats ====================

    def get_stats(self, seller: User) -> Dict[str, Any]:
        """
        Catalog and sales figures for one seller.

        Revenue counts only the seller's own lines in paid orders.
        """
        from apps.orders.models import Order, OrderItem
        from apps.products.models import Product

        products = Product.objects.filter(seller=seller)
        orders = Order.objects.filter(items__seller=seller).distinct()

        revenue = OrderItem.objects.filter(
            seller=seller,
            order__payment_status=Order.PAYMENT_PAID
        ).aggregate(
            total=Sum(ExpressionWrapper(
                F('price_at_purchase') * F('quantity'),
                output_field=DecimalField(max_digits=14, decimal_places=2)
            ))
        )['total'] or Decimal('0.00')

        return {
            'total_products': products.count(),
            'active_products': products.filter(is_active=True).count(),
            'total_orders': orders.count(),
            'delivered_orders': orders.filter(
                order_status=Order.STATUS_DELIVERED).count(),
            'total_revenue': revenue,
        }

    # ==================== Upgrade requests ====================

    def create_request(self, user: User, data: Dict[str, Any]) -> ServiceResult:
        """
        File a customer's request to become a seller.
        """
        if not user.is_customer:
            return ServiceResult.fail(
                "Only customers can request a seller account",
                error_code="NOT_A_CUSTOMER"
            )

        if SellerRequest.objects.filter(
            user=user, status=SellerRequest.STATUS_PENDING
        ).exists():
            return ServiceResult.fail(
                "You already have a pending seller request",
                error_code="REQUEST_PENDING"
            )

        try:
            with transaction.atomic():
                request = SellerRequest.objects.create(user=user, **data)
        except IntegrityError:
            return ServiceResult.fail(
                "You already have a pending seller request",
                error_code="REQUEST_PENDING"
            )

        self.log_info("Seller upgrade requested", user_id=user.id, request_id=request.id)
        return ServiceResult.ok(request)

    def latest_request(self, user: User) -> Optional[SellerRequest]:
        return SellerRequest.objects.filter(user=user).order_by('-requested_at', '-id').first()

    @transaction.atomic
    def approve_request(self, seller_request: SellerRequest, admin: User) -> ServiceResult:
        """
        Approve a pending request.
        The user becomes a seller with an active store built from the request.
        """
        if not seller_request.is_pending:
            return ServiceResult.fail(
                f"Request has already been {seller_request.status}",
                error_code="ALREADY_PROCESSED"
            )

        user = seller_request.user
        user.role = User.ROLE_SELLER
        user.save(update_fields=['role'])

        profile, created = SellerProfile.objects.update_or_create(
            user=user,
            defaults={
                'store_name': seller_request.store_name,
                'description': seller_request.store_description,
                'phone': seller_request.phone,
                'logo_url': seller_request.logo_url,
                'approval_status': SellerProfile.STATUS_ACTIVE,
            }
        )

        seller_request.status = SellerRequest.STATUS_APPROVED
        seller_request.processed_at = timezone.now()
        seller_request.processed_by = admin
        seller_request.save()

        self.log_info(
            "Seller request approved",
            request_id=seller_request.id,
            user_id=user.id,
            admin_id=admin.id,
            profile_created=created
        )
        return ServiceResult.ok(seller_request)

    def reject_request(self, seller_request: SellerRequest, admin: User,
                       reason: str) -> ServiceResult:
        if not seller_request.is_pending:
            return ServiceResult.fail(
                f"Request has already been {seller_request.status}",
                error_code="ALREADY_PROCESSED"
            )

        if not (reason or '').strip():
            return ServiceResult.fail(
                "Rejection reason is required",
                error_code="REASON_REQUIRED"
            )

        seller_request.status = SellerRequest.STATUS_REJECTED
        seller_request.rejection_reason = reason.strip()
        seller_request.processed_at = timezone.now()
        seller_request.processed_by = admin
        seller_request.save()

        self.log_info(
            "Seller request rejected",
            request_id=seller_request.id,
            admin_id=admin.id
        )
        return ServiceResult.ok(seller_request)

    # ==================== Admin ====================

    @transaction.atomic
    def set_status(self, profile: SellerProfile, new_status: str) -> ServiceResult:
        """
        Change a store's approval status.
        Blocking a store takes all of its products off sale.
        """
        from apps.products.models import Product

        if new_status not in dict(SellerProfile.STATUS_CHOICES):
            return ServiceResult.fail(
                "Status must be pending, active, or blocked",
                error_code="INVALID_STATUS"
            )

        profile.approval_status = new_status
        profile.save(update_fields=['approval_status', 'updated_at'])

        if new_status == SellerProfile.STATUS_BLOCKED:
            deactivated = Product.objects.filter(
                seller_id=profile.user_id
            ).update(is_active=False)
            self.log_info(
                "Deactivated products of blocked seller",
                seller_id=profile.user_id,
                products=deactivated
            )

        self.log_info(
            f"Seller {new_status}",
            profile_id=profile.id,
            seller_id=profile.user_id
        )
        return ServiceResult.ok(profile)
