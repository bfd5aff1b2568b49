"""
Product service for catalog operations.
Handles catalog browsing, related products and seller catalog upkeep.
"""
from typing import Dict, Any, Optional
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import F, Q, QuerySet

from apps.core.services.base import BaseService, ServiceResult
from apps.products.models import Product


class ProductService(BaseService):
    """
    Service for managing products.
    Keeps the seller profile's product count in step with the catalog.
    """

    SORT_FIELDS = ['created_at', 'price', 'name', 'average_rating']
    DEFAULT_SORT = 'created_at'
    RELATED_LIMIT = 6

    def visible_products(self) -> QuerySet:
        """Active products whose seller is neither blocked nor suspended."""
        return Product.objects.filter(
            is_active=True
        ).exclude(
            seller__status='blocked'
        ).exclude(
            seller__seller_profile__approval_status='blocked'
        ).select_related('seller', 'seller__seller_profile')

    def catalog(self, params: Dict[str, Any]) -> QuerySet:
        """
        Filter and sort the public catalog.

        Args:
            params: Query params (search, category, min_price, max_price,
                sort_by, order)

        Returns:
            Filtered QuerySet
        """
        queryset = self.visible_products()

        search = (params.get('search') or '').strip()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(description__icontains=search)
            )

        category = params.get('category')
        if category and category != 'All':
            queryset = queryset.filter(category=category)

        min_price = self._to_decimal(params.get('min_price'))
        if min_price is not None:
            queryset = queryset.filter(price__gte=min_price)

        max_price = self._to_decimal(params.get('max_price'))
        if max_price is not None:
            queryset = queryset.filter(price__lte=max_price)

        sort_by = params.get('sort_by') or self.DEFAULT_SORT
        if sort_by not in self.SORT_FIELDS:
            sort_by = self.DEFAULT_SORT
        prefix = '' if params.get('order') == 'asc' else '-'

        return queryset.order_by(f"{prefix}{sort_by}", '-id')

    def related_products(self, product: Product) -> QuerySet:
        return self.visible_products().filter(
            Q(category=product.category) | Q(seller_id=product.seller_id)
        ).exclude(id=product.id).order_by('-created_at')[:self.RELATED_LIMIT]

    def seller_products(self, seller) -> QuerySet:
        return Product.objects.filter(seller=seller).order_by('-created_at')

    @transaction.atomic
    def create_product(self, seller, **data) -> ServiceResult:
        """
        Create a product owned by the given seller.

        Returns:
            ServiceResult containing created Product
        """
        from apps.sellers.models import SellerProfile

        product = Product.objects.create(seller=seller, **data)

        SellerProfile.objects.filter(user=seller).update(
            total_products=F('total_products') + 1
        )

        self.log_info(
            f"Created product {product.name}",
            product_id=product.id,
            seller_id=seller.id
        )
        return ServiceResult.ok(product)

    @transaction.atomic
    def delete_product(self, product: Product, user=None) -> ServiceResult:
        from apps.sellers.models import SellerProfile

        product_id, seller_id = product.id, product.seller_id
        product.delete()

        SellerProfile.objects.filter(
            user_id=seller_id,
            total_products__gt=0
        ).update(total_products=F('total_products') - 1)

        self.log_info(
            "Deleted product",
            product_id=product_id,
            seller_id=seller_id,
            user_id=user.id if user else None
        )
        return ServiceResult.ok({'message': 'Product deleted successfully'})

    def _to_decimal(self, value) -> Optional[Decimal]:
        if value in (None, ''):
            return None
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        # NaN and Infinity parse but cannot be compared against prices
        return number if number.is_finite() else None
