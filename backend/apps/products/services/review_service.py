"""
Review service.
Only customers who received a product may review it; each review write
recomputes the product's rating summary.
"""
from decimal import Decimal, ROUND_HALF_UP

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from apps.core.services.base import BaseService, ServiceResult
from apps.products.models import Product, Review


class ReviewService(BaseService):

    def has_received(self, user, product_id) -> bool:
        """True when the user has a delivered order containing the product."""
        from apps.orders.models import Order, OrderItem

        return OrderItem.objects.filter(
            order__customer=user,
            order__order_status=Order.STATUS_DELIVERED,
            product_id=product_id
        ).exists()

    def recompute_rating(self, product_id) -> None:
        summary = Review.objects.filter(product_id=product_id).aggregate(
            average=Avg('rating'),
            total=Count('id')
        )
        average = Decimal(str(summary['average'] or 0)).quantize(
            Decimal('0.1'), rounding=ROUND_HALF_UP
        )
        Product.objects.filter(id=product_id).update(
            average_rating=average,
            total_reviews=summary['total']
        )

    @transaction.atomic
    def create_review(self, user, product_id, rating, comment='') -> ServiceResult:
        if not Product.objects.filter(id=product_id).exists():
            return ServiceResult.fail(
                "Product not found",
                error_code="PRODUCT_NOT_FOUND"
            )

        if not self.has_received(user, product_id):
            return ServiceResult.fail(
                "You can only review products you have purchased and received",
                error_code="PURCHASE_REQUIRED"
            )

        if Review.objects.filter(product_id=product_id, user=user).exists():
            return ServiceResult.fail(
                "You have already reviewed this product. You can edit your existing review.",
                error_code="REVIEW_EXISTS"
            )

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    product_id=product_id,
                    user=user,
                    rating=rating,
                    comment=comment or ''
                )
        except IntegrityError:
            return ServiceResult.fail(
                "You have already reviewed this product.",
                error_code="REVIEW_EXISTS"
            )

        self.recompute_rating(product_id)
        self.log_info("Review added", product_id=product_id, user_id=user.id, rating=rating)
        return ServiceResult.ok(review)

    @transaction.atomic
    def update_review(self, review: Review, user, rating=None, comment=None) -> ServiceResult:
        if review.user_id != user.id:
            return ServiceResult.fail(
                "You can only edit your own reviews",
                error_code="PERMISSION_DENIED"
            )

        if rating is not None:
            review.rating = rating
        if comment is not None:
            review.comment = comment
        review.save()

        self.recompute_rating(review.product_id)
        return ServiceResult.ok(review)

    @transaction.atomic
    def delete_review(self, review: Review, user) -> ServiceResult:
        if review.user_id != user.id and not user.is_admin:
            return ServiceResult.fail(
                "You can only delete your own reviews",
                error_code="PERMISSION_DENIED"
            )

        product_id = review.product_id
        review.delete()
        self.recompute_rating(product_id)

        self.log_info("Review deleted", product_id=product_id, user_id=user.id)
        return ServiceResult.ok({'message': 'Review deleted successfully'})
