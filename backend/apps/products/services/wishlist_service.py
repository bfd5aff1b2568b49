"""
Wishlist service.
"""
from apps.core.services.base import BaseService, ServiceResult
from apps.products.models import Product, Wishlist, WishlistItem


class WishlistService(BaseService):
    """Saved products for later, one list per user."""

    def get_wishlist(self, user) -> Wishlist:
        wishlist, _ = Wishlist.objects.get_or_create(user=user)
        return wishlist

    def add(self, user, product_id) -> ServiceResult:
        if not Product.objects.filter(id=product_id).exists():
            return ServiceResult.fail(
                "Product not found",
                error_code="PRODUCT_NOT_FOUND"
            )

        wishlist = self.get_wishlist(user)
        _, created = WishlistItem.objects.get_or_create(
            wishlist=wishlist,
            product_id=product_id
        )
        if not created:
            return ServiceResult.fail(
                "Product already in wishlist",
                error_code="ALREADY_IN_WISHLIST"
            )

        return ServiceResult.ok(wishlist)

    def remove(self, user, product_id) -> ServiceResult:
        wishlist = self.get_wishlist(user)
        deleted, _ = wishlist.items.filter(product_id=product_id).delete()
        if not deleted:
            return ServiceResult.fail(
                "Product not in wishlist",
                error_code="ITEM_NOT_FOUND"
            )
        return ServiceResult.ok(wishlist)

    def clear(self, user) -> Wishlist:
        wishlist = self.get_wishlist(user)
        wishlist.items.all().delete()
        return wishlist
