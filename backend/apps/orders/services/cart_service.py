"""
Cart service.
Keeps cart lines within stock and priced at the current product price.
"""
from apps.core.services.base import BaseService, ServiceResult
from apps.orders.models import Cart, CartItem
from apps.products.models import Product


class CartService(BaseService):
    """Operations on a customer's shopping cart."""

    def get_cart(self, user) -> Cart:
        cart, created = Cart.objects.get_or_create(user=user)
        if created:
            self.log_info("Created cart", user_id=user.id)
        return cart

    def add_item(self, user, product_id: int, quantity: int = 1) -> ServiceResult:
        """
        Add a product, merging with an existing line for it.

        Returns:
            ServiceResult containing the updated Cart
        """
        if quantity < 1:
            return ServiceResult.fail(
                "Quantity must be at least 1",
                error_code="INVALID_QUANTITY"
            )

        try:
            product = Product.objects.get(id=product_id)
        except Product.DoesNotExist:
            return ServiceResult.fail(
                "Product not found",
                error_code="PRODUCT_NOT_FOUND"
            )

        if not product.is_active:
            return ServiceResult.fail(
                "Product is not available",
                error_code="PRODUCT_UNAVAILABLE"
            )

        cart = self.get_cart(user)
        item = cart.items.filter(product=product).first()
        new_quantity = quantity + (item.quantity if item else 0)

        if new_quantity > product.stock:
            return ServiceResult.fail(
                f"Only {product.stock} items available in stock",
                error_code="INSUFFICIENT_STOCK"
            )

        if item:
            item.quantity = new_quantity
            item.price = product.price
            item.save(update_fields=['quantity', 'price'])
        else:
            CartItem.objects.create(
                cart=cart,
                product=product,
                seller_id=product.seller_id,
                quantity=quantity,
                price=product.price
            )

        cart.save(update_fields=['updated_at'])

        self.log_info(
            "Added product to cart",
            user_id=user.id,
            product_id=product.id,
            quantity=new_quantity
        )
        return ServiceResult.ok(cart)

    def update_item(self, user, item_id: int, quantity: int) -> ServiceResult:
        if quantity < 1:
            return ServiceResult.fail(
                "Quantity must be at least 1",
                error_code="INVALID_QUANTITY"
            )

        cart = self.get_cart(user)
        try:
            item = cart.items.select_related('product').get(id=item_id)
        except CartItem.DoesNotExist:
            return ServiceResult.fail(
                "Item not found in cart",
                error_code="ITEM_NOT_FOUND"
            )

        if quantity > item.product.stock:
            return ServiceResult.fail(
                f"Only {item.product.stock} items available in stock",
                error_code="INSUFFICIENT_STOCK"
            )

        item.quantity = quantity
        item.price = item.product.price
        item.save(update_fields=['quantity', 'price'])
        cart.save(update_fields=['updated_at'])
        return ServiceResult.ok(cart)

    def remove_item(self, user, item_id: int) -> ServiceResult:
        cart = self.get_cart(user)
        deleted, _ = cart.items.filter(id=item_id).delete()
        if not deleted:
            return ServiceResult.fail(
                "Item not found in cart",
                error_code="ITEM_NOT_FOUND"
            )
        cart.save(update_fields=['updated_at'])
        return ServiceResult.ok(cart)

    def clear(self, user) -> Cart:
        cart = self.get_cart(user)
        cart.items.all().delete()
        cart.save(update_fields=['updated_at'])
        return cart
