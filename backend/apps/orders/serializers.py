# apps/orders/serializers.py

from rest_framework import serializers
from .models import Order, OrderItem, Cart, CartItem, ShippingSetting
from apps.core.serializers import UserSummarySerializer


class CartItemSerializer(serializers.ModelSerializer):
    """Cart line with live product details"""
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    name = serializers.CharField(source='product.name', read_only=True)
    image_url = serializers.CharField(source='product.image_url', read_only=True)
    stock = serializers.IntegerField(source='product.stock', read_only=True)
    line_total = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = CartItem
        fields = [
            'id', 'product_id', 'name', 'image_url', 'stock', 'seller',
            'quantity', 'price', 'line_total', 'added_at'
        ]


class CartSerializer(serializers.ModelSerializer):
    items = serializers.SerializerMethodField()
    subtotal = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )
    items_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Cart
        fields = ['id', 'items', 'subtotal', 'items_count', 'updated_at']

    def get_items(self, obj):
        items = obj.items.select_related('product').order_by('added_at')
        return CartItemSerializer(items, many=True).data


class AddToCartSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class OrderItemSerializer(serializers.ModelSerializer):
    """Order line as it was at purchase time"""
    image_url = serializers.SerializerMethodField()
    line_total = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'seller', 'product_name', 'image_url',
            'quantity', 'price_at_purchase', 'line_total'
        ]

    def get_image_url(self, obj):
        return obj.product.image_url if obj.product else None


class OrderSerializer(serializers.ModelSerializer):
    """Full order details"""
    customer = UserSummarySerializer(read_only=True)
    items = serializers.SerializerMethodField()
    shipping = serializers.SerializerMethodField()
    payment_details = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'reference_number', 'customer', 'items', 'subtotal',
            'shipping_fee', 'total_price', 'payment_method',
            'payment_status', 'order_status', 'shipping',
            'payment_details', 'created_at', 'updated_at', 'delivered_at'
        ]

    def visible_items(self, obj):
        """Sellers passed in the context only see their own lines."""
        items = list(obj.items.all())
        seller = self.context.get('seller')
        if seller is not None:
            items = [item for item in items if item.seller_id == seller.id]
        return items

    def get_items(self, obj):
        return OrderItemSerializer(self.visible_items(obj), many=True).data

    def get_shipping(self, obj):
        return {
            'full_name': obj.shipping_full_name,
            'phone': obj.shipping_phone,
            'city': obj.shipping_city,
            'address_line': obj.shipping_address_line,
            'status': obj.shipping_status,
        }

    def get_payment_details(self, obj):
        return {
            'transaction_id': obj.transaction_id or None,
            'payment_date': obj.payment_date,
            'payment_info': obj.payment_info or {},
        }


class SellerOrderSerializer(OrderSerializer):
    """Order restricted to one seller's lines"""
    seller_subtotal = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['seller_subtotal']

    def get_seller_subtotal(self, obj):
        return str(sum(
            (item.line_total for item in self.visible_items(obj)),
            0
        ))


class ShippingInfoSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20)
    city = serializers.CharField(max_length=100)
    address_line = serializers.CharField(max_length=255)


class OrderCreateSerializer(serializers.Serializer):
    shipping_info = ShippingInfoSerializer()
    payment_method = serializers.ChoiceField(
        choices=Order.PAYMENT_METHOD_CHOICES,
        default=Order.METHOD_MOMO
    )


class OrderStatusUpdateSerializer(serializers.Serializer):
    order_status = serializers.ChoiceField(
        choices=Order.ORDER_STATUS_CHOICES, required=False)
    shipping_status = serializers.ChoiceField(
        choices=Order.SHIPPING_STATUS_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs.get('order_status') and not attrs.get('shipping_status'):
            raise serializers.ValidationError(
                "order_status or shipping_status is required")
        return attrs


class ShippingSettingSerializer(serializers.ModelSerializer):
    fee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)

    class Meta:
        model = ShippingSetting
        fields = ['id', 'city', 'fee', 'is_default', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
