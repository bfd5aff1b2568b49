"""
ViewSet implementations for carts, orders and shipping rates.
"""
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404

from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes as Types

from apps.core.api import error_response, parse_limit
from apps.core.permissions import IsAdmin, IsCustomer, IsSeller

from .filters import OrderFilter
from .models import Order, ShippingSetting
from .serializers import (
    AddToCartSerializer,
    CartSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    SellerOrderSerializer,
    ShippingSettingSerializer,
    UpdateCartItemSerializer
)
from .services.cart_service import CartService
from .services.order_service import OrderService
from .services.shipping_service import ShippingService


class CartViewSet(viewsets.ViewSet):
    """
    The customer's shopping cart.
    """
    permission_classes = [IsAuthenticated, IsCustomer]
    service = CartService()

    def _payload(self, cart, message=None):
        data = {'cart': CartSerializer(cart).data}
        if message:
            data['message'] = message
        return data

    @extend_schema(summary="Get cart", responses={200: CartSerializer}, tags=['Cart'])
    def list(self, request):
        return Response(self._payload(self.service.get_cart(request.user)))

    @extend_schema(
        summary="Add product to cart",
        description="""
        Adds a product or increases the quantity of an existing line.
        The resulting quantity may not exceed the product's stock.
        """,
        request=AddToCartSerializer,
        responses={200: CartSerializer},
        tags=['Cart']
    )
    @action(detail=False, methods=['post'])
    def add(self, request):
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.add_item(
            request.user,
            serializer.validated_data['product_id'],
            serializer.validated_data['quantity']
        )
        if not result.success:
            return error_response(result)
        return Response(self._payload(result.data, 'Product added to cart'))

    @extend_schema(
        summary="Change line quantity",
        request=UpdateCartItemSerializer,
        responses={200: CartSerializer},
        tags=['Cart']
    )
    @action(detail=False, methods=['put'], url_path=r'update/(?P<item_id>\d+)',
            url_name='update-item')
    def update_item(self, request, item_id=None):
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.update_item(
            request.user, int(item_id), serializer.validated_data['quantity'])
        if not result.success:
            return error_response(result)
        return Response(self._payload(result.data, 'Cart updated'))

    @extend_schema(summary="Remove line", tags=['Cart'])
    @action(detail=False, methods=['delete'], url_path=r'remove/(?P<item_id>\d+)',
            url_name='remove-item')
    def remove_item(self, request, item_id=None):
        result = self.service.remove_item(request.user, int(item_id))
        if not result.success:
            return error_response(result)
        return Response(self._payload(result.data, 'Item removed from cart'))

    @extend_schema(summary="Empty cart", tags=['Cart'])
    @action(detail=False, methods=['delete'])
    def clear(self, request):
        cart = self.service.clear(request.user)
        return Response(self._payload(cart, 'Cart cleared'))


def order_queryset():
    return Order.objects.select_related('customer').prefetch_related('items__product')


def filter_orders(params):
    """Admin listing: OrderFilter fields plus an optional limit."""
    queryset = OrderFilter(params, queryset=order_queryset()).qs

    limit = parse_limit(params.get('limit'))
    if limit:
        queryset = queryset[:limit]
    return queryset


def apply_status_update(request, order):
    serializer = OrderStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = OrderService().update_status(
        order,
        order_status=serializer.validated_data.get('order_status'),
        shipping_status=serializer.validated_data.get('shipping_status'),
        user=request.user
    )
    if not result.success:
        return error_response(result)

    return Response({
        'message': 'Order status updated',
        'order': OrderSerializer(result.data).data
    })


ORDER_FILTER_PARAMETERS = [
    OpenApiParameter('order_status', Types.STR,
                     enum=[s[0] for s in Order.ORDER_STATUS_CHOICES]),
    OpenApiParameter('payment_status', Types.STR,
                     enum=[s[0] for s in Order.PAYMENT_STATUS_CHOICES]),
    OpenApiParameter('payment_method', Types.STR,
                     enum=[s[0] for s in Order.PAYMENT_METHOD_CHOICES]),
    OpenApiParameter('customer', Types.INT),
    OpenApiParameter('limit', Types.INT),
]


class OrderViewSet(viewsets.GenericViewSet):
    """
    Orders for customers, sellers and admins.
    """
    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    lookup_value_regex = r'\d+'
    service = OrderService()

    def get_permissions(self):
        if self.action in ['create', 'my_orders']:
            return [IsAuthenticated(), IsCustomer()]
        if self.action == 'my_sales':
            return [IsAuthenticated(), IsSeller()]
        if self.action in ['list', 'update_status']:
            return [IsAuthenticated(), IsAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return order_queryset()

    @extend_schema(
        summary="List all orders",
        description="**Permissions:** Admins",
        parameters=ORDER_FILTER_PARAMETERS,
        responses={200: OrderSerializer(many=True)},
        tags=['Orders']
    )
    def list(self, request):
        orders = filter_orders(request.query_params)
        return Response({'orders': OrderSerializer(orders, many=True).data})

    @extend_schema(
        summary="Place an order",
        description="""
        Checks out the customer's cart. Stock is re-checked and reserved,
        prices are frozen on the order lines, the shipping fee is resolved
        from the destination city and the cart is emptied.

        **Permissions:** Customers
        """,
        request=OrderCreateSerializer,
        responses={201: OrderSerializer},
        tags=['Orders']
    )
    def create(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.create_order(
            request.user,
            serializer.validated_data['shipping_info'],
            serializer.validated_data['payment_method']
        )
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Order created successfully',
            'order': OrderSerializer(result.data).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Get order",
        description="""
        Visible to the customer who placed it, admins, and sellers with
        items in it. Sellers only see their own lines.
        """,
        responses={200: OrderSerializer},
        tags=['Orders']
    )
    def retrieve(self, request, pk=None):
        order = self.get_object()
        user = request.user

        if not self.service.can_view(order, user):
            return Response(
                {'error': 'You do not have access to this order',
                 'error_code': 'PERMISSION_DENIED'},
                status=status.HTTP_403_FORBIDDEN
            )

        if user.is_admin or order.customer_id == user.id:
            data = OrderSerializer(order).data
        else:
            data = SellerOrderSerializer(order, context={'seller': user}).data
        return Response({'order': data})

    @extend_schema(
        summary="My orders",
        responses={200: OrderSerializer(many=True)},
        tags=['Orders']
    )
    @action(detail=False, methods=['get'], url_path='my-orders', url_name='my-orders')
    def my_orders(self, request):
        orders = order_queryset().filter(customer=request.user)
        return Response({'orders': OrderSerializer(orders, many=True).data})

    @extend_schema(
        summary="My sales",
        description="Orders holding the seller's items, restricted to those lines.",
        parameters=[OpenApiParameter('limit', Types.INT)],
        responses={200: SellerOrderSerializer(many=True)},
        tags=['Orders']
    )
    @action(detail=False, methods=['get'], url_path='seller/my-sales', url_name='my-sales')
    def my_sales(self, request):
        orders = self.service.get_seller_orders(
            request.user, limit=parse_limit(request.query_params.get('limit')))
        return Response({
            'orders': SellerOrderSerializer(
                orders, many=True, context={'seller': request.user}).data
        })

    @extend_schema(
        summary="Update order status",
        description="""
        Allowed transitions: PENDING to PAID or CANCELLED, PAID to SHIPPED or
        CANCELLED, SHIPPED to DELIVERED. Cancelling returns stock.

        **Permissions:** Admins
        """,
        request=OrderStatusUpdateSerializer,
        responses={200: OrderSerializer},
        tags=['Orders']
    )
    @action(detail=True, methods=['patch'], url_path='status', url_name='status')
    def update_status(self, request, pk=None):
        return apply_status_update(request, self.get_object())


class AdminOrderViewSet(viewsets.GenericViewSet):
    """
    Order management under /admin/orders.
    """
    queryset = Order.objects.all()
    permission_classes = [IsAuthenticated, IsAdmin]
    serializer_class = OrderSerializer
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        return order_queryset()

    @extend_schema(
        summary="List all orders",
        parameters=ORDER_FILTER_PARAMETERS,
        responses={200: OrderSerializer(many=True)},
        tags=['Admin']
    )
    def list(self, request):
        orders = filter_orders(request.query_params)
        return Response({'orders': OrderSerializer(orders, many=True).data})

    @extend_schema(summary="Get order", responses={200: OrderSerializer}, tags=['Admin'])
    def retrieve(self, request, pk=None):
        return Response({'order': OrderSerializer(self.get_object()).data})

    @extend_schema(
        summary="Update order status",
        request=OrderStatusUpdateSerializer,
        responses={200: OrderSerializer},
        tags=['Admin']
    )
    @action(detail=True, methods=['put', 'patch'], url_path='status', url_name='status')
    def update_status(self, request, pk=None):
        return apply_status_update(request, self.get_object())


class ShippingViewSet(viewsets.ViewSet):
    """
    Shipping fees per city.
    Rates are public; the rate table is managed by admins.
    """
    service = ShippingService()

    def get_permissions(self):
        if self.action in ['rates', 'rate']:
            return [AllowAny()]
        return [IsAuthenticated(), IsAdmin()]

    @extend_schema(
        summary="Active shipping rates",
        responses={200: ShippingSettingSerializer(many=True)},
        tags=['Shipping']
    )
    @action(detail=False, methods=['get'])
    def rates(self, request):
        return Response({
            'rates': ShippingSettingSerializer(self.service.active_rates(), many=True).data
        })

    @extend_schema(
        summary="Shipping fee for a city",
        description="""
        Uses the city's active rate, else the default rate, else a fixed
        fallback fee.
        """,
        tags=['Shipping']
    )
    @action(detail=False, methods=['get'], url_path=r'rate/(?P<city>[^/]+)', url_name='rate')
    def rate(self, request, city=None):
        resolved = self.service.resolve_fee(city)
        return Response({
            'city': resolved['city'],
            'fee': str(resolved['fee']),
            'is_default': resolved['is_default']
        })

    @extend_schema(
        summary="Manage shipping rates",
        description="**Permissions:** Admins",
        request=ShippingSettingSerializer,
        responses={200: ShippingSettingSerializer(many=True), 201: ShippingSettingSerializer},
        tags=['Shipping']
    )
    @action(detail=False, methods=['get', 'post'], url_path='settings', url_name='settings')
    def rate_settings(self, request):
        if request.method == 'GET':
            settings_qs = ShippingSetting.objects.order_by('city')
            return Response({
                'settings': ShippingSettingSerializer(settings_qs, many=True).data
            })

        serializer = ShippingSettingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.create_setting(serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Shipping rate created',
            'setting': ShippingSettingSerializer(result.data).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Update or delete a shipping rate",
        description="The default rate cannot be deleted.",
        request=ShippingSettingSerializer,
        responses={200: ShippingSettingSerializer},
        tags=['Shipping']
    )
    @action(detail=False, methods=['put', 'delete'],
            url_path=r'settings/(?P<setting_id>\d+)', url_name='setting-detail')
    def rate_setting_detail(self, request, setting_id=None):
        setting = get_object_or_404(ShippingSetting, id=setting_id)

        if request.method == 'DELETE':
            result = self.service.delete_setting(setting)
            if not result.success:
                return error_response(result)
            return Response(result.data)

        serializer = ShippingSettingSerializer(setting, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = self.service.update_setting(setting, serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Shipping rate updated',
            'setting': ShippingSettingSerializer(result.data).data
        })
