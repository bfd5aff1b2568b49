"""
ViewSet implementations for the seller dashboard.
"""
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes as Types

from apps.core.api import error_response, parse_limit
from apps.core.permissions import IsSeller
from apps.orders.models import Order
from apps.orders.serializers import SellerOrderSerializer
from apps.orders.services.order_service import OrderService
from apps.products.models import Product
from apps.products.serializers import ProductListSerializer
from apps.products.services.product_service import ProductService

from .models import SellerProfile
from .serializers import (
    SellerProfileSerializer,
    SellerRequestCreateSerializer,
    SellerRequestSerializer,
    ShippingStatusSerializer
)
from .services.seller_service import SellerService


class SellerViewSet(viewsets.ViewSet):
    """
    Endpoints under /seller for store owners.
    Upgrade requests are filed by customers.
    """
    service = SellerService()

    def get_permissions(self):
        if self.action in ['request_upgrade', 'my_request']:
            return [IsAuthenticated()]
        return [IsAuthenticated(), IsSeller()]

    def _profile(self, user):
        return get_object_or_404(SellerProfile, user=user)

    @extend_schema(
        summary="Get or update own store profile",
        request=SellerProfileSerializer,
        responses={200: SellerProfileSerializer},
        tags=['Seller']
    )
    @action(detail=False, methods=['get', 'put'])
    def profile(self, request):
        profile = self._profile(request.user)

        if request.method == 'GET':
            return Response({'profile': SellerProfileSerializer(profile).data})

        serializer = SellerProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({
            'message': 'Profile updated successfully',
            'profile': serializer.data
        })

    @extend_schema(
        summary="Own products",
        responses={200: ProductListSerializer(many=True)},
        tags=['Seller']
    )
    @action(detail=False, methods=['get'])
    def products(self, request):
        products = ProductService().seller_products(request.user)
        return Response({
            'products': ProductListSerializer(products, many=True).data
        })

    @extend_schema(summary="Delete own product", tags=['Seller'])
    @action(detail=False, methods=['delete'], url_path=r'products/(?P<product_id>\d+)',
            url_name='product-delete')
    def delete_product(self, request, product_id=None):
        product = get_object_or_404(Product, id=product_id, seller=request.user)
        result = ProductService().delete_product(product, user=request.user)
        return Response(result.data)

    @extend_schema(
        summary="Store statistics",
        description="""
        Product counts, orders containing the seller's items, and revenue
        from the seller's lines in paid orders.
        """,
        tags=['Seller']
    )
    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response({'stats': self.service.get_stats(request.user)})

    @extend_schema(
        summary="Orders containing own items",
        description="Each order lists only the seller's lines.",
        parameters=[OpenApiParameter('limit', Types.INT)],
        responses={200: SellerOrderSerializer(many=True)},
        tags=['Seller']
    )
    @action(detail=False, methods=['get'])
    def orders(self, request):
        orders = OrderService().get_seller_orders(
            request.user, limit=parse_limit(request.query_params.get('limit')))
        return Response({
            'orders': SellerOrderSerializer(
                orders, many=True, context={'seller': request.user}).data
        })

    @extend_schema(
        summary="Update shipping status",
        request=ShippingStatusSerializer,
        responses={200: SellerOrderSerializer},
        tags=['Seller']
    )
    @action(detail=False, methods=['patch'],
            url_path=r'orders/(?P<order_id>\d+)/shipping-status',
            url_name='order-shipping-status')
    def shipping_status(self, request, order_id=None):
        serializer = ShippingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = get_object_or_404(Order, id=order_id)
        result = OrderService().update_shipping_status(
            order, request.user, serializer.validated_data['shipping_status'])
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Shipping status updated',
            'order': SellerOrderSerializer(
                result.data, context={'seller': request.user}).data
        })

    @extend_schema(
        summary="Request a seller account",
        description="""
        Customers apply to open a store. Only one request may be pending.

        **Permissions:** Customers
        """,
        request=SellerRequestCreateSerializer,
        responses={201: SellerRequestSerializer},
        tags=['Seller']
    )
    @action(detail=False, methods=['post'], url_path='request-upgrade',
            url_name='request-upgrade')
    def request_upgrade(self, request):
        serializer = SellerRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.create_request(request.user, serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Seller request submitted. An admin will review it shortly.',
            'request': SellerRequestSerializer(result.data).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="My latest seller request",
        responses={200: SellerRequestSerializer},
        tags=['Seller']
    )
    @action(detail=False, methods=['get'], url_path='my-request', url_name='my-request')
    def my_request(self, request):
        seller_request = self.service.latest_request(request.user)
        if not seller_request:
            return Response(
                {'error': 'No seller request found', 'error_code': 'REQUEST_NOT_FOUND'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response({'request': SellerRequestSerializer(seller_request).data})
