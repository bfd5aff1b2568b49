"""
ViewSet implementation for the admin dashboard.
Every endpoint requires the admin role.
"""
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404

from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes as Types

from apps.core.api import error_response
from apps.core.models import User
from apps.core.permissions import IsAdmin
from apps.orders.serializers import OrderSerializer
from apps.products.models import Product, Review
from apps.products.serializers import AdminReviewSerializer, ProductListSerializer
from apps.products.services.product_service import ProductService
from apps.products.services.review_service import ReviewService
from apps.sellers.models import SellerProfile, SellerRequest
from apps.sellers.serializers import (
    SellerAdminSerializer,
    SellerRequestRejectSerializer,
    SellerRequestSerializer,
    SellerStatusSerializer
)
from apps.sellers.services.seller_service import SellerService

from .serializers import AdminUserSerializer, UserRoleSerializer, UserStatusSerializer
from .services.dashboard_service import DashboardService


class AdminDashboardViewSet(viewsets.ViewSet):
    """
    Back-office endpoints under /admin.
    """
    permission_classes = [IsAuthenticated, IsAdmin]
    service = DashboardService()
    seller_service = SellerService()

    # ==================== Stats ====================

    @extend_schema(
        summary="Platform statistics",
        description="""
        Totals for users, active sellers, active products, orders and paid
        revenue, the number of stores awaiting approval and the five most
        recent orders.
        """,
        tags=['Admin']
    )
    @action(detail=False, methods=['get'])
    def stats(self, request):
        stats = self.service.get_stats()
        stats['recent_orders'] = OrderSerializer(stats['recent_orders'], many=True).data
        return Response({'stats': stats})

    # ==================== Users ====================

    @extend_schema(
        summary="List users",
        parameters=[
            OpenApiParameter('role', Types.STR, enum=[r[0] for r in User.ROLE_CHOICES]),
            OpenApiParameter('status', Types.STR, enum=[s[0] for s in User.STATUS_CHOICES]),
            OpenApiParameter('search', Types.STR, description='Matches e-mail or name'),
        ],
        responses={200: AdminUserSerializer(many=True)},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'])
    def users(self, request):
        users = self.service.filter_users(request.query_params)
        return Response({'users': AdminUserSerializer(users, many=True).data})

    @extend_schema(
        summary="Block or unblock a user",
        description="Admins cannot block their own account.",
        request=UserStatusSerializer,
        responses={200: AdminUserSerializer},
        tags=['Admin']
    )
    @action(detail=False, methods=['patch'], url_path=r'users/(?P<user_id>\d+)/status',
            url_name='user-status')
    def user_status(self, request, user_id=None):
        serializer = UserStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = get_object_or_404(User, id=user_id)
        result = self.service.set_user_status(
            user, serializer.validated_data['status'], request.user)
        if not result.success:
            return error_response(result)

        return Response({
            'message': result.data['message'],
            'user': AdminUserSerializer(result.data['user']).data
        })

    @extend_schema(
        summary="Change a user's role",
        request=UserRoleSerializer,
        responses={200: AdminUserSerializer},
        tags=['Admin']
    )
    @action(detail=False, methods=['patch'], url_path=r'users/(?P<user_id>\d+)/role',
            url_name='user-role')
    def user_role(self, request, user_id=None):
        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = get_object_or_404(User, id=user_id)
        result = self.service.set_user_role(
            user, serializer.validated_data['role'], request.user)
        if not result.success:
            return error_response(result)

        return Response({
            'message': result.data['message'],
            'user': AdminUserSerializer(result.data['user']).data
        })

    # ==================== Sellers ====================

    @extend_schema(
        summary="List seller profiles",
        responses={200: SellerAdminSerializer(many=True)},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'])
    def sellers(self, request):
        profiles = SellerProfile.objects.select_related('user').order_by('-created_at')
        return Response({'sellers': SellerAdminSerializer(profiles, many=True).data})

    @extend_schema(
        summary="Change a store's status",
        description="Blocking a store deactivates all of its products.",
        request=SellerStatusSerializer,
        responses={200: SellerAdminSerializer},
        tags=['Admin']
    )
    @action(detail=False, methods=['patch'], url_path=r'sellers/(?P<profile_id>\d+)/status',
            url_name='seller-status')
    def seller_status(self, request, profile_id=None):
        serializer = SellerStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = get_object_or_404(SellerProfile, id=profile_id)
        result = self.seller_service.set_status(profile, serializer.validated_data['status'])
        if not result.success:
            return error_response(result)

        return Response({
            'message': f"Seller status updated to {result.data.approval_status}",
            'seller': SellerAdminSerializer(result.data).data
        })

    # ==================== Catalog ====================

    @extend_schema(
        summary="List all products",
        description="Includes inactive products.",
        responses={200: ProductListSerializer(many=True)},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'])
    def products(self, request):
        products = Product.objects.select_related(
            'seller', 'seller__seller_profile').order_by('-created_at')
        return Response({'products': ProductListSerializer(products, many=True).data})

    @extend_schema(summary="Delete any product", tags=['Admin'])
    @action(detail=False, methods=['delete'], url_path=r'products/(?P<product_id>\d+)',
            url_name='product-delete')
    def delete_product(self, request, product_id=None):
        product = get_object_or_404(Product, id=product_id)
        result = ProductService().delete_product(product, user=request.user)
        return Response(result.data)

    @extend_schema(
        summary="List all reviews",
        responses={200: AdminReviewSerializer(many=True)},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'])
    def reviews(self, request):
        reviews = Review.objects.select_related('user', 'product').order_by('-created_at')
        return Response({'reviews': AdminReviewSerializer(reviews, many=True).data})

    @extend_schema(summary="Delete any review", tags=['Admin'])
    @action(detail=False, methods=['delete'], url_path=r'reviews/(?P<review_id>\d+)',
            url_name='review-delete')
    def delete_review(self, request, review_id=None):
        review = get_object_or_404(Review, id=review_id)
        result = ReviewService().delete_review(review, request.user)
        if not result.success:
            return error_response(result)
        return Response(result.data)

    # ==================== Seller requests ====================

    @extend_schema(
        summary="List seller requests",
        parameters=[
            OpenApiParameter('status', Types.STR,
                             enum=[s[0] for s in SellerRequest.STATUS_CHOICES]),
        ],
        responses={200: SellerRequestSerializer(many=True)},
        tags=['Admin']
    )
    @action(detail=False, methods=['get'], url_path='seller-requests',
            url_name='seller-requests')
    def seller_requests(self, request):
        requests = SellerRequest.objects.select_related(
            'user', 'processed_by').order_by('-requested_at')

        request_status = request.query_params.get('status')
        if request_status:
            requests = requests.filter(status=request_status)

        return Response({'requests': SellerRequestSerializer(requests, many=True).data})

    @extend_schema(
        summary="Approve a seller request",
        description="The user becomes a seller with an active store.",
        request=None,
        responses={200: SellerRequestSerializer},
        tags=['Admin']
    )
    @action(detail=False, methods=['put'],
            url_path=r'seller-requests/(?P<request_id>\d+)/approve',
            url_name='seller-request-approve')
    def approve_request(self, request, request_id=None):
        seller_request = get_object_or_404(SellerRequest, id=request_id)
        result = self.seller_service.approve_request(seller_request, request.user)
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Seller request approved',
            'request': SellerRequestSerializer(result.data).data
        })

    @extend_schema(
        summary="Reject a seller request",
        request=SellerRequestRejectSerializer,
        responses={200: SellerRequestSerializer},
        tags=['Admin']
    )
    @action(detail=False, methods=['put'],
            url_path=r'seller-requests/(?P<request_id>\d+)/reject',
            url_name='seller-request-reject')
    def reject_request(self, request, request_id=None):
        serializer = SellerRequestRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        seller_request = get_object_or_404(SellerRequest, id=request_id)
        result = self.seller_service.reject_request(
            seller_request, request.user, serializer.validated_data['reason'])
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Seller request rejected',
            'request': SellerRequestSerializer(result.data).data
        })
