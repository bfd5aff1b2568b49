"""
ViewSet implementations for product operations.
Handles the public catalog, seller catalog management, reviews and
wishlists.
"""
import math

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.pagination import PageNumberPagination
from django.core.paginator import EmptyPage, Page, PageNotAnInteger
from django.db.models import Q
from django.shortcuts import get_object_or_404

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter
)
from drf_spectacular.types import OpenApiTypes as Types

from apps.core.api import error_response
from apps.core.permissions import (
    IsApprovedSeller, IsCustomer, IsOwnerOrAdmin, IsSeller, IsSellerOrAdmin
)

from .models import CATEGORY_CHOICES, Product, Review
from .serializers import (
    ProductListSerializer,
    ProductDetailSerializer,
    ProductCreateUpdateSerializer,
    ReviewSerializer,
    ReviewCreateSerializer,
    ReviewUpdateSerializer,
    WishlistItemSerializer
)
from .services.product_service import ProductService
from .services.review_service import ReviewService
from .services.wishlist_service import WishlistService


class ProductPagination(PageNumberPagination):
    """Page/limit pagination with the catalog's response envelope."""
    page_size = 12
    page_size_query_param = 'limit'
    max_page_size = 100

    def paginate_queryset(self, queryset, request, view=None):
        """
        Pages past the end come back empty instead of raising NotFound.
        A page that is not a positive integer falls back to the first page.
        """
        self.request = request
        paginator = self.django_paginator_class(queryset, self.get_page_size(request))
        page_number = self.get_page_number(request, paginator)

        try:
            self.page = paginator.page(page_number)
        except PageNotAnInteger:
            self.page = paginator.page(1)
        except EmptyPage:
            number = int(page_number)
            self.page = paginator.page(1) if number < 1 else Page([], number, paginator)

        return list(self.page)

    def get_paginated_response(self, data):
        count = self.page.paginator.count
        limit = self.get_page_size(self.request)
        return Response({
            'products': data,
            'pagination': {
                'current_page': self.page.number,
                'total_pages': math.ceil(count / limit) if count else 0,
                'total_products': count,
                'limit': limit
            }
        })


@extend_schema_view(
    list=extend_schema(
        summary="Browse the catalog",
        description="""
        Paginated list of active products from sellers in good standing.

        **Sorting:** `sort_by` is one of created_at, price, name,
        average_rating; `order` is asc or desc (default newest first).

        **Permissions:** Public (no authentication required)
        """,
        parameters=[
            OpenApiParameter('search', Types.STR, description='Matches name or description'),
            OpenApiParameter('category', Types.STR, enum=[c[0] for c in CATEGORY_CHOICES] + ['All']),
            OpenApiParameter('min_price', Types.NUMBER),
            OpenApiParameter('max_price', Types.NUMBER),
            OpenApiParameter('sort_by', Types.STR, enum=ProductService.SORT_FIELDS),
            OpenApiParameter('order', Types.STR, enum=['asc', 'desc']),
            OpenApiParameter('page', Types.INT),
            OpenApiParameter('limit', Types.INT),
        ],
        tags=['Products']
    ),
    retrieve=extend_schema(
        summary="Get product details",
        description="Product with the seller's store information.",
        tags=['Products']
    ),
    create=extend_schema(
        summary="Create a product",
        description="""
        List a new product. The caller becomes its seller.

        **Permissions:** Sellers with an active store, or admins
        """,
        request=ProductCreateUpdateSerializer,
        responses={201: ProductDetailSerializer},
        tags=['Products']
    ),
    update=extend_schema(
        summary="Update product",
        request=ProductCreateUpdateSerializer,
        description="**Permissions:** Owning seller or admin",
        tags=['Products']
    ),
    partial_update=extend_schema(
        summary="Partially update product",
        request=ProductCreateUpdateSerializer,
        description="**Permissions:** Owning seller or admin",
        tags=['Products']
    ),
    destroy=extend_schema(
        summary="Delete product",
        description="**Permissions:** Owning seller or admin",
        tags=['Products']
    ),
)
class ProductViewSet(viewsets.ModelViewSet):
    """
    ViewSet for product operations.
    """
    queryset = Product.objects.all()
    serializer_class = ProductListSerializer
    pagination_class = ProductPagination
    owner_field = 'seller'
    service = ProductService()

    def get_permissions(self):
        """Configure permissions per action."""
        if self.action in ['list', 'retrieve', 'related', 'reviews']:
            permission_classes = [AllowAny]
        elif self.action == 'create':
            permission_classes = [IsAuthenticated, IsSellerOrAdmin, IsApprovedSeller]
        elif self.action == 'my_products':
            permission_classes = [IsAuthenticated, IsSeller]
        else:
            permission_classes = [IsAuthenticated, IsSellerOrAdmin, IsOwnerOrAdmin]
        return [permission() for permission in permission_classes]

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ProductDetailSerializer
        elif self.action in ['create', 'update', 'partial_update']:
            return ProductCreateUpdateSerializer
        return self.serializer_class

    def get_queryset(self):
        if self.action == 'list':
            return self.service.catalog(self.request.query_params)

        queryset = Product.objects.select_related('seller', 'seller__seller_profile')
        user = self.request.user

        if user.is_authenticated and user.is_admin:
            return queryset
        if user.is_authenticated:
            return queryset.filter(Q(is_active=True) | Q(seller=user))
        return queryset.filter(is_active=True)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.create_product(
            request.user, **serializer.validated_data)
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Product created successfully',
            'product': ProductDetailSerializer(result.data).data
        }, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        product = self.get_object()
        serializer = self.get_serializer(product, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response({
            'message': 'Product updated successfully',
            'product': ProductDetailSerializer(product).data
        })

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        result = self.service.delete_product(product, user=request.user)
        return Response(result.data)

    @extend_schema(
        summary="Related products",
        description="Up to 6 active products sharing the category or the seller.",
        responses={200: ProductListSerializer(many=True)},
        tags=['Products']
    )
    @action(detail=True, methods=['get'])
    def related(self, request, pk=None):
        product = self.get_object()
        related = self.service.related_products(product)
        return Response({
            'products': ProductListSerializer(related, many=True).data
        })

    @extend_schema(
        summary="Product reviews",
        responses={200: ReviewSerializer(many=True)},
        tags=['Reviews']
    )
    @action(detail=True, methods=['get'])
    def reviews(self, request, pk=None):
        product = self.get_object()
        return Response(review_summary(product))

    @extend_schema(
        summary="Seller's own products",
        responses={200: ProductListSerializer(many=True)},
        tags=['Products']
    )
    @action(detail=False, methods=['get'], url_path='seller/my-products',
            url_name='my-products')
    def my_products(self, request):
        products = self.service.seller_products(request.user)
        return Response({
            'products': ProductListSerializer(products, many=True).data
        })


def review_summary(product):
    reviews = Review.objects.filter(product=product).select_related('user')
    return {
        'reviews': ReviewSerializer(reviews, many=True).data,
        'average_rating': product.average_rating,
        'total_reviews': product.total_reviews
    }


class ReviewViewSet(viewsets.GenericViewSet):
    """
    Product reviews.
    Customers may review products from their delivered orders.
    """
    queryset = Review.objects.select_related('user', 'product')
    serializer_class = ReviewSerializer
    service = ReviewService()

    def get_permissions(self):
        if self.action == 'for_product':
            return [AllowAny()]
        if self.action in ['create', 'update']:
            return [IsAuthenticated(), IsCustomer()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="Reviews for a product",
        description="Reviews newest first, with the product's rating summary.",
        tags=['Reviews']
    )
    @action(detail=False, methods=['get'], url_path=r'product/(?P<product_id>\d+)',
            url_name='for-product')
    def for_product(self, request, product_id=None):
        product = get_object_or_404(Product, id=product_id)
        return Response(review_summary(product))

    @extend_schema(
        summary="Review a product",
        description="""
        Requires a delivered order containing the product. One review per
        customer and product.

        **Permissions:** Customers
        """,
        request=ReviewCreateSerializer,
        responses={201: ReviewSerializer},
        tags=['Reviews']
    )
    def create(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.create_review(
            request.user,
            serializer.validated_data['product'],
            serializer.validated_data['rating'],
            serializer.validated_data.get('comment', '')
        )
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Review added successfully',
            'review': ReviewSerializer(result.data).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Edit own review",
        request=ReviewUpdateSerializer,
        responses={200: ReviewSerializer},
        tags=['Reviews']
    )
    def update(self, request, pk=None):
        review = self.get_object()
        serializer = ReviewUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.service.update_review(
            review,
            request.user,
            rating=serializer.validated_data.get('rating'),
            comment=serializer.validated_data.get('comment')
        )
        if not result.success:
            return error_response(result)

        return Response({
            'message': 'Review updated successfully',
            'review': ReviewSerializer(result.data).data
        })

    @extend_schema(summary="Delete review", tags=['Reviews'])
    def destroy(self, request, pk=None):
        review = self.get_object()
        result = self.service.delete_review(review, request.user)
        if not result.success:
            return error_response(result)
        return Response(result.data)


class WishlistViewSet(viewsets.ViewSet):
    """
    The authenticated user's wishlist.
    """
    permission_classes = [IsAuthenticated]
    service = WishlistService()

    def _payload(self, wishlist, message=None):
        items = wishlist.items.select_related(
            'product', 'product__seller', 'product__seller__seller_profile')
        data = {
            'items': WishlistItemSerializer(items, many=True).data,
            'count': items.count()
        }
        if message:
            data['message'] = message
        return data

    @extend_schema(summary="Get wishlist", tags=['Wishlist'])
    def list(self, request):
        return Response(self._payload(self.service.get_wishlist(request.user)))

    @extend_schema(summary="Add product to wishlist", request=None, tags=['Wishlist'])
    def add(self, request, product_id=None):
        result = self.service.add(request.user, product_id)
        if not result.success:
            return error_response(result)
        return Response(
            self._payload(result.data, 'Product added to wishlist'),
            status=status.HTTP_201_CREATED
        )

    @extend_schema(summary="Remove product from wishlist", tags=['Wishlist'])
    def remove(self, request, product_id=None):
        result = self.service.remove(request.user, product_id)
        if not result.success:
            return error_response(result)
        return Response(self._payload(result.data, 'Product removed from wishlist'))

    @extend_schema(summary="Clear wishlist", tags=['Wishlist'])
    def clear(self, request):
        wishlist = self.service.clear(request.user)
        return Response(self._payload(wishlist, 'Wishlist cleared'))
