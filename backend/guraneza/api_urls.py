"""
Main API URL configuration for GuraNeza.
Consolidates all app API endpoints under /api/v1/.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

# Import ViewSets from all apps
from apps.core.views import AuthViewSet, AddressViewSet
from apps.sellers.views import SellerViewSet
from apps.products.views import ProductViewSet, ReviewViewSet, WishlistViewSet
from apps.orders.views import (
    AdminOrderViewSet,
    CartViewSet,
    OrderViewSet,
    ShippingViewSet
)
from apps.dashboard.views import AdminDashboardViewSet

# Routes are served without trailing slashes
router = DefaultRouter(trailing_slash=False)

# Register all ViewSets
router.register(r'auth', AuthViewSet, basename='auth')
router.register(r'addresses', AddressViewSet, basename='address')
router.register(r'seller', SellerViewSet, basename='seller')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'reviews', ReviewViewSet, basename='review')
router.register(r'cart', CartViewSet, basename='cart')
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'admin/orders', AdminOrderViewSet, basename='admin-order')
router.register(r'shipping', ShippingViewSet, basename='shipping')
router.register(r'admin', AdminDashboardViewSet, basename='admin')

wishlist = WishlistViewSet.as_view({'get': 'list', 'delete': 'clear'})
wishlist_item = WishlistViewSet.as_view({'post': 'add', 'delete': 'remove'})

# API URL patterns
urlpatterns = [
    # JWT refresh
    path('auth/token/refresh', TokenRefreshView.as_view(), name='token_refresh'),

    # Wishlist
    path('wishlist', wishlist, name='wishlist'),
    path('wishlist/<int:product_id>', wishlist_item, name='wishlist-item'),

    # Router URLs
    path('', include(router.urls)),

    # Payments
    path('', include('apps.payments.urls')),

    # Inbound webhooks from external services
    path('', include('apps.integrations.urls')),
]
