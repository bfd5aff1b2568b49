from django.contrib import admin
from apps.core.admin_site import custom_admin_site
from .models import Product, Review, Wishlist


class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'seller', 'category', 'price', 'stock',
                    'average_rating', 'is_active', 'created_at']
    list_filter = ['category', 'is_active']
    search_fields = ['name', 'description', 'seller__store_name']
    readonly_fields = ['average_rating', 'total_reviews', 'created_at', 'updated_at']


class ReviewAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'rating', 'created_at']
    list_filter = ['rating']
    search_fields = ['product__name', 'user__email', 'comment']


custom_admin_site.register(Product, ProductAdmin)
custom_admin_site.register(Review, ReviewAdmin)
custom_admin_site.register(Wishlist)
