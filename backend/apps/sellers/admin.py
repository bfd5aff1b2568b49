from django.contrib import admin
from apps.core.admin_site import custom_admin_site
from .models import SellerProfile, SellerRequest


class SellerProfileAdmin(admin.ModelAdmin):
    list_display = ['store_name', 'user', 'approval_status',
                    'total_products', 'total_sales', 'rating', 'created_at']
    list_filter = ['approval_status']
    search_fields = ['store_name', 'user__email', 'phone']
    readonly_fields = ['total_products', 'total_sales', 'rating']


class SellerRequestAdmin(admin.ModelAdmin):
    list_display = ['store_name', 'user', 'status', 'requested_at',
                    'processed_at', 'processed_by']
    list_filter = ['status']
    search_fields = ['store_name', 'user__email']
    readonly_fields = ['requested_at', 'processed_at', 'processed_by']


custom_admin_site.register(SellerProfile, SellerProfileAdmin)
custom_admin_site.register(SellerRequest, SellerRequestAdmin)
