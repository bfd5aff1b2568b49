from django.contrib import admin
from apps.core.admin_site import custom_admin_site
from .models import Cart, CartItem, Order, OrderItem, ShippingSetting


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'seller', 'product_name',
                       'quantity', 'price_at_purchase']


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0


class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'reference_number', 'customer', 'total_price', 'payment_method',
        'payment_status', 'order_status', 'shipping_status', 'created_at'
    ]
    list_filter = ['payment_method', 'payment_status', 'order_status',
                   'shipping_status', 'created_at']
    search_fields = ['reference_number', 'customer__email',
                     'transaction_id', 'shipping_city']
    readonly_fields = ['reference_number', 'subtotal', 'shipping_fee',
                       'total_price', 'payment_date', 'payment_requested_at',
                       'created_at', 'updated_at']
    inlines = [OrderItemInline]

    fieldsets = (
        ('Order', {
            'fields': ('reference_number', 'customer', 'order_status')
        }),
        ('Amounts', {
            'fields': ('subtotal', 'shipping_fee', 'total_price')
        }),
        ('Payment', {
            'fields': ('payment_method', 'payment_status', 'transaction_id',
                       'payment_requested_at', 'payment_date', 'payment_info')
        }),
        ('Shipping', {
            'fields': ('shipping_full_name', 'shipping_phone', 'shipping_city',
                       'shipping_address_line', 'shipping_status', 'delivered_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class CartAdmin(admin.ModelAdmin):
    list_display = ['user', 'updated_at']
    search_fields = ['user__email']
    inlines = [CartItemInline]


class ShippingSettingAdmin(admin.ModelAdmin):
    list_display = ['city', 'fee', 'is_default', 'is_active']
    list_filter = ['is_default', 'is_active']
    search_fields = ['city']


custom_admin_site.register(Order, OrderAdmin)
custom_admin_site.register(Cart, CartAdmin)
custom_admin_site.register(ShippingSetting, ShippingSettingAdmin)
