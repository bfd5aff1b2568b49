# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _
from .models import User, Address
from .admin_site import custom_admin_site


class CustomUserAdmin(BaseUserAdmin):
    """UserAdmin that works with email as USERNAME_FIELD."""

    list_display = ('email', 'first_name', 'last_name', 'role',
                    'status', 'is_verified', 'date_joined')
    list_filter = ('role', 'status', 'is_verified', 'is_staff')

    fieldsets = (
        (None, {'fields': ('email', 'password', 'google_id')}),
        (_('Personal info'), {
         'fields': ('first_name', 'last_name', 'phone', 'avatar', 'date_of_birth')}),
        (_('Address'), {'fields': ('street', 'city', 'state', 'country')}),
        (_('Marketplace'), {'fields': ('role', 'status', 'is_verified')}),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Important dates'), {'fields': ('last_login', 'date_joined')}),
    )
    readonly_fields = ('country',)

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'role', 'password1', 'password2'),
        }),
    )

    search_fields = ('email', 'first_name', 'last_name', 'phone')
    ordering = ('email',)
    filter_horizontal = ('groups', 'user_permissions',)


class AddressAdmin(admin.ModelAdmin):
    list_display = ('user', 'label', 'city', 'is_default')
    list_filter = ('city', 'is_default')
    search_fields = ('user__email', 'full_name', 'city')


custom_admin_site.register(User, CustomUserAdmin)
custom_admin_site.register(Address, AddressAdmin)
