# apps/core/admin_site.py

from django import forms
from django.contrib.admin import AdminSite
from django.contrib.auth.forms import AuthenticationForm
from django.utils.translation import gettext_lazy as _


class MarketplaceLoginForm(AuthenticationForm):
    """Back-office login keyed on e-mail, the marketplace's username."""
    username = forms.EmailField(
        label=_("Email address"),
        widget=forms.EmailInput(attrs={'autofocus': True, 'autocomplete': 'email'})
    )

    error_messages = {
        'invalid_login': _("Incorrect email or password."),
        'inactive': _("This account has been blocked."),
    }

    def clean_username(self):
        return self.cleaned_data['username'].strip().lower()


class MarketplaceAdminSite(AdminSite):
    site_header = "GuraNeza Administration"
    site_title = "GuraNeza Admin"
    index_title = "GuraNeza marketplace back-office"
    login_form = MarketplaceLoginForm

    def has_permission(self, request):
        # Role based: admins get in without is_staff, blocked accounts never do
        user = request.user
        if not user.is_active or getattr(user, 'is_blocked', False):
            return False
        return user.is_staff or getattr(user, 'is_admin', False)

    def each_context(self, request):
        context = super().each_context(request)
        if self.has_permission(request):
            from apps.sellers.models import SellerRequest
            context['pending_seller_requests'] = SellerRequest.objects.filter(
                status=SellerRequest.STATUS_PENDING
            ).count()
        return context


custom_admin_site = MarketplaceAdminSite(name='custom_admin')
