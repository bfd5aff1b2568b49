# apps/sellers/models.py

from decimal import Decimal
from django.db import models
from django.core.validators import (
    MinLengthValidator, MinValueValidator, MaxValueValidator
)
from django.utils.translation import gettext_lazy as _
from apps.core.models import User


class SellerProfile(models.Model):
    """
    Storefront of a seller account.
    Products can only be listed while the profile is active.
    """
    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_BLOCKED = 'blocked'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_BLOCKED, 'Blocked'),
    ]

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='seller_profile'
    )
    store_name = models.CharField(
        max_length=100,
        validators=[MinLengthValidator(3)]
    )
    description = models.TextField(max_length=1000, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    logo_url = models.URLField(max_length=500, blank=True)

    approval_status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )

    # Denormalised counters
    total_products = models.PositiveIntegerField(default=0)
    total_sales = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal('0.0'),
        validators=[MinValueValidator(0), MaxValueValidator(5)]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'seller_profiles'
        verbose_name = _('Seller Profile')
        verbose_name_plural = _('Seller Profiles')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['approval_status']),
        ]

    def __str__(self):
        return self.store_name

    @property
    def is_active(self):
        return self.approval_status == self.STATUS_ACTIVE


class SellerRequest(models.Model):
    """
    A customer's application to become a seller, reviewed by an admin.
    """
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='seller_requests'
    )
    store_name = models.CharField(
        max_length=100,
        validators=[MinLengthValidator(3)]
    )
    store_description = models.TextField(
        max_length=500,
        validators=[MinLengthValidator(10)]
    )
    phone = models.CharField(max_length=20)
    logo_url = models.URLField(max_length=500, blank=True)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )
    rejection_reason = models.TextField(blank=True)

    requested_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='processed_seller_requests'
    )

    class Meta:
        db_table = 'seller_requests'
        verbose_name = _('Seller Request')
        verbose_name_plural = _('Seller Requests')
        ordering = ['-requested_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=models.Q(status='pending'),
                name='one_pending_seller_request_per_user'
            ),
        ]

    def __str__(self):
        return f"{self.store_name} ({self.status})"

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING
