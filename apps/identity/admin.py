from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import IdentityMapping, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'role', 'status', 'is_active']
    list_filter = ['role', 'status', 'is_active']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Community', {'fields': ('role', 'status', 'phone')}),
    )


@admin.register(IdentityMapping)
class IdentityMappingAdmin(admin.ModelAdmin):
    list_display = ['provider', 'provider_id', 'user', 'created_at']
    list_filter = ['provider']
    search_fields = ['provider_id', 'user__email']
