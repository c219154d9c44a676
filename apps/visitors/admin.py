from django.contrib import admin
from .models import AllowedVisitor, VisitorCheckIn


@admin.register(AllowedVisitor)
class AllowedVisitorAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'address', 'access_code', 'expires_at', 'is_active', 'last_used']
    list_filter = ['is_active']
    search_fields = ['first_name', 'last_name', 'access_code']


@admin.register(VisitorCheckIn)
class VisitorCheckInAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'address', 'entry_method', 'checked_in_by', 'check_in_time']
    list_filter = ['entry_method', 'check_in_time']
    search_fields = ['first_name', 'last_name', 'unregistered_address']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
