from django.contrib import admin
from .models import MemberAddress


@admin.register(MemberAddress)
class MemberAddressAdmin(admin.ModelAdmin):
    list_display = ['full_label', 'owner_name', 'status', 'verification_status', 'is_primary', 'is_active']
    list_filter = ['status', 'verification_status', 'is_active']
    search_fields = ['address', 'owner_name', 'member__email']
