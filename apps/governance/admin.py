from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'target_type', 'target_label', 'performed_by', 'performed_at']
    list_filter = ['action', 'target_type', 'performed_at']
    search_fields = ['target_label']
    readonly_fields = ['action', 'target_type', 'target_id', 'target_label', 'performed_by', 'performed_at', 'context']
