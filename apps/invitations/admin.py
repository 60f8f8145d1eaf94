"""
Admin configuration for the Invitations app.
"""
from django.contrib import admin

from apps.invitations.models import TripInvitation


@admin.register(TripInvitation)
class TripInvitationAdmin(admin.ModelAdmin):
    list_display = ['invited_email', 'trip', 'status', 'role', 'can_edit', 'invited_by', 'created_at', 'responded_at']
    list_filter = ['status', 'role', 'created_at']
    search_fields = ['invited_email', 'trip__title', 'invited_by__email']
    readonly_fields = ['responded_at', 'invited_user', 'created_at', 'updated_at']
    raw_id_fields = ['trip', 'invited_by']
