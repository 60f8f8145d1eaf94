"""
Admin configuration for the Trips app.
"""
from django.contrib import admin

from apps.trips.models import Trip, TripParticipant, Waypoint


class TripParticipantInline(admin.TabularInline):
    model = TripParticipant
    extra = 0
    raw_id_fields = ['user']


class WaypointInline(admin.TabularInline):
    model = Waypoint
    extra = 0
    ordering = ['order_index']
    fields = ['order_index', 'name', 'type', 'latitude', 'longitude', 'planned_arrival', 'actual_arrival']


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ['title', 'status', 'is_public', 'start_date', 'end_date', 'created_by', 'created_at']
    list_filter = ['status', 'is_public', 'start_date', 'created_at']
    search_fields = ['title', 'description', 'created_by__email']
    readonly_fields = ['comparison_notes', 'created_at', 'updated_at']
    inlines = [TripParticipantInline, WaypointInline]


@admin.register(TripParticipant)
class TripParticipantAdmin(admin.ModelAdmin):
    list_display = ['user', 'trip', 'role', 'can_edit', 'joined_at']
    list_filter = ['role', 'can_edit']
    search_fields = ['user__email', 'trip__title']


@admin.register(Waypoint)
class WaypointAdmin(admin.ModelAdmin):
    list_display = ['name', 'trip', 'type', 'order_index', 'planned_arrival', 'actual_arrival']
    list_filter = ['type']
    search_fields = ['name', 'address', 'trip__title']
    ordering = ['trip', 'order_index']
