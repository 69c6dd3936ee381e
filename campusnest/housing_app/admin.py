from django.contrib import admin

from housing_app.models import (
    # Users / profiles
    Profile,
    Merchant,

    # Listings
    Location,
    Facility,
    Property,
    PropertyImage,
    Room,

    # Activity
    Booking,
    Favorite,
    Review,

    # Config
    SystemSetting,
)


# ---------- Inlines ----------

class PropertyImageInline(admin.TabularInline):
    model = PropertyImage
    extra = 0
    fields = ("image_url", "is_primary", "created_at")
    readonly_fields = ("created_at",)


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0
    fields = ("room_number", "capacity", "occupied_beds", "monthly_price", "daily_price", "is_available")


# ---------- Actions ----------

@admin.action(description="Verify selected properties")
def verify_selected(modeladmin, request, queryset):
    updated = 0
    for obj in queryset.filter(is_verified=False):
        obj.is_verified = True
        obj.save(update_fields=["is_verified", "updated_at"])
        updated += 1
    modeladmin.message_user(request, f"{updated} propert{'y' if updated == 1 else 'ies'} verified.")


@admin.action(description="Confirm selected bookings")
def confirm_selected(modeladmin, request, queryset):
    for obj in queryset.filter(status=Booking.STATUS_PENDING):
        obj.status = Booking.STATUS_CONFIRMED
        obj.save(update_fields=["status", "updated_at"])


# ---------- Admins ----------

@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "email", "full_name", "role", "email_confirmed", "created_at")
    list_filter = ("role", "email_confirmed")
    search_fields = ("email", "full_name", "user__username")


@admin.register(Merchant)
class MerchantAdmin(admin.ModelAdmin):
    list_display = ("business_name", "email", "phone", "is_verified")
    list_filter = ("is_verified",)
    search_fields = ("business_name", "email")


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "merchant", "category", "gender", "monthly_price", "is_verified", "is_featured")
    list_filter = ("is_verified", "is_featured", "category", "gender")
    search_fields = ("name", "address")
    filter_horizontal = ("facilities",)
    inlines = [RoomInline, PropertyImageInline]
    actions = [verify_selected]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "property", "room", "time_frame", "check_in_date", "total_amount", "status")
    list_filter = ("status", "payment_status", "time_frame")
    search_fields = ("user__email", "property__name")
    readonly_fields = ("idempotency_key", "created_at", "updated_at")
    actions = [confirm_selected]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("property", "user", "rating", "created_at")
    list_filter = ("rating",)


admin.site.register(Location)
admin.site.register(Facility)
admin.site.register(Room)
admin.site.register(Favorite)
admin.site.register(SystemSetting)
