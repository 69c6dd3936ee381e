"""
Role dashboards. Each view is gated by `role_required`: anonymous callers are
sent to the login route, signed-in users with another role to their own
dashboard.
"""

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from housing_app.api.permissions import role_required
from housing_app.api.serializers import BookingSerializer, PropertyListSerializer
from housing_app.models import Booking, Favorite, Merchant, Property, ROLE_ADMIN, ROLE_MERCHANT, ROLE_STUDENT

RECENT = 5


def _booking_counts(qs):
    return qs.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=Booking.STATUS_PENDING)),
        confirmed=Count("id", filter=Q(status=Booking.STATUS_CONFIRMED)),
        cancelled=Count("id", filter=Q(status=Booking.STATUS_CANCELLED)),
    )


@require_GET
@role_required(ROLE_STUDENT)
def student_dashboard(request):
    bookings = Booking.objects.filter(user=request.user).select_related("property", "room")
    favorites = Favorite.objects.filter(user=request.user).select_related("property")
    return JsonResponse({
        "role": ROLE_STUDENT,
        "bookings": _booking_counts(bookings),
        "recent_bookings": BookingSerializer(bookings.order_by("-created_at")[:RECENT], many=True).data,
        "favorites": favorites.count(),
    })


@require_GET
@role_required(ROLE_MERCHANT)
def merchant_dashboard(request):
    merchant = Merchant.objects.filter(user=request.user).first()
    properties = Property.objects.filter(merchant=merchant) if merchant else Property.objects.none()
    bookings = Booking.objects.filter(property__in=properties)
    revenue = bookings.filter(payment_status=Booking.PAYMENT_PAID).aggregate(s=Sum("total_amount"))["s"]
    return JsonResponse({
        "role": ROLE_MERCHANT,
        "business_name": merchant.business_name if merchant else None,
        "properties": {
            "total": properties.count(),
            "verified": properties.filter(is_verified=True).count(),
        },
        "bookings": _booking_counts(bookings),
        "revenue": str(revenue or 0),
        "listings": PropertyListSerializer(properties[:RECENT], many=True, context={"favorite_ids": set()}).data,
    })


@require_GET
@role_required(ROLE_ADMIN)
def admin_dashboard(request):
    return JsonResponse({
        "role": ROLE_ADMIN,
        "users": get_user_model().objects.count(),
        "merchants": Merchant.objects.count(),
        "properties": {
            "total": Property.objects.count(),
            "awaiting_verification": Property.objects.filter(is_verified=False).count(),
        },
        "bookings": _booking_counts(Booking.objects.all()),
    })
