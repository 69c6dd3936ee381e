import logging

from django.db.models import Avg
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, generics, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from housing_app.client.booking import build_booking_payload
from housing_app.client.listings import PROPERTY_RELATIONS
from housing_app.models import Booking, Favorite, Property, Review, ROLE_STUDENT
from housing_app.services.client import get_client
from housing_app.services.insights import generate_property_insights, recommend_properties
from housing_app.services.mappers import map_property
from housing_app.services.pricing import derive_price

from housing_app.api.filters import PropertyFilter
from housing_app.api.pagination import BookingLOPagination, PropertyPagination
from housing_app.api.permissions import HasAllowedRole, IsReviewerOrReadOnly
from housing_app.api.serializers import (
    BookingQuoteSerializer,
    BookingRequestSerializer,
    BookingSerializer,
    FavoriteSerializer,
    PropertyDetailSerializer,
    PropertyListSerializer,
    RecommendationQuerySerializer,
    ReviewSerializer,
    RoomSerializer,
)

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"


def verified_properties():
    return (
        Property.objects.filter(is_verified=True)
        .select_related("location", "merchant")
        .prefetch_related("images", "facilities")
        .annotate(avg_rating=Avg("reviews__rating"))
    )


def _favorite_ids(request):
    user = request.user
    if not user.is_authenticated:
        return set()
    return set(Favorite.objects.filter(user=user).values_list("property_id", flat=True))


# --------------------
# Listings
# --------------------
class PropertyListView(generics.ListAPIView):
    """GET /api/properties/: verified listings, newest first."""
    serializer_class = PropertyListSerializer
    permission_classes = [AllowAny]
    pagination_class = PropertyPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = PropertyFilter
    search_fields = ["name", "address", "description"]
    ordering_fields = ["monthly_price", "created_at", "avg_rating"]
    ordering = ["-created_at"]

    def get_queryset(self):
        return verified_properties()

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["favorite_ids"] = _favorite_ids(self.request)
        return ctx


class PropertyDetailView(generics.RetrieveAPIView):
    serializer_class = PropertyDetailSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        return verified_properties().prefetch_related("rooms")

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["favorite_ids"] = _favorite_ids(self.request)
        return ctx


class PropertyRoomsView(generics.ListAPIView):
    """GET /api/properties/<pk>/rooms/: bookable rooms only."""
    serializer_class = RoomSerializer
    permission_classes = [AllowAny]
    pagination_class = None

    def get_queryset(self):
        prop = get_object_or_404(Property, pk=self.kwargs["pk"], is_verified=True)
        return prop.rooms.filter(is_available=True).order_by("room_number")


# --------------------
# Reviews
# --------------------
class PropertyReviewListCreateView(generics.ListCreateAPIView):
    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsReviewerOrReadOnly]
    pagination_class = None

    def get_property(self):
        return get_object_or_404(Property, pk=self.kwargs["pk"], is_verified=True)

    def get_queryset(self):
        return Review.objects.filter(property=self.get_property()).select_related("user__profile")

    def perform_create(self, serializer):
        serializer.save(user=self.request.user, property=self.get_property())


# --------------------
# Favourites
# --------------------
class FavoriteListView(generics.ListAPIView):
    serializer_class = FavoriteSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None

    def get_queryset(self):
        return (
            Favorite.objects.filter(user=self.request.user)
            .select_related("property__location")
            .prefetch_related("property__images", "property__facilities")
            .order_by("-created_at")
        )

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["favorite_ids"] = _favorite_ids(self.request)
        return ctx


class PropertyFavoriteView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        prop = get_object_or_404(Property, pk=pk, is_verified=True)
        _, created = Favorite.objects.get_or_create(user=request.user, property=prop)
        return Response(
            {"favorite": True},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def delete(self, request, pk):
        prop = get_object_or_404(Property, pk=pk)
        Favorite.objects.filter(user=request.user, property=prop).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# --------------------
# Insights & recommendations
# --------------------
class PropertyInsightsView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "insights"

    def post(self, request, pk):
        client = get_client()
        row = (
            client.table("properties")
            .select(related=PROPERTY_RELATIONS)
            .eq("id", pk)
            .eq("is_verified", True)
            .maybe_single()
        )
        if row is None:
            raise NotFound("Property not found.")
        return Response(generate_property_insights(client, map_property(row)))


class RecommendationsView(APIView):
    """
    GET /api/recommendations/?gender=&property_type=&location=&budget=&limit=
    Signed-in users fall back to the preferences saved on their profile.
    """
    permission_classes = [AllowAny]

    def get(self, request):
        ser = RecommendationQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        prefs = dict(ser.validated_data)
        limit = prefs.pop("limit")

        profile = getattr(request.user, "profile", None) if request.user.is_authenticated else None
        if profile is not None:
            prefs.setdefault("gender", profile.preferred_gender_accommodation or None)
            prefs.setdefault("property_type", profile.preferred_property_type or None)
            prefs.setdefault("location", profile.preferred_location or None)
            prefs.setdefault("budget", profile.max_budget)

        ranked = recommend_properties(get_client(), prefs, limit=limit)
        return Response([item.model_dump(mode="json") for item in ranked])


# --------------------
# Bookings
# --------------------
def _price_for(attrs):
    prop = attrs["property"]
    base_price = prop.daily_price if attrs["time_frame"] == "daily" else prop.monthly_price
    price = derive_price(
        attrs["time_frame"],
        base_price,
        room=attrs["room"],
        check_in=attrs["check_in_date"],
        check_out=attrs.get("check_out_date"),
    )
    if price.unit_price is None:
        raise ValidationError({"time_frame": "No price is set for this booking type."})
    return price


class BookingQuoteView(APIView):
    """POST /api/bookings/quote/: price a draft without saving it."""
    permission_classes = [AllowAny]

    def post(self, request):
        ser = BookingRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        price = _price_for(ser.validated_data)
        return Response(BookingQuoteSerializer(price.model_dump()).data)


class BookingListCreateView(generics.ListCreateAPIView):
    """
    GET my bookings / POST create one.

    A repeated POST carrying the same Idempotency-Key header returns the
    booking created by the first one instead of inserting again.
    """
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated, HasAllowedRole]
    allowed_roles = (ROLE_STUDENT,)
    pagination_class = BookingLOPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["status", "time_frame"]
    ordering_fields = ["check_in_date", "created_at", "id"]
    ordering = ["-created_at"]

    def get_queryset(self):
        return Booking.objects.filter(user=self.request.user).select_related("property", "room")

    def create(self, request, *args, **kwargs):
        key = (request.headers.get(IDEMPOTENCY_HEADER) or "").strip() or None
        if key is not None:
            if len(key) > 64:
                raise ValidationError({"detail": f"{IDEMPOTENCY_HEADER} must be at most 64 characters."})
            existing = self.get_queryset().filter(idempotency_key=key).first()
            if existing is not None:
                return Response(BookingSerializer(existing).data, status=status.HTTP_200_OK)

        ser = BookingRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        attrs = ser.validated_data
        room = attrs["room"]

        payload = build_booking_payload(
            property_id=attrs["property"].pk,
            user_id=request.user.pk,
            time_frame=attrs["time_frame"],
            room_id=room.pk if room is not None else None,
            check_in_date=attrs["check_in_date"],
            check_out_date=attrs.get("check_out_date"),
            check_in_time=attrs.get("check_in_time"),
            check_out_time=attrs.get("check_out_time"),
            price=_price_for(attrs),
            number_of_guests=attrs["number_of_guests"],
            special_requests=attrs.get("special_requests"),
            idempotency_key=key,
        )
        row = get_client().table("bookings").insert(payload).single()
        logger.info("booking %s created by user %s", row["id"], request.user.pk)

        booking = self.get_queryset().get(pk=row["id"])
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingDetailView(generics.RetrieveAPIView):
    """GET /api/bookings/<id>/: confirmation view of my booking."""
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = Booking.objects.select_related("property", "room")
        if self.request.user.is_staff:
            return qs
        return qs.filter(user=self.request.user)
