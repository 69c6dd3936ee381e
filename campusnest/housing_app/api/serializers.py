from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import RegexValidator
from django.db.models import Avg
from rest_framework import serializers

from housing_app.models import (
    Booking,
    Facility,
    Favorite,
    Location,
    Property,
    PropertyImage,
    Review,
    Room,
    TIME_FRAME_CHOICES,
    TIME_FRAME_DAILY,
)
from housing_app.validators import MAX_GUESTS, validate_guest_count, validate_stay_dates


time_of_day = RegexValidator(
    regex=r"^([01]\d|2[0-3]):[0-5]\d$",
    message="Use 24-hour HH:MM.",
)


def _as_drf_error(exc: DjangoValidationError):
    if hasattr(exc, "message_dict"):
        return serializers.ValidationError(exc.message_dict)
    return serializers.ValidationError(exc.messages)


# --------------------
# Listings
# --------------------
class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ["id", "name", "latitude", "longitude"]


class FacilitySerializer(serializers.ModelSerializer):
    class Meta:
        model = Facility
        fields = ["id", "name"]


class PropertyImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = PropertyImage
        fields = ["id", "image_url", "is_primary"]


class RoomSerializer(serializers.ModelSerializer):
    property_id = serializers.IntegerField(read_only=True)
    available_beds = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = [
            "id",
            "property_id",
            "room_number",
            "capacity",
            "occupied_beds",
            "available_beds",
            "monthly_price",
            "daily_price",
            "security_deposit",
            "description",
            "is_available",
            "electricity_included",
            "cleaning_included",
            "food_included",
        ]
        read_only_fields = fields

    def get_available_beds(self, obj):
        return max(obj.capacity - obj.occupied_beds, 0)


class PropertyListSerializer(serializers.ModelSerializer):
    location = LocationSerializer(read_only=True)
    images = PropertyImageSerializer(many=True, read_only=True)
    facilities = FacilitySerializer(many=True, read_only=True)
    average_rating = serializers.SerializerMethodField()
    is_favorite = serializers.SerializerMethodField()

    class Meta:
        model = Property
        fields = [
            "id",
            "name",
            "type",
            "category",
            "gender",
            "address",
            "monthly_price",
            "daily_price",
            "is_verified",
            "is_featured",
            "location",
            "images",
            "facilities",
            "average_rating",
            "is_favorite",
        ]
        read_only_fields = fields

    def get_average_rating(self, obj):
        value = getattr(obj, "avg_rating", None)
        if value is None and not hasattr(obj, "avg_rating"):
            value = obj.reviews.aggregate(avg=Avg("rating"))["avg"]
        return round(float(value), 1) if value is not None else None

    def get_is_favorite(self, obj):
        favorite_ids = self.context.get("favorite_ids")
        if favorite_ids is not None:
            return obj.pk in favorite_ids
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return Favorite.objects.filter(user=user, property=obj).exists()


class PropertyDetailSerializer(PropertyListSerializer):
    rooms = serializers.SerializerMethodField()
    merchant_name = serializers.CharField(source="merchant.business_name", read_only=True)

    class Meta(PropertyListSerializer.Meta):
        fields = PropertyListSerializer.Meta.fields + [
            "description",
            "latitude",
            "longitude",
            "capacity",
            "merchant_name",
            "rooms",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_rooms(self, obj):
        rooms = obj.rooms.filter(is_available=True)
        return RoomSerializer(rooms, many=True).data


# --------------------
# Reviews & favourites
# --------------------
class ReviewSerializer(serializers.ModelSerializer):
    property_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    reviewer_name = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = ["id", "property_id", "user_id", "reviewer_name", "rating", "comment", "created_at", "updated_at"]
        read_only_fields = ["id", "property_id", "user_id", "reviewer_name", "created_at", "updated_at"]

    def get_reviewer_name(self, obj):
        profile = getattr(obj.user, "profile", None)
        return (profile.full_name if profile else "") or "Anonymous"

    def validate_rating(self, value):
        if not 1 <= value <= 5:
            raise serializers.ValidationError("Rating must be between 1 and 5.")
        return value


class FavoriteSerializer(serializers.ModelSerializer):
    property = PropertyListSerializer(read_only=True)

    class Meta:
        model = Favorite
        fields = ["id", "property", "created_at"]
        read_only_fields = fields


# --------------------
# Bookings
# --------------------
class BookingDraftSerializer(serializers.Serializer):
    """
    Validates a booking draft before anything is sent to the database.

    Context:
      time_frame -- "daily" or "monthly", fixed by the caller
      rooms      -- the property's bookable rooms (anything with .id and .capacity);
                    when non-empty a room must be chosen from it
    """
    check_in_date = serializers.DateField(error_messages={"required": "Check-in date is required"})
    check_out_date = serializers.DateField(required=False, allow_null=True)
    check_in_time = serializers.CharField(required=False, default="12:00", validators=[time_of_day])
    check_out_time = serializers.CharField(required=False, default="10:00", validators=[time_of_day])
    number_of_guests = serializers.IntegerField(
        min_value=1,
        max_value=MAX_GUESTS,
        error_messages={
            "min_value": "At least 1 guest is required",
            "max_value": f"Maximum {MAX_GUESTS} guests allowed",
        },
    )
    special_requests = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    room_id = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        time_frame = self.context.get("time_frame")
        rooms = list(self.context.get("rooms") or [])

        try:
            validate_stay_dates(time_frame, attrs.get("check_in_date"), attrs.get("check_out_date"))
        except DjangoValidationError as exc:
            raise _as_drf_error(exc)

        room = None
        room_id = attrs.get("room_id")
        if rooms:
            if room_id is None:
                raise serializers.ValidationError({"room_id": "Please select a room"})
            room = next((r for r in rooms if r.id == room_id), None)
            if room is None:
                raise serializers.ValidationError({"room_id": "Selected room is not available"})
        elif room_id is not None:
            raise serializers.ValidationError({"room_id": "This property has no rooms to select"})

        try:
            validate_guest_count(attrs.get("number_of_guests"), getattr(room, "capacity", None))
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"number_of_guests": exc.messages})

        if time_frame == TIME_FRAME_DAILY and room is not None and room.daily_price is None:
            raise serializers.ValidationError({"room_id": "This room cannot be booked daily"})

        attrs["special_requests"] = attrs.get("special_requests") or ""
        attrs["room"] = room
        return attrs


class BookingRequestSerializer(BookingDraftSerializer):
    """Draft plus the property and time frame, as posted to the API."""
    property_id = serializers.IntegerField()
    time_frame = serializers.ChoiceField(choices=TIME_FRAME_CHOICES)

    def validate(self, attrs):
        prop = Property.objects.filter(pk=attrs["property_id"], is_verified=True).first()
        if prop is None:
            raise serializers.ValidationError({"property_id": "Property not found"})
        self.context["time_frame"] = attrs["time_frame"]
        self.context["rooms"] = list(prop.rooms.filter(is_available=True))
        attrs = super().validate(attrs)
        attrs["property"] = prop
        return attrs


class BookingQuoteSerializer(serializers.Serializer):
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    units = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    security_deposit = serializers.DecimalField(max_digits=10, decimal_places=2)
    total_payable = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)


class BookingSerializer(serializers.ModelSerializer):
    property_id = serializers.IntegerField(read_only=True)
    room_id = serializers.IntegerField(read_only=True)
    user_id = serializers.IntegerField(read_only=True)
    property_name = serializers.CharField(source="property.name", read_only=True)
    room_number = serializers.CharField(source="room.room_number", read_only=True, default=None)
    security_deposit = serializers.DecimalField(
        source="room.security_deposit", max_digits=10, decimal_places=2, read_only=True, default=None
    )

    class Meta:
        model = Booking
        fields = [
            "id",
            "property_id",
            "property_name",
            "room_id",
            "room_number",
            "user_id",
            "check_in_date",
            "check_out_date",
            "check_in_time",
            "check_out_time",
            "time_frame",
            "price_per_unit",
            "total_amount",
            "security_deposit",
            "status",
            "payment_status",
            "number_of_guests",
            "special_requests",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RecommendationQuerySerializer(serializers.Serializer):
    gender = serializers.ChoiceField(choices=["boys", "girls", "common"], required=False)
    property_type = serializers.CharField(required=False)
    location = serializers.CharField(required=False)
    budget = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    limit = serializers.IntegerField(required=False, default=5, min_value=1, max_value=20)
