from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q, CheckConstraint


ROLE_STUDENT = "student"
ROLE_MERCHANT = "merchant"
ROLE_ADMIN = "admin"

ROLE_CHOICES = (
    (ROLE_STUDENT, "Student"),
    (ROLE_MERCHANT, "Merchant"),
    (ROLE_ADMIN, "Admin"),
)

GENDER_CHOICES = (
    ("boys", "Boys"),
    ("girls", "Girls"),
    ("common", "Common"),
)

TIME_FRAME_DAILY = "daily"
TIME_FRAME_MONTHLY = "monthly"

TIME_FRAME_CHOICES = (
    (TIME_FRAME_DAILY, "Daily"),
    (TIME_FRAME_MONTHLY, "Monthly"),
)


# -------
# Profile
# -------
class Profile(models.Model):
    """
    Application-level user record. Its primary key is the auth user's id,
    so the `profiles` table is queried with `id = <user id>`.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="profile",
    )
    email = models.EmailField(blank=True, default="")
    full_name = models.CharField(max_length=150, blank=True, default="")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STUDENT, db_index=True)
    phone = models.CharField(max_length=20, blank=True, default="")
    avatar_url = models.URLField(max_length=500, blank=True, default="")
    gender = models.CharField(max_length=20, blank=True, default="")

    # Preference settings
    preferred_location = models.CharField(max_length=120, blank=True, default="")
    preferred_property_type = models.CharField(max_length=50, blank=True, default="")
    preferred_gender_accommodation = models.CharField(max_length=20, blank=True, default="")
    max_budget = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    notifications_enabled = models.BooleanField(default=True)

    email_confirmed = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.email or self.user_id} ({self.role})"


# --------
# Merchant
# --------
class Merchant(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="merchant",
        null=True,
        blank=True,
    )
    business_name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=150, blank=True, default="")
    phone = models.CharField(max_length=20)
    email = models.EmailField()
    address = models.CharField(max_length=255, blank=True, default="")
    is_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.business_name


# --------------------
# Location & Facility
# --------------------
class Location(models.Model):
    name = models.CharField(max_length=120, unique=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Facility(models.Model):
    name = models.CharField(max_length=80, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "facilities"

    def __str__(self):
        return self.name


# --------
# Property
# --------
class Property(models.Model):
    CATEGORY_CHOICES = (
        ("pg", "PG"),
        ("hostel", "Hostel"),
        ("room", "Room"),
        ("dormitory", "Dormitory"),
    )

    merchant = models.ForeignKey(Merchant, on_delete=models.CASCADE, related_name="properties")
    name = models.CharField(max_length=200)
    type = models.CharField(max_length=50, default="residential")
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="pg")
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default="common")
    description = models.TextField(blank=True, default="")
    location = models.ForeignKey(
        Location,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="properties",
    )
    address = models.CharField(max_length=255)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    daily_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    monthly_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    is_verified = models.BooleanField(default=False, db_index=True)
    is_featured = models.BooleanField(default=False)
    capacity = models.PositiveIntegerField(default=0)
    facilities = models.ManyToManyField(Facility, blank=True, related_name="properties")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "properties"
        ordering = ["-created_at"]

    def __str__(self):
        return self.name


class PropertyImage(models.Model):
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="images")
    image_url = models.URLField(max_length=500)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)


# ----
# Room
# ----
class Room(models.Model):
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="rooms")
    room_number = models.CharField(max_length=20)
    capacity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    occupied_beds = models.PositiveIntegerField(default=0)
    monthly_price = models.DecimalField(max_digits=10, decimal_places=2)
    daily_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    security_deposit = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    description = models.TextField(blank=True, default="")
    is_available = models.BooleanField(default=True, db_index=True)
    electricity_included = models.BooleanField(default=False)
    cleaning_included = models.BooleanField(default=False)
    food_included = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["room_number"]
        constraints = [
            models.UniqueConstraint(fields=["property", "room_number"], name="uq_room_number_per_property"),
            CheckConstraint(condition=Q(capacity__gte=1), name="room_capacity_gte_1"),
        ]

    def __str__(self):
        return f"{self.property} #{self.room_number}"


# -------
# Booking
# -------
class Booking(models.Model):
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_CANCELLED = "cancelled"
    STATUS_COMPLETED = "completed"
    STATUS_PROCESSING = "processing"
    STATUS_REFUNDED = "refunded"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_REFUNDED, "Refunded"),
    )

    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"

    PAYMENT_STATUS_CHOICES = (
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
    )

    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="bookings")
    room = models.ForeignKey(Room, on_delete=models.SET_NULL, null=True, blank=True, related_name="bookings")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings")

    check_in_date = models.DateField()
    check_out_date = models.DateField(null=True, blank=True)
    check_in_time = models.CharField(max_length=5, default="12:00")
    check_out_time = models.CharField(max_length=5, default="10:00")
    time_frame = models.CharField(max_length=10, choices=TIME_FRAME_CHOICES)

    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_id = models.CharField(max_length=120, blank=True, default="")

    number_of_guests = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    special_requests = models.TextField(blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # one booking per draft; replays of the same key return the stored row
    idempotency_key = models.CharField(max_length=64, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "idempotency_key"],
                name="uq_booking_idempotency_per_user",
            ),
            CheckConstraint(condition=Q(number_of_guests__gte=1), name="booking_guests_gte_1"),
        ]
        indexes = [
            models.Index(fields=["property", "check_in_date"], name="booking_property_checkin_idx"),
        ]

    def __str__(self):
        return f"Booking #{self.pk} for {self.property} by {self.user}"


# --------
# Favorite
# --------
class Favorite(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="favorites")
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="favorited_by")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("user", "property")

    def __str__(self):
        return f"{self.user_id} → {self.property_id}"


# ------
# Review
# ------
class Review(models.Model):
    property = models.ForeignKey(Property, on_delete=models.CASCADE, related_name="reviews")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="reviews")
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            CheckConstraint(condition=Q(rating__gte=1) & Q(rating__lte=5), name="review_rating_1_to_5"),
        ]

    def __str__(self):
        return f"{self.rating}★ {self.property_id} by {self.user_id}"


# -------------
# SystemSetting
# -------------
class SystemSetting(models.Model):
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key
