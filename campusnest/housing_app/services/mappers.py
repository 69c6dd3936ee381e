from decimal import Decimal

from .records import (
    BookingRecord,
    FacilityRecord,
    FavoriteRecord,
    LocationRecord,
    ProfileRecord,
    PropertyImageRecord,
    PropertyRecord,
    ReviewRecord,
    RoomRecord,
)


def _or(value, default):
    # empty strings and None both fall back
    return default if value in (None, "") else value


def map_profile(row: dict) -> ProfileRecord:
    return ProfileRecord(
        id=row["id"],
        email=row.get("email") or None,
        full_name=row.get("full_name") or None,
        role=_or(row.get("role"), "student"),
        phone=row.get("phone") or None,
        avatar_url=row.get("avatar_url") or None,
        gender=row.get("gender") or None,
        preferred_location=row.get("preferred_location") or None,
        preferred_property_type=row.get("preferred_property_type") or None,
        preferred_gender_accommodation=row.get("preferred_gender_accommodation") or None,
        max_budget=row.get("max_budget"),
        notifications_enabled=row.get("notifications_enabled") is not False,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def map_location(row: dict | None) -> LocationRecord | None:
    if not row:
        return None
    return LocationRecord(
        id=row["id"],
        name=row.get("name") or "",
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
    )


def map_room(row: dict) -> RoomRecord:
    return RoomRecord(
        id=row["id"],
        property_id=row.get("property_id"),
        room_number=str(row.get("room_number") or ""),
        capacity=row.get("capacity") or 1,
        occupied_beds=row.get("occupied_beds") or 0,
        monthly_price=_or(row.get("monthly_price"), Decimal("0")),
        daily_price=row.get("daily_price") or None,
        security_deposit=row.get("security_deposit"),
        description=row.get("description") or None,
        is_available=row.get("is_available") is not False,
        electricity_included=bool(row.get("electricity_included")),
        cleaning_included=bool(row.get("cleaning_included")),
        food_included=bool(row.get("food_included")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def map_property(row: dict) -> PropertyRecord:
    rooms = [map_room(r) for r in row.get("rooms") or []]
    return PropertyRecord(
        id=row["id"],
        merchant_id=row.get("merchant_id"),
        name=row.get("name") or "",
        description=row.get("description") or "",
        type=_or(row.get("type"), "residential"),
        category=_or(row.get("category"), "pg"),
        address=row.get("address") or "",
        gender=_or(row.get("gender"), "common"),
        monthly_price=_or(row.get("monthly_price"), Decimal("0")),
        daily_price=row.get("daily_price") or None,
        is_verified=bool(row.get("is_verified")),
        is_featured=bool(row.get("is_featured")),
        capacity=row.get("capacity") or 0,
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        location=map_location(row.get("location")),
        images=[
            PropertyImageRecord(
                id=img["id"],
                property_id=img.get("property_id") or row["id"],
                image_url=img.get("image_url") or "",
                is_primary=bool(img.get("is_primary")),
            )
            for img in row.get("images") or []
        ],
        facilities=[FacilityRecord(id=f["id"], name=f.get("name") or "") for f in row.get("facilities") or []],
        rooms=rooms,
        available_rooms=row.get("available_rooms") or sum(1 for r in rooms if r.is_available),
        total_rooms=row.get("total_rooms") or len(rooms),
        average_rating=row.get("average_rating"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def map_booking(row: dict) -> BookingRecord:
    return BookingRecord(
        id=row["id"],
        user_id=row.get("user_id"),
        property_id=row.get("property_id"),
        room_id=row.get("room_id"),
        check_in_date=row.get("check_in_date"),
        check_out_date=row.get("check_out_date"),
        check_in_time=_or(row.get("check_in_time"), "12:00"),
        check_out_time=_or(row.get("check_out_time"), "10:00"),
        time_frame=row.get("time_frame"),
        price_per_unit=row.get("price_per_unit"),
        total_amount=row.get("total_amount"),
        status=_or(row.get("status"), "pending"),
        payment_status=_or(row.get("payment_status"), "pending"),
        payment_id=row.get("payment_id") or None,
        special_requests=row.get("special_requests") or "",
        number_of_guests=row.get("number_of_guests") or 1,
        cancellation_reason=row.get("cancellation_reason") or None,
        refund_amount=row.get("refund_amount"),
        property=map_property(row["property"]) if row.get("property") else None,
        room=map_room(row["room"]) if row.get("room") else None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def map_favorite(row: dict) -> FavoriteRecord:
    return FavoriteRecord(
        id=row["id"],
        user_id=row.get("user_id"),
        property_id=row.get("property_id"),
        property=map_property(row["property"]) if row.get("property") else None,
        created_at=row.get("created_at"),
    )


def map_review(row: dict) -> ReviewRecord:
    return ReviewRecord(
        id=row["id"],
        property_id=row.get("property_id"),
        user_id=row.get("user_id"),
        rating=row.get("rating"),
        comment=row.get("comment") or None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )
