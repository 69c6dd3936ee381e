"""
Typed values handed to client components.

Rows coming back from the tables layer are plain dicts; `mappers` turns each
one into the matching record below so nothing untyped flows further.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Role = Literal["student", "merchant", "admin"]
Gender = Literal["boys", "girls", "common"]
TimeFrame = Literal["daily", "monthly"]
BookingStatus = Literal["pending", "confirmed", "cancelled", "completed", "processing", "refunded"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Identity(Record):
    id: int
    email: str = ""


class AuthSession(Record):
    access_token: str
    refresh_token: str
    expires_at: int
    token_type: str = "bearer"
    user: Identity


class ProfileRecord(Record):
    id: int
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role = "student"
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    gender: Optional[str] = None
    preferred_location: Optional[str] = None
    preferred_property_type: Optional[str] = None
    preferred_gender_accommodation: Optional[str] = None
    max_budget: Optional[Decimal] = None
    notifications_enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LocationRecord(Record):
    id: int
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class FacilityRecord(Record):
    id: int
    name: str


class PropertyImageRecord(Record):
    id: int
    property_id: int
    image_url: str
    is_primary: bool = False


class RoomRecord(Record):
    id: int
    property_id: int
    room_number: str
    capacity: int = 1
    occupied_beds: int = 0
    monthly_price: Decimal = Decimal("0")
    daily_price: Optional[Decimal] = None
    security_deposit: Optional[Decimal] = None
    description: Optional[str] = None
    is_available: bool = True
    electricity_included: bool = False
    cleaning_included: bool = False
    food_included: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PropertyRecord(Record):
    id: int
    merchant_id: Optional[int] = None
    name: str
    description: str = ""
    type: str = "residential"
    category: str = "pg"
    address: str = ""
    gender: Gender = "common"
    monthly_price: Decimal = Decimal("0")
    daily_price: Optional[Decimal] = None
    is_verified: bool = False
    is_featured: bool = False
    capacity: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location: Optional[LocationRecord] = None
    images: List[PropertyImageRecord] = Field(default_factory=list)
    facilities: List[FacilityRecord] = Field(default_factory=list)
    rooms: List[RoomRecord] = Field(default_factory=list)
    available_rooms: int = 0
    total_rooms: int = 0
    average_rating: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingRecord(Record):
    id: int
    user_id: int
    property_id: int
    room_id: Optional[int] = None
    check_in_date: date
    check_out_date: Optional[date] = None
    check_in_time: str = "12:00"
    check_out_time: str = "10:00"
    time_frame: TimeFrame
    price_per_unit: Decimal
    total_amount: Decimal
    status: BookingStatus = "pending"
    payment_status: PaymentStatus = "pending"
    payment_id: Optional[str] = None
    special_requests: str = ""
    number_of_guests: int = 1
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    property: Optional[PropertyRecord] = None
    room: Optional[RoomRecord] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FavoriteRecord(Record):
    id: int
    user_id: int
    property_id: int
    property: Optional[PropertyRecord] = None
    created_at: Optional[datetime] = None


class ReviewRecord(Record):
    id: int
    property_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PropertyWithScore(PropertyRecord):
    score: float
    match_reason: str = ""
