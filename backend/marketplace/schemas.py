# marketplace/schemas.py
from datetime import datetime
from typing import Optional, Literal

from pydantic import BaseModel, EmailStr, Field

UserRole = Literal["customer", "admin", "business-owner"]
BusinessDelivery = Literal["station", "mobile"]
BusinessType = Literal["individual", "registered"]
BusinessCategory = Literal["Wash", "Spare", "Cars"]
VerificationStatus = Literal["pending", "verified", "rejected"]
PaidPlan = Literal["Starter", "Pro", "Enterprise"]
MobileNetwork = Literal["Orange", "Mascom"]
CarListingStatus = Literal["available", "sold", "archived"]


# -----------------------------
# USERS
# -----------------------------
class UserOut(BaseModel):
    id: str
    email: EmailStr
    name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


# -----------------------------
# BUSINESSES
# -----------------------------
class BusinessCreateIn(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = None
    type: BusinessDelivery = "station"
    business_type: BusinessType = "individual"
    category: BusinessCategory = "Wash"
    whatsapp_number: Optional[str] = None
    id_number: Optional[str] = None


class BusinessOut(BaseModel):
    id: str
    owner_id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    type: str
    business_type: str
    category: str
    whatsapp_number: Optional[str] = None

    verification_status: str
    subscription_plan: str
    subscription_status: str
    sub_end_date: Optional[datetime] = None
    trial_start_date: Optional[datetime] = None
    trial_end_date: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PublicBusinessOut(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    type: str
    category: str
    whatsapp_number: Optional[str] = None
    verified: bool = False
    rating: Optional[float] = None
    review_count: int = 0

    class Config:
        from_attributes = True


class BusinessUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = None
    type: Optional[BusinessDelivery] = None
    whatsapp_number: Optional[str] = None


class VerificationUpdateIn(BaseModel):
    verification_status: VerificationStatus
    note: Optional[str] = None


# -----------------------------
# SERVICES
# -----------------------------
class ServiceCreateIn(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    description: Optional[str] = None
    price: float = Field(gt=0)
    duration: Optional[int] = Field(default=None, gt=0)


class ServiceOut(BaseModel):
    id: str
    business_id: str
    name: str
    description: Optional[str] = None
    price: float
    duration: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------
# CAR LISTINGS
# -----------------------------
class CarListingCreateIn(BaseModel):
    title: str = Field(min_length=2, max_length=255)
    make: str
    model: str
    year: int = Field(ge=1950, le=2100)
    price: float = Field(gt=0)
    mileage: int = Field(default=0, ge=0)
    location: Optional[str] = None
    description: str = ""


class CarListingStatusIn(BaseModel):
    status: CarListingStatus


class CarListingOut(BaseModel):
    id: str
    business_id: str
    title: str
    make: str
    model: str
    year: int
    price: float
    mileage: int
    location: Optional[str] = None
    description: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------
# BOOKINGS
# -----------------------------
class BookingCreateIn(BaseModel):
    business_id: str
    service_id: str
    booking_time: datetime


class BookingOut(BaseModel):
    id: str
    customer_id: str
    business_id: str
    service_id: str
    booking_time: datetime
    status: str
    price: float
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------
# SUBSCRIPTION / PAYMENTS
# -----------------------------
class PlanOut(BaseModel):
    name: str
    price: int
    currency: str
    description: str
    max_employees: Optional[int] = None
    mobile_service: bool
    vehicle_listings: bool
    priority_listing: bool
    features: list[str]


class PaymentSubmitIn(BaseModel):
    plan_selected: PaidPlan
    mobile_network: MobileNetwork = "Orange"
    reference_text: str = Field(min_length=4, max_length=120)
    proof_image_url: Optional[str] = None


class PaymentReviewIn(BaseModel):
    note: Optional[str] = None


class PaymentSubmissionOut(BaseModel):
    id: str
    business_id: str
    plan_selected: str
    amount: float
    mobile_network: str
    reference_text: str
    proof_image_url: Optional[str] = None
    status: str
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None

    class Config:
        from_attributes = True


# -----------------------------
# EMPLOYEES
# -----------------------------
class EmployeeCreateIn(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    phone: str = Field(min_length=7, max_length=50)
    id_reference: str = Field(min_length=4, max_length=80)
    image_url: Optional[str] = None


class EmployeeOut(BaseModel):
    id: str
    business_id: str
    name: str
    phone: str
    id_reference: str
    image_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------
# RATINGS
# -----------------------------
class RatingIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=2000)


class RatingOut(BaseModel):
    id: str
    booking_id: str
    business_id: str
    rating: int
    feedback: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------
# ACCESS
# -----------------------------
class AccessOut(BaseModel):
    business_id: str
    verification_status: str
    subscription_plan: str
    subscription_status: str
    trial_expires_at: Optional[datetime] = None

    verified: bool
    paid_active: bool
    trial_active: bool
    has_booking_access: bool
    can_list_vehicles: bool
    trial_days_remaining: int
    lock_reason: Optional[str] = None
