# marketplace/models.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Integer,
    Float,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.access import PLAN_NONE, SUB_INACTIVE, VERIFICATION_PENDING
from marketplace.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    # Same id as the hosted auth backend's `sub` claim
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Values: "customer" | "admin" | "business-owner"
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="customer")

    whatsapp_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    businesses = relationship("Business", back_populates="owner")
    bookings = relationship("Booking", back_populates="customer")


class Business(Base):
    __tablename__ = "businesses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, unique=True, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)

    # station / mobile (service delivery model)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="station")
    # individual / registered (legal entity)
    business_type: Mapped[str] = mapped_column(String(20), nullable=False, default="individual")
    # Wash / Spare / Cars
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="Wash")
    whatsapp_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    id_number: Mapped[str | None] = mapped_column(String(80), nullable=True)

    # Access inputs (see marketplace.access)
    verification_status: Mapped[str] = mapped_column(String(20), nullable=False, default=VERIFICATION_PENDING)
    subscription_plan: Mapped[str] = mapped_column(String(20), nullable=False, default=PLAN_NONE)
    subscription_status: Mapped[str] = mapped_column(String(30), nullable=False, default=SUB_INACTIVE)
    sub_end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    trial_start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    trial_end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    owner = relationship("User", back_populates="businesses")
    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    car_listings = relationship("CarListing", back_populates="business", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="business")
    payment_submissions = relationship("PaymentSubmission", back_populates="business")
    employees = relationship("Employee", back_populates="business", cascade="all, delete-orphan")
    ratings = relationship("Rating", back_populates="business")


class Service(Base):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    business = relationship("Business", back_populates="services")


class CarListing(Base):
    __tablename__ = "car_listings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id"), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    make: Mapped[str] = mapped_column(String(80), nullable=False)
    model: Mapped[str] = mapped_column(String(80), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    mileage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # available / sold / archived
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="available")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    business = relationship("Business", back_populates="car_listings")


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    customer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id"), nullable=False, index=True)
    service_id: Mapped[str] = mapped_column(ForeignKey("services.id"), nullable=False)

    booking_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # requested / accepted / completed / rejected / cancelled
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="requested")
    price: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    customer = relationship("User", back_populates="bookings")
    business = relationship("Business", back_populates="bookings")
    service = relationship("Service")
    rating = relationship("Rating", back_populates="booking", uselist=False)


class PaymentSubmission(Base):
    __tablename__ = "payment_submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id"), nullable=False, index=True)

    plan_selected: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    mobile_network: Mapped[str] = mapped_column(String(20), nullable=False)  # Orange / Mascom
    reference_text: Mapped[str] = mapped_column(String(120), nullable=False)
    proof_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # pending / approved / rejected
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    submitted_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    reviewed_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    review_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    business = relationship("Business", back_populates="payment_submissions")
    reviewed_by = relationship("User")


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)  # as on the national ID
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    id_reference: Mapped[str] = mapped_column(String(80), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    business = relationship("Business", back_populates="employees")


class Rating(Base):
    __tablename__ = "ratings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id"), nullable=False, unique=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id"), nullable=False, index=True)

    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..5
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking", back_populates="rating")
    business = relationship("Business", back_populates="ratings")
