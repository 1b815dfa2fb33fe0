# backend/trainer_booking/routes/v1/trainers.py
"""
Trainer routes - API v1

Endpoints:
    GET /{trainer_id}/available-dates - Public bookable dates for a trainer
    GET /{trainer_id}/bookings - Trainer dashboard (the trainer or an admin)
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import (
    Caller,
    get_availability_service,
    get_booking_service,
    get_current_caller,
)
from ...schemas.booking import AvailableDatesResponse, BookingListResponse, BookingResponse
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trainers-v1"])


@router.get("/{trainer_id}/available-dates", response_model=AvailableDatesResponse)
async def get_available_dates(
    trainer_id: str,
    horizon_days: Optional[int] = Query(None, description="Days ahead to resolve"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailableDatesResponse:
    result = await asyncio.to_thread(
        availability_service.get_available_dates, trainer_id, horizon_days
    )
    return AvailableDatesResponse(**result)


@router.get("/{trainer_id}/bookings", response_model=BookingListResponse)
async def list_trainer_bookings(
    trainer_id: str,
    caller: Caller = Depends(get_current_caller),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(
        booking_service.list_trainer_bookings, trainer_id, caller.id, caller.is_admin
    )
    items = [BookingResponse.from_booking(b) for b in bookings]
    return BookingListResponse(bookings=items, total=len(items))
