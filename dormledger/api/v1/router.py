"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from dormledger.api.v1 import bookings, rooms

api_router = APIRouter()

# Rooms (pricing quotes)
api_router.include_router(rooms.router, prefix="/rooms", tags=["Rooms"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
