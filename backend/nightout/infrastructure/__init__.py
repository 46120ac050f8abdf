"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .redis_client import RedisClient, close_redis, get_redis
from .google_places import GooglePlacesClient
from .seatgeek import SeatGeekClient
from .ticketmaster import TicketmasterClient

__all__ = [
    'RedisClient', 'get_redis', 'close_redis',
    'TicketmasterClient', 'SeatGeekClient', 'GooglePlacesClient',
]
