from typing import Optional

import redis.asyncio as redis

from booking_api.scheduling.locks import UserLocks
from booking_api.scheduling.ports import AvailabilityStore, BookingStore, EventStore, UserDirectory

# Global runtime state initialized in lifespan.setup_resources
redis_client: Optional[redis.Redis] = None
user_locks: Optional[UserLocks] = None

event_store: Optional[EventStore] = None
booking_store: Optional[BookingStore] = None
availability_store: Optional[AvailabilityStore] = None
user_directory: Optional[UserDirectory] = None
