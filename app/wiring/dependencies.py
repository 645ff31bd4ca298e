from datetime import datetime, timedelta
from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.application.ports.booking_repository import BookingRepositoryPort
from app.application.ports.identity_provider import IdentityProviderPort
from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.use_cases.availability import AvailabilityUseCase, SlotGridConfig
from app.application.use_cases.booking_wizard import BookingWizard
from app.application.use_cases.list_services import ListServicesUseCase
from app.application.use_cases.manage_bookings import ManageBookingsUseCase
from app.application.use_cases.weekly_calendar import WeeklyCalendarUseCase
from app.application.utils.availability import SlotOccupancyPolicy
from app.application.utils.retry import RetryPolicy
from app.application.utils.weekly import HourRange
from app.infrastructure.catalog.static_catalog import StaticServiceCatalog
from app.infrastructure.identity.static_identity import StaticIdentityProvider
from app.infrastructure.store.memory_booking_repository import MemoryBookingRepository
from app.infrastructure.supabase.supabase_booking_repository import SupabaseBookingRepository
from app.infrastructure.supabase.supabase_catalog import SupabaseServiceCatalog
from app.infrastructure.supabase.supabase_client import SupabaseClient


logger = logging.getLogger(__name__)


def _use_local_backend() -> bool:
    return not settings.SUPABASE_URL or settings.ENV.lower() in {"dev", "local", "test"}


def business_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.BUSINESS_TIMEZONE)
    except Exception:
        logger.warning("Unknown BUSINESS_TIMEZONE, using UTC", extra={"reason": settings.BUSINESS_TIMEZONE})
        return ZoneInfo("UTC")


def business_now() -> datetime:
    return datetime.now(business_timezone())


def get_occupancy_policy() -> SlotOccupancyPolicy:
    return SlotOccupancyPolicy(cancelled_blocks_slot=settings.CANCELLED_BOOKINGS_BLOCK_SLOTS)


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.FETCH_MAX_ATTEMPTS,
        delay_seconds=settings.FETCH_RETRY_DELAY_SECONDS,
    )


@lru_cache
def get_supabase_client() -> SupabaseClient:
    return SupabaseClient(
        base_url=settings.SUPABASE_URL or "",
        api_key=settings.SUPABASE_API_KEY or "",
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


@lru_cache
def get_booking_repository() -> BookingRepositoryPort:
    if _use_local_backend():
        logger.info("Using MemoryBookingRepository (ENV=%s)", settings.ENV)
        return MemoryBookingRepository(policy=get_occupancy_policy())
    return SupabaseBookingRepository(get_supabase_client(), table=settings.SUPABASE_BOOKINGS_TABLE)


@lru_cache
def get_service_catalog() -> ServiceCatalogPort:
    if _use_local_backend():
        return StaticServiceCatalog()
    return SupabaseServiceCatalog(get_supabase_client(), table=settings.SUPABASE_SERVICES_TABLE)


@lru_cache
def get_list_services_use_case() -> ListServicesUseCase:
    return ListServicesUseCase(
        catalog=get_service_catalog(),
        retry_policy=get_retry_policy(),
        cache_ttl=timedelta(seconds=settings.CACHE_TTL_SECONDS),
        clock=business_now,
    )


def get_client_slot_grid() -> SlotGridConfig:
    return SlotGridConfig(
        start_hour=settings.WORKING_HOURS_START,
        end_hour=settings.WORKING_HOURS_END,
        interval_minutes=settings.SLOT_INTERVAL_MINUTES,
        policy=get_occupancy_policy(),
    )


def get_staff_slot_grid() -> SlotGridConfig:
    return SlotGridConfig(
        start_hour=settings.WORKING_HOURS_START,
        end_hour=settings.WORKING_HOURS_END,
        interval_minutes=settings.STAFF_SLOT_INTERVAL_MINUTES,
        policy=get_occupancy_policy(),
    )


def get_availability_use_case() -> AvailabilityUseCase:
    return AvailabilityUseCase(
        repository=get_booking_repository(),
        grid=get_client_slot_grid(),
        retry_policy=get_retry_policy(),
    )


@lru_cache
def get_weekly_calendar_use_case() -> WeeklyCalendarUseCase:
    return WeeklyCalendarUseCase(
        repository=get_booking_repository(),
        hour_range=HourRange(settings.CALENDAR_HOURS_START, settings.CALENDAR_HOURS_END),
        retry_policy=get_retry_policy(),
        cache_ttl=timedelta(seconds=settings.CACHE_TTL_SECONDS),
        clock=business_now,
    )


def get_manage_bookings_use_case() -> ManageBookingsUseCase:
    return ManageBookingsUseCase(
        repository=get_booking_repository(),
        walk_in_availability=AvailabilityUseCase(
            repository=get_booking_repository(),
            grid=get_staff_slot_grid(),
            retry_policy=get_retry_policy(),
        ),
        clock=business_now,
    )


def build_booking_wizard(identity_provider: IdentityProviderPort | None = None) -> BookingWizard:
    return BookingWizard(
        availability=get_availability_use_case(),
        services=get_list_services_use_case(),
        identity_provider=identity_provider or StaticIdentityProvider(),
        repository=get_booking_repository(),
        max_days_ahead=settings.BOOKING_MAX_DAYS_AHEAD,
        clock=business_now,
    )
