from __future__ import annotations

from functools import lru_cache

from src.repositories.holidays_repository import HolidaysRepository
from src.repositories.sales_repository import SalesRepository
from src.repositories.targets_repository import TargetsRepository
from src.services.holidays_service import HolidaysService
from src.services.performance_service import PerformanceService
from src.services.profiles_service import ProfilesService
from src.services.targets_service import TargetsService


@lru_cache
def get_targets_repository() -> TargetsRepository:
    return TargetsRepository()


@lru_cache
def get_holidays_repository() -> HolidaysRepository:
    return HolidaysRepository()


@lru_cache
def get_sales_repository() -> SalesRepository:
    return SalesRepository()


def get_targets_service() -> TargetsService:
    return TargetsService(
        repository=get_targets_repository(),
        holidays_repository=get_holidays_repository(),
    )


def get_performance_service() -> PerformanceService:
    return PerformanceService(
        targets_repository=get_targets_repository(),
        sales_repository=get_sales_repository(),
        targets_service=get_targets_service(),
    )


def get_profiles_service() -> ProfilesService:
    return ProfilesService(repository=get_targets_repository())


def get_holidays_service() -> HolidaysService:
    return HolidaysService(repository=get_holidays_repository())
