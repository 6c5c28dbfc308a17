from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import Decimal
from threading import Lock
from typing import Dict, Iterator, List, Optional
from weakref import WeakValueDictionary

from src.analytics.allocation import ensure_editable, generate_allocations, round_currency
from src.analytics.shifts import normalize_shift_weights, split_allocations
from src.analytics.weights import normalize_weights
from src.core.config import get_settings
from src.core.errors import (
    AllocationNotFoundError,
    AppError,
    DuplicateTargetError,
    NotFoundError,
    ValidationError,
)
from src.models.targets import (
    DailyAllocationRecord,
    MonthlyTargetRecord,
    TargetStatus,
    WeightProfileRecord,
)
from src.repositories.holidays_repository import HolidaysRepository
from src.repositories.targets_repository import TargetsRepository
from src.schemas.targets import (
    AllocationSet,
    BulkCreateTargetsRequest,
    BulkOperationResult,
    BulkSkipItem,
    CopyTargetsRequest,
    DailyAllocation,
    MonthlyTarget,
    MonthlyTargetCreateRequest,
    MonthlyTargetUpdateRequest,
    ShiftAllocation,
    ShiftAllocationSet,
)
from src.shared.time import month_bounds, parse_year_month

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: Dict[str, frozenset[str]] = {
    "draft": frozenset({"active", "archived"}),
    "active": frozenset({"locked", "archived"}),
    "locked": frozenset(),
    "archived": frozenset(),
}

BUILTIN_DEFAULT_PROFILE = WeightProfileRecord(
    id=None,
    name="Built-in default",
    is_default=True,
    sunday_weight=100,
    monday_weight=100,
    tuesday_weight=100,
    wednesday_weight=100,
    thursday_weight=130,
    friday_weight=130,
    saturday_weight=100,
)


class TargetLocks:
    """Process-wide registry of per-target locks for allocation writes.

    Entries are weak: a lock lives only while some caller holds a reference,
    so targets that are no longer being edited do not accumulate locks.
    """

    _locks: WeakValueDictionary[int, Lock] = WeakValueDictionary()
    _registry_lock: Lock = Lock()

    @classmethod
    def for_target(cls, target_id: int) -> Lock:
        with cls._registry_lock:
            lock = cls._locks.get(target_id)
            if lock is None:
                lock = Lock()
                cls._locks[target_id] = lock
            return lock

    @classmethod
    @contextmanager
    def hold(cls, target_id: int) -> Iterator[None]:
        lock = cls.for_target(target_id)
        with lock:
            yield


def to_target_schema(record: MonthlyTargetRecord) -> MonthlyTarget:
    return MonthlyTarget(
        id=record.id,
        branch_id=record.branch_id,
        year_month=record.year_month,
        target_amount=record.target_amount,
        profile_id=record.profile_id,
        status=record.status,
        notes=record.notes,
    )


def to_allocation_schema(record: DailyAllocationRecord) -> DailyAllocation:
    return DailyAllocation(
        id=record.id,
        monthly_target_id=record.monthly_target_id,
        target_date=record.target_date,
        daily_target=record.daily_target,
        weight_percent=round(record.weight_percent, 4),
        is_holiday=record.is_holiday,
        holiday_name=record.holiday_name,
        kind=record.kind,
        is_manual_override=record.is_manual_override,
        override_reason=record.override_reason,
    )


class TargetsService:
    def __init__(self, repository: TargetsRepository, holidays_repository: HolidaysRepository) -> None:
        self.repository = repository
        self.holidays_repository = holidays_repository
        self.settings = get_settings()

    def list_targets(self, year_month: str) -> List[MonthlyTarget]:
        parse_year_month(year_month)
        return [to_target_schema(record) for record in self.repository.list_targets(year_month)]

    def get_target(self, target_id: int) -> MonthlyTarget:
        return to_target_schema(self._require_target(target_id))

    def create_target(self, request: MonthlyTargetCreateRequest) -> MonthlyTarget:
        record = self._create_target(
            branch_id=request.branch_id,
            year_month=request.year_month,
            target_amount=request.target_amount,
            profile_id=request.profile_id,
            notes=request.notes,
        )
        if request.generate_allocations:
            self.generate_allocations(record.id)
        return to_target_schema(record)

    def update_target(self, target_id: int, request: MonthlyTargetUpdateRequest) -> MonthlyTarget:
        with TargetLocks.hold(target_id):
            target = self._require_target(target_id)
            ensure_editable(target)
            changes = request.model_dump(exclude_unset=True)
            payload: Dict[str, object] = {}
            if "target_amount" in changes:
                amount = self._validate_amount(request.target_amount, target.branch_id)
                payload["target_amount"] = str(amount)
            if "profile_id" in changes:
                if request.profile_id is not None:
                    self.resolve_profile(request.profile_id)
                payload["profile_id"] = request.profile_id
            if "notes" in changes:
                payload["notes"] = request.notes
            if not payload:
                return to_target_schema(target)

            existing: List[DailyAllocationRecord] = []
            if "target_amount" in payload or "profile_id" in payload:
                existing = self.repository.list_allocations(target_id)
            if existing:
                candidate = target.model_copy(
                    update={
                        "target_amount": Decimal(str(payload.get("target_amount", target.target_amount))),
                        "profile_id": payload.get("profile_id", target.profile_id),
                    }
                )
                # Allocations go first; a failed upsert leaves the stored target untouched.
                self._persist_allocations(candidate, self._build_allocations(candidate, existing))

            try:
                updated = self.repository.update_target(target_id, payload)
                if updated is None:
                    raise NotFoundError("Monthly target not found", details={"targetId": target_id})
            except Exception:
                if existing:
                    logger.warning("Target %s update failed; restoring previous allocations", target_id)
                    self.repository.upsert_allocations([row for row in existing if row.kind == "generated"])
                raise
            return to_target_schema(updated)

    def change_status(self, target_id: int, status: TargetStatus) -> MonthlyTarget:
        with TargetLocks.hold(target_id):
            target = self._require_target(target_id)
            if target.status == status:
                return to_target_schema(target)
            if status not in STATUS_TRANSITIONS.get(target.status, frozenset()):
                raise ValidationError(
                    f"Cannot move target from {target.status} to {status}",
                    field="status",
                    targetId=target_id,
                    currentStatus=target.status,
                    requestedStatus=status,
                )
            updated = self.repository.update_target(target_id, {"status": status})
            if updated is None:
                raise NotFoundError("Monthly target not found", details={"targetId": target_id})
            logger.info("Target %s moved from %s to %s", target_id, target.status, status)
            return to_target_schema(updated)

    def delete_target(self, target_id: int) -> None:
        with TargetLocks.hold(target_id):
            target = self._require_target(target_id)
            ensure_editable(target)
            self.repository.delete_target(target_id)
            logger.info("Deleted target %s for branch %s (%s)", target_id, target.branch_id, target.year_month)

    def resolve_profile(self, profile_id: Optional[int]) -> WeightProfileRecord:
        if profile_id is None:
            return self.repository.get_default_profile() or BUILTIN_DEFAULT_PROFILE
        profile = self.repository.get_profile(profile_id)
        if profile is None:
            raise NotFoundError("Weight profile not found", details={"profileId": profile_id})
        return profile

    def generate_allocations(self, target_id: int) -> AllocationSet:
        with TargetLocks.hold(target_id):
            target = self._require_target(target_id)
            rows = self._regenerate(target)
            return self._allocation_set(target, rows)

    def list_allocations(self, target_id: int) -> AllocationSet:
        target = self._require_target(target_id)
        return self._allocation_set(target, self.repository.list_allocations(target_id))

    def preview_allocations(self, target: MonthlyTargetRecord) -> List[DailyAllocationRecord]:
        """Allocations for display when a target has none stored yet; never persisted."""
        profile = self.resolve_profile(target.profile_id)
        start, end = month_bounds(target.year_month)
        holidays = self.holidays_repository.list_holidays_in_range(start, end)
        preview_target = target.model_copy(update={"status": "draft"})
        return generate_allocations(preview_target, profile, holidays)

    def shift_allocations(
        self,
        target_id: int,
        morning: Optional[float] = None,
        evening: Optional[float] = None,
        night: Optional[float] = None,
    ) -> ShiftAllocationSet:
        """Derived morning/evening/night split of each daily allocation; never persisted."""
        target = self._require_target(target_id)
        requested = {
            "morning": self.settings.targets_shift_morning_weight if morning is None else morning,
            "evening": self.settings.targets_shift_evening_weight if evening is None else evening,
            "night": self.settings.targets_shift_night_weight if night is None else night,
        }
        weights = normalize_shift_weights(requested)
        daily = self.repository.list_allocations(target_id)
        is_preview = not daily
        if is_preview:
            daily = self.preview_allocations(target)
        rows = split_allocations(daily, weights)
        totals = {shift: Decimal("0") for shift in weights}
        for row in rows:
            totals[row.shift_type] += row.shift_target
        return ShiftAllocationSet(
            monthly_target_id=target.id,
            year_month=target.year_month,
            is_preview=is_preview,
            shift_weights={shift: round(value, 4) for shift, value in weights.items()},
            shift_totals=totals,
            allocations=[ShiftAllocation(**row.model_dump()) for row in rows],
        )

    def set_override(self, allocation_id: int, amount: Decimal, reason: Optional[str]) -> DailyAllocation:
        allocation = self._require_allocation(allocation_id)
        with TargetLocks.hold(allocation.monthly_target_id):
            target = self._require_target(allocation.monthly_target_id)
            ensure_editable(target)
            if amount < 0:
                raise ValidationError(
                    "Daily target cannot be negative",
                    field="dailyTarget",
                    allocationId=allocation_id,
                )
            updated = self.repository.update_allocation(
                allocation_id,
                {
                    "daily_target": str(amount),
                    "is_manual_override": True,
                    "override_reason": reason,
                },
            )
            if updated is None:
                raise AllocationNotFoundError(allocation_id)
            logger.info(
                "Allocation %s on %s overridden to %s", allocation_id, allocation.target_date, amount
            )
            return to_allocation_schema(updated)

    def clear_override(self, allocation_id: int) -> DailyAllocation:
        allocation = self._require_allocation(allocation_id)
        with TargetLocks.hold(allocation.monthly_target_id):
            target = self._require_target(allocation.monthly_target_id)
            ensure_editable(target)
            updated = self.repository.update_allocation(
                allocation_id,
                {"is_manual_override": False, "override_reason": None},
            )
            if updated is None:
                raise AllocationNotFoundError(allocation_id)
            return to_allocation_schema(updated)

    def bulk_create_targets(self, request: BulkCreateTargetsRequest) -> BulkOperationResult:
        parse_year_month(request.year_month)
        if request.profile_id is not None:
            normalize_weights(
                self.resolve_profile(request.profile_id).weekday_weights(),
                profile_id=request.profile_id,
            )

        created: List[MonthlyTarget] = []
        skipped: List[BulkSkipItem] = []
        warnings: List[BulkSkipItem] = []
        for branch_id in dict.fromkeys(request.branch_ids):
            amount = request.amounts_by_branch.get(branch_id, request.target_amount)
            if amount is None or amount <= 0:
                skipped.append(
                    BulkSkipItem(
                        branch_id=branch_id,
                        code="validation_error",
                        reason="No positive target amount for branch",
                    )
                )
                continue
            try:
                record = self._create_target(
                    branch_id=branch_id,
                    year_month=request.year_month,
                    target_amount=amount,
                    profile_id=request.profile_id,
                    notes=request.notes,
                )
            except AppError as exc:
                logger.warning("Bulk create skipped branch %s: %s", branch_id, exc.message)
                skipped.append(BulkSkipItem(branch_id=branch_id, code=exc.code, reason=exc.message))
                continue
            created.append(to_target_schema(record))
            if request.generate_allocations:
                warning = self._generate_quietly(record)
                if warning:
                    warnings.append(warning)

        logger.info(
            "Bulk create for %s: %s created, %s skipped", request.year_month, len(created), len(skipped)
        )
        return BulkOperationResult(
            year_month=request.year_month,
            created_count=len(created),
            skipped_count=len(skipped),
            created=created,
            skipped=skipped,
            warnings=warnings,
        )

    def copy_from_month(self, request: CopyTargetsRequest) -> BulkOperationResult:
        parse_year_month(request.source_month)
        parse_year_month(request.dest_month)
        if request.source_month == request.dest_month:
            raise ValidationError("Source and destination months must differ", field="destMonth")

        factor = Decimal("1") + Decimal(str(request.adjustment_percent)) / Decimal("100")
        created: List[MonthlyTarget] = []
        skipped: List[BulkSkipItem] = []
        warnings: List[BulkSkipItem] = []
        for source in self.repository.list_targets(request.source_month):
            new_amount = round_currency(Decimal(source.target_amount) * factor)
            if new_amount <= 0:
                skipped.append(
                    BulkSkipItem(
                        branch_id=source.branch_id,
                        code="validation_error",
                        reason=f"Adjusted amount {new_amount} is not positive",
                    )
                )
                continue
            try:
                record = self._create_target(
                    branch_id=source.branch_id,
                    year_month=request.dest_month,
                    target_amount=new_amount,
                    profile_id=source.profile_id,
                    notes=source.notes,
                )
            except AppError as exc:
                logger.warning("Copy skipped branch %s: %s", source.branch_id, exc.message)
                skipped.append(BulkSkipItem(branch_id=source.branch_id, code=exc.code, reason=exc.message))
                continue
            created.append(to_target_schema(record))
            if request.generate_allocations:
                warning = self._generate_quietly(record)
                if warning:
                    warnings.append(warning)

        logger.info(
            "Copied targets %s -> %s (%+.2f%%): %s created, %s skipped",
            request.source_month,
            request.dest_month,
            request.adjustment_percent,
            len(created),
            len(skipped),
        )
        return BulkOperationResult(
            year_month=request.dest_month,
            created_count=len(created),
            skipped_count=len(skipped),
            created=created,
            skipped=skipped,
            warnings=warnings,
        )

    def _create_target(
        self,
        *,
        branch_id: str,
        year_month: str,
        target_amount: Decimal,
        profile_id: Optional[int],
        notes: Optional[str],
    ) -> MonthlyTargetRecord:
        parse_year_month(year_month)
        amount = self._validate_amount(target_amount, branch_id)
        if profile_id is not None:
            self.resolve_profile(profile_id)
        if self.repository.find_target(branch_id, year_month) is not None:
            raise DuplicateTargetError(branch_id, year_month)
        record = self.repository.create_target(
            {
                "branch_id": branch_id,
                "year_month": year_month,
                "target_amount": str(amount),
                "profile_id": profile_id,
                "status": "draft",
                "notes": notes,
            }
        )
        logger.info("Created target %s for branch %s (%s): %s", record.id, branch_id, year_month, amount)
        return record

    def _regenerate(self, target: MonthlyTargetRecord) -> List[DailyAllocationRecord]:
        existing = self.repository.list_allocations(target.id)
        return self._persist_allocations(target, self._build_allocations(target, existing))

    def _build_allocations(
        self,
        target: MonthlyTargetRecord,
        existing: List[DailyAllocationRecord],
    ) -> List[DailyAllocationRecord]:
        profile = self.resolve_profile(target.profile_id)
        start, end = month_bounds(target.year_month)
        holidays = self.holidays_repository.list_holidays_in_range(start, end)
        return generate_allocations(target, profile, holidays, existing)

    def _persist_allocations(
        self,
        target: MonthlyTargetRecord,
        rows: List[DailyAllocationRecord],
    ) -> List[DailyAllocationRecord]:
        generated = [row for row in rows if row.kind == "generated"]
        saved = self.repository.upsert_allocations(generated)
        logger.info(
            "Regenerated %s allocations for target %s (%s overrides kept)",
            len(saved),
            target.id,
            len(rows) - len(generated),
        )
        overrides = [row for row in rows if row.kind == "manual_override"]
        return sorted(saved + overrides, key=lambda row: row.target_date)

    def _generate_quietly(self, target: MonthlyTargetRecord) -> Optional[BulkSkipItem]:
        try:
            with TargetLocks.hold(target.id):
                self._regenerate(target)
        except AppError as exc:
            logger.warning("Allocation generation failed for target %s: %s", target.id, exc.message)
            return BulkSkipItem(branch_id=target.branch_id, code=exc.code, reason=exc.message)
        return None

    def _allocation_set(
        self, target: MonthlyTargetRecord, rows: List[DailyAllocationRecord]
    ) -> AllocationSet:
        overrides = [row for row in rows if row.kind == "manual_override"]
        return AllocationSet(
            monthly_target_id=target.id,
            year_month=target.year_month,
            target_amount=target.target_amount,
            allocated_total=sum((row.daily_target for row in rows), Decimal("0")),
            override_total=sum((row.daily_target for row in overrides), Decimal("0")),
            override_count=len(overrides),
            allocations=[to_allocation_schema(row) for row in rows],
        )

    @staticmethod
    def _validate_amount(amount: Optional[Decimal], branch_id: str) -> Decimal:
        if amount is None or amount <= 0:
            raise ValidationError(
                "Target amount must be greater than zero",
                field="targetAmount",
                branchId=branch_id,
            )
        return Decimal(amount)

    def _require_target(self, target_id: int) -> MonthlyTargetRecord:
        target = self.repository.get_target(target_id)
        if target is None:
            raise NotFoundError("Monthly target not found", details={"targetId": target_id})
        return target

    def _require_allocation(self, allocation_id: int) -> DailyAllocationRecord:
        allocation = self.repository.get_allocation(allocation_id)
        if allocation is None:
            raise AllocationNotFoundError(allocation_id)
        return allocation
