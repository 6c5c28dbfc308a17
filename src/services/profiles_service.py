from __future__ import annotations

import logging
from typing import List

from src.analytics.weights import normalize_weights
from src.core.errors import InvalidProfileError, NotFoundError
from src.models.targets import WEEKDAY_FIELDS, WeightProfileRecord
from src.repositories.targets_repository import TargetsRepository
from src.schemas.targets import WeightProfile, WeightProfileCreateRequest, WeightProfileUpdateRequest

logger = logging.getLogger(__name__)


def to_profile_schema(record: WeightProfileRecord) -> WeightProfile:
    try:
        normalized = [round(value, 4) for value in normalize_weights(record.weekday_weights(), record.id)]
    except InvalidProfileError:
        normalized = []
    return WeightProfile(
        **record.model_dump(include={"id", "name", "description", "is_default", "is_active", *WEEKDAY_FIELDS}),
        normalized_weights=normalized,
    )


class ProfilesService:
    def __init__(self, repository: TargetsRepository) -> None:
        self.repository = repository

    def list_profiles(self, active_only: bool = False) -> List[WeightProfile]:
        return [to_profile_schema(record) for record in self.repository.list_profiles(active_only=active_only)]

    def create_profile(self, request: WeightProfileCreateRequest) -> WeightProfile:
        weights = [getattr(request, name) for name in WEEKDAY_FIELDS]
        normalize_weights(weights)
        created = self.repository.create_profile(request.model_dump())
        if created.is_default:
            self.repository.clear_default_profiles(keep_profile_id=created.id)
        logger.info("Created weight profile %s (%s)", created.id, created.name)
        return to_profile_schema(created)

    def update_profile(self, profile_id: int, request: WeightProfileUpdateRequest) -> WeightProfile:
        current = self.repository.get_profile(profile_id)
        if current is None:
            raise NotFoundError("Weight profile not found", details={"profileId": profile_id})
        changes = request.model_dump(exclude_unset=True)
        merged = current.model_copy(update=changes)
        normalize_weights(merged.weekday_weights(), profile_id=profile_id)
        if not changes:
            return to_profile_schema(current)
        updated = self.repository.update_profile(profile_id, changes)
        if updated is None:
            raise NotFoundError("Weight profile not found", details={"profileId": profile_id})
        if changes.get("is_default"):
            self.repository.clear_default_profiles(keep_profile_id=profile_id)
        return to_profile_schema(updated)
