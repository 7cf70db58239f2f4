"""Service wiring for the HTTP layer."""

from __future__ import annotations

import functools
import logging

from ..data.institutions_repository import InMemoryInstitutionLookup, SupabaseInstitutionLookup
from ..data.instructors_repository import InMemoryInstructorLookup, SupabaseInstructorLookup
from ..data.policy_repository import SupabasePolicyStore
from ..data.schedule_repository import UnassignedScheduleLookup
from ..db.supabase import get_supabase_client
from ..persistence.filesystem import FileStorage
from ..persistence.travel_records import InMemoryTravelRecordStore, SupabaseTravelRecordStore, TravelRecordStore
from ..services.travel.policy import InMemoryPolicyStore
from ..services.travel.queries import TravelQueryService
from ..services.travel.recalculator import DailyTravelRecalculator
from ..services.travel.snapshot import KakaoMapSnapshotGenerator


@functools.lru_cache(maxsize=1)
def get_record_store() -> TravelRecordStore:
    client = get_supabase_client()
    if client is None:
        logging.warning("Supabase not configured - daily travel records are kept in memory only")
        return InMemoryTravelRecordStore()
    return SupabaseTravelRecordStore(client)


@functools.lru_cache(maxsize=1)
def get_snapshot_generator() -> KakaoMapSnapshotGenerator:
    return KakaoMapSnapshotGenerator(storage=FileStorage())


@functools.lru_cache(maxsize=1)
def get_recalculator() -> DailyTravelRecalculator:
    client = get_supabase_client()
    if client is None:
        return DailyTravelRecalculator(
            instructors=InMemoryInstructorLookup(),
            schedules=UnassignedScheduleLookup(),
            institutions=InMemoryInstitutionLookup(),
            policies=InMemoryPolicyStore(),
            records=get_record_store(),
            snapshots=get_snapshot_generator(),
        )
    return DailyTravelRecalculator(
        instructors=SupabaseInstructorLookup(client),
        schedules=UnassignedScheduleLookup(),
        institutions=SupabaseInstitutionLookup(client),
        policies=SupabasePolicyStore(client),
        records=get_record_store(),
        snapshots=get_snapshot_generator(),
    )


@functools.lru_cache(maxsize=1)
def get_query_service() -> TravelQueryService:
    client = get_supabase_client()
    instructors = SupabaseInstructorLookup(client) if client is not None else None
    return TravelQueryService(get_record_store(), instructors)
