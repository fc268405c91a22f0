from __future__ import annotations

import logging
from datetime import timezone

from apscheduler.schedulers.background import BackgroundScheduler

from .auth.identity import IdentityStore
from .settings import AppSettings
from .storage.cache import GeocodeCache

LOGGER = logging.getLogger(__name__)

GEOCODE_PRUNE_JOB_ID = "geocode_cache_prune_job"
TOKEN_PRUNE_JOB_ID = "token_prune_job"


def run_geocode_cache_prune_job(cache: GeocodeCache) -> None:
    removed = cache.prune_expired_entries()
    LOGGER.info("Geocode cache prune removed %s entries, %s remain", removed, len(cache))


def run_token_prune_job(identity: IdentityStore) -> None:
    removed = identity.prune_expired_tokens()
    LOGGER.info("Token prune removed %s expired tokens", removed)


def build_scheduler(
    settings: AppSettings,
    cache: GeocodeCache,
    identity: IdentityStore,
) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=timezone.utc)
    scheduler.add_job(
        run_geocode_cache_prune_job,
        "interval",
        kwargs={"cache": cache},
        minutes=settings.yaml.geocode_cache.prune_interval_minutes,
        id=GEOCODE_PRUNE_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    scheduler.add_job(
        run_token_prune_job,
        "interval",
        kwargs={"identity": identity},
        minutes=settings.yaml.auth.prune_interval_minutes,
        id=TOKEN_PRUNE_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=120,
    )
    return scheduler
