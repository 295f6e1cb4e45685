"""
Cleanup module for removing obsolete fleet units.

A unit is obsolete when its name (the hex hash of its contents) no longer
matches the unit hash of any job. Fleet never removes such units itself,
so they accumulate in etcd as jobs are replaced.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .inventory import load_job_objects, load_unit_names, unit_key
from .logger import get_logger
from .schema import JobDescriptor
from .store import EtcdClient, StoreDeleteError

logger = get_logger()


@dataclass
class CleanupResult:
    """Tallies of one cleanup pass."""

    dry_run: bool
    jobs: int
    obsolete: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    already_gone: List[str] = field(default_factory=list)

    @property
    def obsolete_count(self) -> int:
        return len(self.obsolete)

    @property
    def removed_count(self) -> int:
        return len(self.removed)


def valid_hashes(jobs: Iterable[JobDescriptor]) -> Dict[str, JobDescriptor]:
    """Map the hex unit hash of every job to that job (last one wins)."""
    valid: Dict[str, JobDescriptor] = {}
    for job in jobs:
        valid[job.hash] = job
    return valid


def find_obsolete_units(unit_names: Iterable[str], valid: Dict[str, JobDescriptor]) -> List[str]:
    """Return the unit names, in inventory order, that no job refers to."""
    return [name for name in unit_names if name not in valid]


def reconcile(
    client: EtcdClient,
    unit_names: List[str],
    jobs: List[JobDescriptor],
    dry_run: bool = False,
) -> CleanupResult:
    """
    Remove (or, in dry-run mode, only list) units no job refers to.

    Args:
        client: Store client used for deletes
        unit_names: Names of all stored units
        jobs: All stored job objects
        dry_run: If True, nothing is deleted

    Returns:
        CleanupResult with the job count and the obsolete/removed units

    Raises:
        StoreDeleteError: On the first failed delete; remaining units are left alone
    """
    valid = valid_hashes(jobs)
    result = CleanupResult(dry_run=dry_run, jobs=len(jobs))

    for unit in find_obsolete_units(unit_names, valid):
        key = unit_key(unit)
        result.obsolete.append(unit)

        if dry_run:
            logger.info(f"Obsolete unit at {key}")
            logger.record_obsolete()
            continue

        logger.info(f"Removing obsolete unit at {key}")
        try:
            deleted = client.delete(key)
        except StoreDeleteError as e:
            logger.record_error("StoreDeleteError")
            logger.error(f"Failed to remove obsolete unit at {key}", error=e.reason)
            raise

        if deleted:
            result.removed.append(unit)
        else:
            # Removed by someone else since we listed it
            logger.warning(f"Obsolete unit at {key} was already removed")
            result.already_gone.append(unit)
        logger.record_obsolete(removed=deleted)

    return result


def cleanup_obsolete_units(client: EtcdClient, dry_run: bool = False) -> CleanupResult:
    """
    Run a single cleanup pass against the store.

    Raises:
        StoreReadError: If either inventory cannot be listed
        ParseError: If a job object cannot be decoded
        StoreDeleteError: If a delete fails
    """
    unit_names = load_unit_names(client)
    jobs = load_job_objects(client)
    logger.record_inventory(units=len(unit_names), jobs=len(jobs))
    logger.debug(
        "Loaded inventories",
        units=len(unit_names),
        jobs=len(jobs),
        dry_run=dry_run,
    )
    return reconcile(client, unit_names, jobs, dry_run=dry_run)
