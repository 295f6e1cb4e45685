"""
Loaders for the unit and job records fleet keeps in etcd.

Layout:
    /_coreos.com/fleet/unit/<hash>            one entry per unit
    /_coreos.com/fleet/job/<name>/object      JSON job object per job
"""

from typing import List

from .logger import get_logger
from .schema import JobDescriptor, ParseError, parse_job_object
from .store import EtcdClient

logger = get_logger()

FLEET_PREFIX = "/_coreos.com/fleet"
UNIT_PREFIX = f"{FLEET_PREFIX}/unit"
JOB_PREFIX = f"{FLEET_PREFIX}/job"
JOB_OBJECT_KEY = "object"


def unit_key(unit_name: str) -> str:
    return f"{UNIT_PREFIX}/{unit_name}"


def load_unit_names(client: EtcdClient) -> List[str]:
    """
    List the names (hex hashes) of all units stored by fleet.

    Returns an empty list when the unit directory does not exist.

    Raises:
        StoreReadError: If the listing fails
    """
    node = client.get(UNIT_PREFIX)
    if node is None:
        logger.debug("No unit directory", key=UNIT_PREFIX)
        return []
    return [child.name for child in node.nodes]


def load_job_objects(client: EtcdClient) -> List[JobDescriptor]:
    """
    Load the job object of every job stored by fleet.

    Jobs without an `object` entry are skipped.

    Raises:
        StoreReadError: If the listing fails
        ParseError: If any job object cannot be decoded
    """
    node = client.get(JOB_PREFIX, recursive=True)
    if node is None:
        logger.debug("No job directory", key=JOB_PREFIX)
        return []

    jobs: List[JobDescriptor] = []
    for job_node in node.nodes:
        obj = job_node.children().get(JOB_OBJECT_KEY)
        if obj is None:
            logger.debug("Job has no object", key=job_node.key)
            continue
        raw = obj.value or ""
        try:
            jobs.append(parse_job_object(raw, key=obj.key))
        except ParseError as e:
            logger.record_error("ParseError")
            logger.error("Failed to parse job object", key=obj.key, raw=raw, error=e.reason)
            raise
    return jobs
