"""
Tests for inventory.py - loading units and jobs from the store.
"""

import json

import pytest

from fleetcleanup.inventory import JOB_PREFIX, UNIT_PREFIX, load_job_objects, load_unit_names, unit_key
from fleetcleanup.schema import ParseError
from fleetcleanup.store import StoreReadError

from conftest import FakeStore, job_entries, unit_entries


class TestLoadUnitNames:
    """Test listing of unit names."""

    def test_lists_last_key_segment(self):
        """Unit names are the last segment of each unit key."""
        store = FakeStore(unit_entries("ab12", "cd34", "ef56"))
        assert sorted(load_unit_names(store)) == ["ab12", "cd34", "ef56"]

    def test_missing_directory_is_empty(self):
        """A store without a unit directory has no units."""
        store = FakeStore(job_entries(a=b"\x01"))
        assert load_unit_names(store) == []

    def test_read_error_propagates(self):
        """Listing failures are raised as StoreReadError."""
        store = FakeStore(unit_entries("ab12"), fail_read_on=[UNIT_PREFIX])
        with pytest.raises(StoreReadError) as exc_info:
            load_unit_names(store)
        assert exc_info.value.key == UNIT_PREFIX

    def test_unit_key(self):
        assert unit_key("cd34") == "/_coreos.com/fleet/unit/cd34"


class TestLoadJobObjects:
    """Test loading of job objects."""

    def test_loads_all_jobs(self):
        """Every job with an object entry is returned."""
        store = FakeStore(job_entries(**{"a.service": b"\xab\x12", "b.service": b"\xcd\x34"}))

        jobs = load_job_objects(store)

        assert sorted(j.name for j in jobs) == ["a.service", "b.service"]
        assert sorted(j.hash for j in jobs) == ["ab12", "cd34"]

    def test_loads_array_encoded_hash(self):
        """Job objects with the hash written as a byte array are loaded."""
        store = FakeStore({
            "/_coreos.com/fleet/job/a.service/object": json.dumps({"Name": "a.service", "UnitHash": [171, 18]}),
        })

        jobs = load_job_objects(store)

        assert [(j.name, j.hash) for j in jobs] == [("a.service", "ab12")]

    def test_skips_jobs_without_object(self):
        """Jobs lacking an object entry are silently ignored."""
        entries = job_entries(**{"a.service": b"\xab\x12"})
        entries["/_coreos.com/fleet/job/b.service/target-state"] = "inactive"
        store = FakeStore(entries)

        jobs = load_job_objects(store)

        assert [j.name for j in jobs] == ["a.service"]

    def test_missing_directory_is_empty(self):
        """A store without a job directory has no jobs."""
        store = FakeStore(unit_entries("ab12"))
        assert load_job_objects(store) == []

    def test_parse_error_aborts_load(self):
        """A single malformed object fails the whole load."""
        entries = job_entries(**{"a.service": b"\xab\x12"})
        entries["/_coreos.com/fleet/job/b.service/object"] = "garbage"
        store = FakeStore(entries)

        with pytest.raises(ParseError) as exc_info:
            load_job_objects(store)

        assert exc_info.value.raw == "garbage"
        assert exc_info.value.key == "/_coreos.com/fleet/job/b.service/object"

    def test_read_error_propagates(self):
        """Listing failures are raised as StoreReadError."""
        store = FakeStore(job_entries(a=b"\x01"), fail_read_on=[JOB_PREFIX])
        with pytest.raises(StoreReadError):
            load_job_objects(store)
