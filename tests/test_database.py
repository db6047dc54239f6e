#!/usr/bin/env python3
"""
Tests for the sqlite register entry store
"""
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import sqlite3
from datetime import date
import pytest
from fmcsa_register.core.exceptions import PersistenceFailure
from fmcsa_register.core.models import RegisterCategory, RegisterEntry
from fmcsa_register.storage.database import RegisterDB


def make_entry(number, title, category=RegisterCategory.MISCELLANEOUS, decided="01/15/2024"):
    return RegisterEntry(number=number, title=title, decided=decided, category=category)


class TestRegisterDB:
    """Test suite for RegisterDB"""

    @pytest.fixture
    def db(self, tmp_path):
        """Fresh database in a temporary directory"""
        return RegisterDB(str(tmp_path / "data" / "register.db"))

    @pytest.fixture
    def populated_db(self, db):
        """Database with entries on three fetch dates"""
        db.upsert_entries([
            make_entry("MC-100", "ACME TRUCKING CO", RegisterCategory.REVOCATION),
            make_entry("MC-200", "BETA FREIGHT LLC", RegisterCategory.NAME_CHANGE),
        ], date(2024, 1, 15))
        db.upsert_entries([
            make_entry("FF-300", "OCEAN FORWARDING", RegisterCategory.REVOCATION),
        ], date(2024, 1, 16))
        db.upsert_entries([
            make_entry("MX-400", "FRONTERA CARGO", RegisterCategory.DISMISSAL),
        ], date(2024, 1, 17))
        return db

    def test_creates_database_file(self, tmp_path, db):
        assert (tmp_path / "data" / "register.db").exists()

    def test_upsert_returns_count(self, db):
        count = db.upsert_entries([make_entry("MC-1", "A"), make_entry("MC-2", "B")], "2024-01-15")

        assert count == 2
        assert db.get_stats()["total_entries"] == 2

    def test_upsert_empty_list(self, db):
        assert db.upsert_entries([], date(2024, 1, 15)) == 0
        assert db.get_stats()["total_entries"] == 0

    def test_upsert_replaces_same_number_and_date(self, db):
        """A re-scrape of the same date overwrites the stored row"""
        db.upsert_entries([make_entry("MC-1", "OLD NAME")], date(2024, 1, 15))
        db.upsert_entries([make_entry("MC-1", "NEW NAME", RegisterCategory.TRANSFERS)], date(2024, 1, 15))

        entries = db.get_entries_by_date(date(2024, 1, 15))
        assert len(entries) == 1
        assert entries[0].title == "NEW NAME"
        assert entries[0].category == RegisterCategory.TRANSFERS

    def test_same_number_on_different_dates(self, db):
        db.upsert_entries([make_entry("MC-1", "ACME")], date(2024, 1, 15))
        db.upsert_entries([make_entry("MC-1", "ACME")], date(2024, 1, 16))

        assert db.get_stats()["total_entries"] == 2
        assert db.get_stats()["fetch_dates"] == 2

    def test_entries_carry_fetch_date(self, populated_db):
        entries = populated_db.get_entries_by_date("2024-01-15")

        assert [e.number for e in entries] == ["MC-100", "MC-200"]
        assert all(e.fetch_date == date(2024, 1, 15) for e in entries)

    def test_query_ordering(self, populated_db):
        """Newest fetch date first, then docket number"""
        entries = populated_db.query_entries()

        assert [e.number for e in entries] == ["MX-400", "FF-300", "MC-100", "MC-200"]

    def test_query_by_category(self, populated_db):
        entries = populated_db.query_entries(category="REVOCATION")

        assert {e.number for e in entries} == {"MC-100", "FF-300"}

    def test_query_category_all(self, populated_db):
        assert len(populated_db.query_entries(category="all")) == 4

    def test_query_date_range(self, populated_db):
        entries = populated_db.query_entries(date_from=date(2024, 1, 16), date_to="2024-01-16")

        assert [e.number for e in entries] == ["FF-300"]

    def test_query_search_title_case_insensitive(self, populated_db):
        entries = populated_db.query_entries(search_term="acme")

        assert [e.number for e in entries] == ["MC-100"]

    def test_query_search_number(self, populated_db):
        entries = populated_db.query_entries(search_term="FF-3")

        assert [e.number for e in entries] == ["FF-300"]

    def test_query_limit(self, populated_db):
        assert len(populated_db.query_entries(limit=2)) == 2

    def test_query_combined_filters(self, populated_db):
        entries = populated_db.query_entries(
            category="REVOCATION", date_from="2024-01-15", date_to="2024-01-15", search_term="trucking"
        )

        assert [e.number for e in entries] == ["MC-100"]

    def test_get_categories(self, populated_db):
        assert populated_db.get_categories() == ["DISMISSAL", "NAME CHANGE", "REVOCATION"]

    def test_get_statistics(self, populated_db):
        stats = populated_db.get_statistics()

        assert stats.total_entries == 4
        assert stats.by_category == {"REVOCATION": 2, "NAME CHANGE": 1, "DISMISSAL": 1}

    def test_get_statistics_range(self, populated_db):
        stats = populated_db.get_statistics(date_from="2024-01-16", date_to="2024-01-17")

        assert stats.total_entries == 2
        assert stats.date_from == date(2024, 1, 16)
        assert stats.date_to == date(2024, 1, 17)

    def test_delete_entries_before(self, populated_db):
        deleted = populated_db.delete_entries_before(date(2024, 1, 17))

        assert deleted == 3
        assert [e.number for e in populated_db.query_entries()] == ["MX-400"]

    def test_health_check(self, db):
        assert db.health_check() is True

    def test_sqlite_error_becomes_persistence_failure(self, db):
        with sqlite3.connect(db.db_path) as conn:
            conn.execute("DROP TABLE fmcsa_register")

        with pytest.raises(PersistenceFailure):
            db.upsert_entries([make_entry("MC-1", "A")], date(2024, 1, 15))

        with pytest.raises(PersistenceFailure):
            db.query_entries()
