"""
Integration Tests for src.database

Tests schema creation, the syllabus store operations and the SQL CHECK
constraints against real SQLite databases.
Uses temporary databases to avoid affecting production data.
"""

import sqlite3
import time

import pytest

from src.database import (
    DatabaseConnectionError,
    DatabaseError,
    create_schema,
    create_syllabus,
    delete_syllabus,
    get_connection,
    get_syllabus,
    get_table_stats,
    list_syllabi,
    validate_schema,
    verify_connection,
)
from src.models import (
    METHOD_LINE,
    SpecificCompetence,
    SpecificOutcome,
    Subtopic,
    SyllabusDocument,
    Topic,
)


pytestmark = pytest.mark.integration


def make_document(subject="Physics", curriculum_type="obc", topics=None):
    if topics is None:
        subtopic = Subtopic(
            name="10.1.1 Units",
            number="10.1.1",
            specific_outcomes=[
                SpecificOutcome(text="10.1.1.1 Define units", number="10.1.1.1", sub_content=["prefixes"]),
                SpecificOutcome(text="10.1.1.2 Convert units", number="10.1.1.2"),
            ],
            knowledge=["SI units"],
            skills=["Measuring length"],
            values=["Appreciate accuracy"],
        )
        topics = [Topic(name="10.1 General Physics", number="10.1", subtopics=[subtopic])]
    return SyllabusDocument(
        subject=subject,
        curriculum_type=curriculum_type,
        topics=topics,
        category="secondary",
        grade_range="Grades 10-12",
        extraction_method=METHOD_LINE,
    )


class TestSchemaCreation:
    """Tests for create_schema() and validate_schema()"""

    def test_creates_database_file(self, temp_db):
        """Database file is created at specified path"""
        assert not temp_db.exists()

        create_schema(db_path=temp_db)

        assert temp_db.exists()
        assert validate_schema(db_path=temp_db)

    def test_idempotent(self, temp_db):
        """Creating the schema twice is harmless"""
        create_schema(db_path=temp_db)
        create_schema(db_path=temp_db)
        assert validate_schema(db_path=temp_db)

    def test_force_recreate_drops_rows(self, temp_db_with_schema):
        """force_recreate empties the store"""
        create_syllabus(make_document(), db_path=temp_db_with_schema)

        create_schema(db_path=temp_db_with_schema, force_recreate=True)

        assert get_table_stats(db_path=temp_db_with_schema) == {"syllabi": 0}

    def test_validate_missing_file(self, temp_db):
        """A missing database file is not a valid schema"""
        assert not validate_schema(db_path=temp_db)


class TestCheckConstraints:
    """Tests for the SQL enumeration constraints"""

    def _insert(self, db_path, curriculum_type="obc", category=None, subject="Physics"):
        with get_connection(db_path) as conn:
            conn.execute(
                "INSERT INTO syllabi (id, subject, curriculum_type, category, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, datetime('now'), datetime('now'))",
                (str(time.time_ns()), subject, curriculum_type, category),
            )

    def test_valid_row(self, temp_db_with_schema):
        """Valid enumerations are accepted"""
        self._insert(temp_db_with_schema, "cbc", "primary")
        assert get_table_stats(db_path=temp_db_with_schema) == {"syllabi": 1}

    def test_invalid_curriculum_type(self, temp_db_with_schema):
        """Unknown curriculum kinds violate the CHECK constraint"""
        with pytest.raises(DatabaseConnectionError):
            self._insert(temp_db_with_schema, curriculum_type="xyz")

    def test_invalid_category(self, temp_db_with_schema):
        """Unknown categories violate the CHECK constraint"""
        with pytest.raises(DatabaseConnectionError):
            self._insert(temp_db_with_schema, category="tertiary")

    def test_blank_subject(self, temp_db_with_schema):
        """Blank subjects violate the CHECK constraint"""
        with pytest.raises(DatabaseConnectionError):
            self._insert(temp_db_with_schema, subject="   ")

    def test_failed_insert_rolled_back(self, temp_db_with_schema):
        """A failed insert leaves no row behind"""
        with pytest.raises(DatabaseConnectionError):
            self._insert(temp_db_with_schema, curriculum_type="xyz")
        assert get_table_stats(db_path=temp_db_with_schema) == {"syllabi": 0}


class TestCreateSyllabus:
    """Tests for create_syllabus()"""

    def test_assigns_identity(self, temp_db):
        """Stored documents get an id and timestamps"""
        stored = create_syllabus(make_document(), db_path=temp_db)

        assert stored.id
        assert stored.created_at is not None
        assert stored.updated_at == stored.created_at

    def test_creates_schema_on_demand(self, temp_db):
        """The first store call creates the schema"""
        create_syllabus(make_document(), db_path=temp_db)
        assert validate_schema(db_path=temp_db)

    def test_unique_ids(self, temp_db):
        """Each stored document gets its own id"""
        first = create_syllabus(make_document(), db_path=temp_db)
        second = create_syllabus(make_document(), db_path=temp_db)
        assert first.id != second.id

    def test_refuses_empty_tree(self, temp_db):
        """A document with no topics is never stored"""
        with pytest.raises(DatabaseError):
            create_syllabus(make_document(topics=[]), db_path=temp_db)

    def test_denormalized_counts(self, temp_db):
        """Node counts are stored with the record"""
        create_syllabus(make_document(), db_path=temp_db)

        with get_connection(temp_db) as conn:
            row = conn.execute("SELECT topic_count, subtopic_count, outcome_count FROM syllabi").fetchone()

        assert tuple(row) == (1, 1, 2)


class TestGetSyllabus:
    """Tests for get_syllabus()"""

    def test_round_trip(self, temp_db):
        """A stored tree is read back unchanged"""
        document = make_document()
        stored = create_syllabus(document, db_path=temp_db)

        loaded = get_syllabus(stored.id, db_path=temp_db)

        assert loaded.to_dict() == stored.to_dict()
        assert loaded.topics[0].subtopics[0].specific_outcomes[0].sub_content == ["prefixes"]
        assert loaded.extraction_method == METHOD_LINE

    def test_competency_round_trip(self, temp_db):
        """Competences keep their parallel activity and standard lists"""
        competence = SpecificCompetence(
            description="10.1.1.1 Define units",
            number="10.1.1.1",
            learning_activities=["Listing units", "Deriving units"],
            expected_standards=["Units defined"],
        )
        topics = [Topic(name="10.1 Physics", number="10.1", subtopics=[
            Subtopic(name="10.1.1 Units", number="10.1.1", specific_competences=[competence]),
        ])]
        stored = create_syllabus(make_document(curriculum_type="cbc", topics=topics), db_path=temp_db)

        loaded = get_syllabus(stored.id, db_path=temp_db)
        loaded_competence = loaded.topics[0].subtopics[0].specific_competences[0]

        assert loaded.curriculum_type == "cbc"
        assert loaded_competence.learning_activities == ["Listing units", "Deriving units"]
        assert loaded_competence.expected_standards == ["Units defined"]

    def test_missing(self, temp_db):
        """Unknown ids return None"""
        assert get_syllabus("does-not-exist", db_path=temp_db) is None


class TestListSyllabi:
    """Tests for list_syllabi()"""

    def test_summary_projection(self, temp_db):
        """Summaries carry counts but no topic trees"""
        stored = create_syllabus(make_document(), db_path=temp_db)

        summaries = list_syllabi(db_path=temp_db)

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary["id"] == stored.id
        assert summary["curriculumType"] == "obc"
        assert summary["gradeRange"] == "Grades 10-12"
        assert summary["topicCount"] == 1
        assert summary["outcomeCount"] == 2
        assert "topics" not in summary

    def test_filters(self, temp_db):
        """Subject and curriculum filters narrow the listing"""
        create_syllabus(make_document(subject="Physics"), db_path=temp_db)
        create_syllabus(make_document(subject="Biology"), db_path=temp_db)
        create_syllabus(make_document(subject="Physics", curriculum_type="cbc"), db_path=temp_db)

        assert len(list_syllabi(db_path=temp_db)) == 3
        assert len(list_syllabi(subject="Physics", db_path=temp_db)) == 2
        assert len(list_syllabi(subject="Physics", curriculum_type="cbc", db_path=temp_db)) == 1

    def test_newest_first(self, temp_db):
        """Listings are ordered newest first"""
        first = create_syllabus(make_document(subject="Physics"), db_path=temp_db)
        time.sleep(0.01)
        second = create_syllabus(make_document(subject="Biology"), db_path=temp_db)

        assert [s["id"] for s in list_syllabi(db_path=temp_db)] == [second.id, first.id]

    def test_empty_store(self, temp_db):
        """An empty store lists nothing"""
        assert list_syllabi(db_path=temp_db) == []


class TestDeleteSyllabus:
    """Tests for delete_syllabus()"""

    def test_delete(self, temp_db):
        """Deleted documents are gone"""
        stored = create_syllabus(make_document(), db_path=temp_db)

        assert delete_syllabus(stored.id, db_path=temp_db) is True
        assert get_syllabus(stored.id, db_path=temp_db) is None

    def test_delete_missing(self, temp_db):
        """Deleting an unknown id reports False"""
        assert delete_syllabus("does-not-exist", db_path=temp_db) is False


class TestConnections:
    """Tests for get_connection() and verify_connection()"""

    def test_verify_existing(self, temp_db_with_schema):
        """An existing database verifies"""
        assert verify_connection(db_path=temp_db_with_schema)

    def test_verify_missing(self, temp_db):
        """A missing database does not verify"""
        assert not verify_connection(db_path=temp_db)

    def test_read_only_missing(self, temp_db):
        """Read-only connections require an existing file"""
        with pytest.raises(DatabaseConnectionError):
            with get_connection(temp_db, read_only=True):
                pass

    def test_rows_by_name(self, temp_db_with_schema):
        """Rows support access by column name"""
        with get_connection(temp_db_with_schema) as conn:
            row = conn.execute("SELECT 1 AS one").fetchone()

        assert isinstance(row, sqlite3.Row)
        assert row["one"] == 1
