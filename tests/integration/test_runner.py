"""
Integration Tests for src.pipeline.runner

Runs whole documents through validation, conversion, structure extraction,
AI fallback and storage. The AI collaborator is always a fake client; no
external service is contacted.
"""

import json

import pytest

from src.database import get_syllabus, list_syllabi
from src.models import METHOD_AI_FALLBACK, METHOD_LINE, METHOD_TABLE
from src.parsers import BaseConverter, ConversionError
from src.pipeline.runner import (
    FAILURE_CONVERSION,
    FAILURE_FALLBACK_RESPONSE,
    FAILURE_FALLBACK_UNAVAILABLE,
    FAILURE_FALLBACK_UNPARSEABLE,
    FAILURE_INVALID_INPUT,
    FAILURE_NO_TOPICS,
    FAILURE_STORAGE,
    extract_syllabus,
    ingest_syllabus,
)
from src.utils.llm_helpers import FallbackCoordinator, FallbackResponseError, FallbackUnavailableError


pytestmark = pytest.mark.integration

UNSTRUCTURED = (
    b"Physics is the study of matter and energy.\n"
    b"Learners should understand measurement and motion."
)

AI_REPLY = json.dumps({
    "topics": [
        {
            "name": "10.1 General Physics",
            "subtopics": [
                {"name": "10.1.1 Units", "specificOutcomes": ["10.1.1.1 Define units"], "knowledge": ["SI units"]}
            ],
        }
    ]
})


class FailingConverter(BaseConverter):
    supported_formats = ("txt",)

    def convert(self, data, file_format):
        raise ConversionError("corrupt file")


def run_obc(data, client=None, **kwargs):
    coordinator = FallbackCoordinator(client) if client is not None else None
    return extract_syllabus(
        data, kwargs.pop("file_format", "txt"), "Physics", kwargs.pop("curriculum_type", "obc"),
        grade_range=kwargs.pop("grade_range", "Grades 10-12"),
        coordinator=coordinator,
        **kwargs,
    )


class TestLinePath:
    """Tests for plain text documents"""

    def test_structured_text(self, obc_text):
        """Numbered text is parsed locally without the AI service"""
        result = run_obc(obc_text.encode("utf-8"))

        assert result.success
        assert result.method == METHOD_LINE
        assert result.document.extraction_method == METHOD_LINE
        assert result.document.counts() == {"topics": 2, "subtopics": 3, "outcomes": 3}
        assert not result.stored

    def test_ai_not_called_when_structure_found(self, obc_text, fake_ai_client):
        """The fallback is never invoked when local parsing succeeds"""
        client = fake_ai_client(reply=AI_REPLY)
        run_obc(obc_text.encode("utf-8"), client=client)
        assert client.calls == 0

    def test_form_descriptor(self):
        """A legacy form descriptor sets the valid top levels"""
        result = extract_syllabus(
            b"1.1 Cells\n1.1.1 Cell structure\n1.1.1.1 Draw a cell",
            "txt", "Biology", "obc", form="Form 1",
        )

        assert result.success
        assert result.document.form == "Form 1"
        assert result.document.topics[0].name == "1.1 Cells"

    def test_category_range(self):
        """Without a grade range the category range applies"""
        result = extract_syllabus(
            b"5.1 Fractions\n5.1.1 Adding fractions",
            "txt", "Mathematics", "obc", category="primary",
        )

        assert result.success
        assert result.document.category == "primary"
        assert result.document.topics[0].subtopics[0].name == "5.1.1 Adding fractions"

    def test_independent_invocations(self, obc_text):
        """Repeated runs on the same input produce identical trees"""
        first = run_obc(obc_text.encode("utf-8"))
        second = run_obc(obc_text.encode("utf-8"))

        assert first.document.to_dict() == second.document.to_dict()


class TestTablePath:
    """Tests for tagged-table documents"""

    def test_table_document(self, cbc_table_html):
        """HTML tables go through the table extractor"""
        result = run_obc(cbc_table_html.encode("utf-8"), file_format="html", curriculum_type="cbc")

        assert result.success
        assert result.method == METHOD_TABLE
        competences = result.document.topics[0].subtopics[0].specific_competences
        assert len(competences) == 3

    def test_html_without_tables(self):
        """HTML without tables goes through the line path"""
        html = b"<p>10.1 General Physics</p><p>10.1.1 Units</p><ul><li>Knows units</li></ul>"
        result = run_obc(html, file_format="html")

        assert result.success
        assert result.method == METHOD_LINE
        assert result.document.topics[0].subtopics[0].knowledge == ["Knows units"]

    def test_tables_without_structure_retry_line_path(self):
        """Tables with no numbering fall back to the flattened text"""
        html = (
            b"<table><tr><td>Author</td><td>CDC</td></tr></table>"
            b"<p>10.1 General Physics</p><p>10.1.1 Units</p>"
        )
        result = run_obc(html, file_format="html")

        assert result.success
        assert result.method == METHOD_LINE
        assert result.document.topics[0].name == "10.1 General Physics"


class TestFallback:
    """Tests for the AI fallback path"""

    def test_fallback_used_when_no_structure(self, fake_ai_client):
        """Unstructured text is sent to the AI service exactly once"""
        client = fake_ai_client(reply=AI_REPLY)
        result = run_obc(UNSTRUCTURED, client=client)

        assert result.success
        assert result.method == METHOD_AI_FALLBACK
        assert result.document.extraction_method == METHOD_AI_FALLBACK
        assert result.document.topics[0].subtopics[0].knowledge == ["SI units"]
        assert client.calls == 1
        assert "Physics is the study of matter" in client.prompts[0]

    def test_unparseable_reply(self, fake_ai_client):
        """A reply with no JSON fails without retrying"""
        client = fake_ai_client(reply="Sorry, I cannot help with that document.")
        result = run_obc(UNSTRUCTURED, client=client)

        assert not result.success
        assert result.failure_reason == FAILURE_FALLBACK_UNPARSEABLE
        assert result.document is None
        assert client.calls == 1

    def test_service_unavailable(self, fake_ai_client):
        """An unreachable service is reported as unavailable"""
        client = fake_ai_client(error=FallbackUnavailableError("connection refused"))
        result = run_obc(UNSTRUCTURED, client=client)

        assert result.failure_reason == FAILURE_FALLBACK_UNAVAILABLE
        assert client.calls == 1

    def test_service_error_response(self, fake_ai_client):
        """A non-success response is reported as a response error"""
        client = fake_ai_client(error=FallbackResponseError("status 529"))
        result = run_obc(UNSTRUCTURED, client=client)

        assert result.failure_reason == FAILURE_FALLBACK_RESPONSE

    def test_fallback_disabled(self, fake_ai_client):
        """With the fallback disabled an empty tree is a failure"""
        client = fake_ai_client(reply=AI_REPLY)
        result = run_obc(UNSTRUCTURED, client=client, use_fallback=False)

        assert result.failure_reason == FAILURE_NO_TOPICS
        assert client.calls == 0


class TestInputValidation:
    """Tests for input-contract violations"""

    @pytest.mark.parametrize("data,file_format,subject,curriculum_type,category", [
        (b"", "txt", "Physics", "obc", None),
        (None, "txt", "Physics", "obc", None),
        (b"10.1 Physics", "txt", "", "obc", None),
        (b"10.1 Physics", "txt", "Physics", None, None),
        (b"10.1 Physics", "txt", "Physics", "abc", None),
        (b"10.1 Physics", "xls", "Physics", "obc", None),
        (b"10.1 Physics", "txt", "Physics", "obc", "tertiary"),
    ])
    def test_rejected_before_parsing(self, data, file_format, subject, curriculum_type, category):
        """Contract violations fail with invalid_input"""
        result = extract_syllabus(data, file_format, subject, curriculum_type, category=category)

        assert not result.success
        assert result.failure_reason == FAILURE_INVALID_INPUT
        assert result.error

    def test_curriculum_type_normalized(self):
        """Curriculum kinds are accepted case-insensitively"""
        result = extract_syllabus(b"10.1 Physics\n10.1.1 Units", "TXT", "Physics", "OBC",
                                  grade_range="Grades 10-12")

        assert result.success
        assert result.document.curriculum_type == "obc"

    def test_conversion_failure(self):
        """Converter errors fail with conversion_failed"""
        result = extract_syllabus(b"10.1 Physics", "txt", "Physics", "obc", converter=FailingConverter())
        assert result.failure_reason == FAILURE_CONVERSION


class TestIngest:
    """Tests for ingest_syllabus()"""

    def test_success_stored(self, obc_text, temp_db):
        """Successful extractions are stored with identity fields"""
        result = ingest_syllabus(
            obc_text.encode("utf-8"), "txt", "Physics", "obc",
            grade_range="Grades 10-12", category="secondary", db_path=temp_db,
        )

        assert result.success
        assert result.stored
        loaded = get_syllabus(result.document.id, db_path=temp_db)
        assert loaded.to_dict() == result.document.to_dict()

    def test_failure_not_stored(self, temp_db, fake_ai_client):
        """Failed extractions leave the store untouched"""
        coordinator = FallbackCoordinator(fake_ai_client(reply="not json"))
        result = ingest_syllabus(
            UNSTRUCTURED, "txt", "Physics", "obc",
            coordinator=coordinator, db_path=temp_db,
        )

        assert result.failure_reason == FAILURE_FALLBACK_UNPARSEABLE
        assert not result.stored
        assert list_syllabi(db_path=temp_db) == []

    def test_storage_failure(self, obc_text, tmp_path):
        """Store errors are reported as storage_failed"""
        result = ingest_syllabus(
            obc_text.encode("utf-8"), "txt", "Physics", "obc",
            grade_range="Grades 10-12", db_path=tmp_path,
        )

        assert not result.success
        assert result.failure_reason == FAILURE_STORAGE
