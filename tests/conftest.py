"""
Pytest configuration and shared fixtures for the Syllabus Structure
Extraction Engine tests.

Provides temporary databases, a fake AI client and sample syllabus inputs
for unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Generator, List

import pytest


class FakeAIClient:
    """
    Stand-in for the AI service: returns a canned reply and records prompts.

    Optionally raises an exception instead, to simulate service failures.
    """

    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    @property
    def calls(self) -> int:
        return len(self.prompts)


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """
    Create a temporary database file path for testing.

    Yields:
        Path to temporary database file

    Cleanup:
        Automatically removes temp directory after test

    Example:
        >>> def test_something(temp_db):
        ...     create_schema(db_path=temp_db)
        ...     assert temp_db.exists()
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def temp_db_with_schema(temp_db: Path) -> Path:
    """Temporary database with the syllabus schema already created."""
    from src.database.schema import create_schema

    create_schema(db_path=temp_db, force_recreate=False)
    return temp_db


@pytest.fixture
def fake_ai_client():
    """Factory for FakeAIClient instances."""
    return FakeAIClient


@pytest.fixture
def obc_text() -> str:
    """Outcome-based syllabus text with boilerplate, a split number and bullets."""
    return "\n".join([
        "MINISTRY OF EDUCATION",
        "PHYSICS SYLLABUS GRADES 10 - 12",
        "TOPIC",
        "10.1",
        "General Physics",
        "10.1.1 Units",
        "10.1.1.1 Distinguish base and derived units",
        "• Knows the SI base units",
        "• Measuring length using a metre rule",
        "• Appreciate the use of SI units",
        "10.1.1.2 Convert between units",
        "a) prefixes",
        "b) standard form",
        "Page 3",
        "10.1.2 Measurement",
        "10.1.2.1 Measure length and time",
        "10.2 Mechanics",
        "10.2.1 Scalars and vectors",
    ])


@pytest.fixture
def cbc_table_html() -> str:
    """Competency-based table with merged Topic/Subtopic cells after row one."""
    return """
    <table>
      <tr><th>TOPIC</th><th>SUB-TOPIC</th><th>SPECIFIC COMPETENCES</th>
          <th>LEARNING ACTIVITIES</th><th>EXPECTED STANDARDS</th></tr>
      <tr>
        <td>10.1 General Physics</td>
        <td>10.1.1 Units</td>
        <td>10.1.1.1 Distinguish base and derived units</td>
        <td><ul><li>Listing base units</li><li>Deriving units of speed</li></ul></td>
        <td>Base and derived units distinguished</td>
      </tr>
      <tr>
        <td></td>
        <td></td>
        <td>10.1.1.2 Convert units</td>
        <td>Converting cm to m</td>
        <td>Units converted correctly</td>
      </tr>
      <tr>
        <td>10.1.1.3 Use prefixes</td>
        <td>Writing values with prefixes</td>
        <td>Prefixes used correctly</td>
      </tr>
    </table>
    """
