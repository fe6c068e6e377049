"""
Syllabus Data Model

Dataclasses for the four-level syllabus hierarchy produced by the extraction
engine and consumed by the store:

    SyllabusDocument -> Topic -> Subtopic -> SpecificOutcome | SpecificCompetence

Outcome-based (OBC) subtopics carry specific outcomes plus the knowledge,
skills and values buckets. Competency-based (CBC) subtopics carry specific
competences, each with parallel learning-activity and expected-standard lists.

Serialization uses the camelCase field names of the stored record
(``curriculumType``, ``specificCompetences``, ``learningActivities``, ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from src.config import CURRICULUM_TYPES, EDUCATION_CATEGORIES


# Curriculum kinds
CBC = "cbc"
OBC = "obc"

# Leaf buckets
KNOWLEDGE = "knowledge"
SKILLS = "skills"
VALUES = "values"
COMPETENCE_STATEMENT = "competence-statement"
LEARNING_ACTIVITY = "learning-activity"
EXPECTED_STANDARD = "expected-standard"

OBC_BUCKETS = (KNOWLEDGE, SKILLS, VALUES)
CBC_BUCKETS = (COMPETENCE_STATEMENT, LEARNING_ACTIVITY, EXPECTED_STANDARD)

# Extraction methods recorded with each document
METHOD_LINE = "line"
METHOD_TABLE = "table"
METHOD_AI_FALLBACK = "ai_fallback"

# Visible number prefix of a node name, e.g. "10.1.1 Units"
NAME_NUMBER_PATTERN = re.compile(r'^(\d+(?:\.\d+)+)\.?\s')


def split_number(number: Optional[str]) -> Tuple[str, ...]:
    """
    Split a hierarchy number into its dot-separated segments.

    Example:
        >>> split_number("10.1.2")
        ('10', '1', '2')
        >>> split_number(None)
        ()
    """
    if not number:
        return ()
    return tuple(number.split('.'))


def extends_number(child: Optional[str], parent: Optional[str]) -> bool:
    """
    Check that a child number extends its parent by exactly one segment.

    Example:
        >>> extends_number("10.1.1", "10.1")
        True
        >>> extends_number("10.2.1", "10.1")
        False
    """
    child_parts = split_number(child)
    parent_parts = split_number(parent)
    if not child_parts or not parent_parts:
        return False
    return (
        len(child_parts) == len(parent_parts) + 1
        and child_parts[:len(parent_parts)] == parent_parts
    )


@dataclass
class SpecificOutcome:
    """An outcome-based leaf statement with optional ordered sub-content."""

    text: str
    number: Optional[str] = None
    sub_content: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "subContent": list(self.sub_content)}


@dataclass
class SpecificCompetence:
    """A competency-based leaf with parallel activities and standards."""

    description: str
    number: Optional[str] = None
    learning_activities: List[str] = field(default_factory=list)
    expected_standards: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "learningActivities": list(self.learning_activities),
            "expectedStandards": list(self.expected_standards),
        }


@dataclass
class Subtopic:
    """Level-3 node; its name carries its three-segment number as a prefix."""

    name: str
    number: Optional[str] = None
    specific_outcomes: List[SpecificOutcome] = field(default_factory=list)
    specific_competences: List[SpecificCompetence] = field(default_factory=list)
    knowledge: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    values: List[str] = field(default_factory=list)

    def bucket(self, name: str) -> List[str]:
        """Return the OBC content bucket list for a bucket name."""
        if name not in OBC_BUCKETS:
            raise ValueError(f"Unknown content bucket: {name}")
        return getattr(self, name)

    @property
    def outcome_count(self) -> int:
        return len(self.specific_outcomes) + len(self.specific_competences)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "specificCompetences": [c.to_dict() for c in self.specific_competences],
            "specificOutcomes": [o.to_dict() for o in self.specific_outcomes],
            "knowledge": list(self.knowledge),
            "skills": list(self.skills),
            "values": list(self.values),
        }


@dataclass
class Topic:
    """Level-2 node; its name carries its two-segment number as a prefix."""

    name: str
    number: Optional[str] = None
    subtopics: List[Subtopic] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "subtopics": [s.to_dict() for s in self.subtopics],
        }


@dataclass
class SyllabusDocument:
    """
    Root record for one parsed syllabus.

    Created once per successful parse. ``id``, ``created_at`` and
    ``updated_at`` are assigned by the store.
    """

    subject: str
    curriculum_type: str
    topics: List[Topic] = field(default_factory=list)
    category: Optional[str] = None
    grade_range: Optional[str] = None
    form: Optional[str] = None
    extraction_method: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate enumerations after initialization."""
        if self.curriculum_type not in CURRICULUM_TYPES:
            raise ValueError(
                f"curriculum_type must be one of {CURRICULUM_TYPES}, got {self.curriculum_type!r}"
            )
        if self.category is not None and self.category not in EDUCATION_CATEGORIES:
            raise ValueError(
                f"category must be one of {EDUCATION_CATEGORIES}, got {self.category!r}"
            )

    def iter_subtopics(self) -> Iterator[Tuple[Topic, Subtopic]]:
        for topic in self.topics:
            for subtopic in topic.subtopics:
                yield topic, subtopic

    def counts(self) -> Dict[str, int]:
        """Count nodes per level for logging and summaries."""
        subtopics = [s for _, s in self.iter_subtopics()]
        return {
            "topics": len(self.topics),
            "subtopics": len(subtopics),
            "outcomes": sum(s.outcome_count for s in subtopics),
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "subject": self.subject,
            "curriculumType": self.curriculum_type,
            "category": self.category,
            "gradeRange": self.grade_range,
            "form": self.form,
            "extractionMethod": self.extraction_method,
            "topics": [t.to_dict() for t in self.topics],
        }
        if self.id is not None:
            data["id"] = self.id
        if self.created_at is not None:
            data["createdAt"] = self.created_at.isoformat()
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at.isoformat()
        return data


# ==================================
# Deserialization
# ==================================

def number_from_name(name: str) -> Optional[str]:
    """
    Recover the hierarchy number carried as a visible prefix of a node name.

    Example:
        >>> number_from_name("10.1 General Physics")
        '10.1'
        >>> number_from_name("General Physics") is None
        True
    """
    match = NAME_NUMBER_PATTERN.match(name or "")
    return match.group(1) if match else None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def _first_key(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _outcome_from_dict(item: Any) -> Optional[SpecificOutcome]:
    if isinstance(item, str):
        return SpecificOutcome(text=item.strip(), number=number_from_name(item.strip())) if item.strip() else None
    if isinstance(item, dict):
        text = _first_key(item, "text", "outcome", "description", "name")
        if isinstance(text, str) and text.strip():
            return SpecificOutcome(
                text=text.strip(),
                number=number_from_name(text.strip()),
                sub_content=_string_list(_first_key(item, "subContent", "sub_content", "content")),
            )
    return None


def _competence_from_dict(item: Any) -> Optional[SpecificCompetence]:
    if isinstance(item, str):
        return SpecificCompetence(description=item.strip(), number=number_from_name(item.strip())) if item.strip() else None
    if isinstance(item, dict):
        description = _first_key(item, "description", "competence", "text", "name")
        if isinstance(description, str) and description.strip():
            return SpecificCompetence(
                description=description.strip(),
                number=number_from_name(description.strip()),
                learning_activities=_string_list(
                    _first_key(item, "learningActivities", "learning_activities", "activities")
                ),
                expected_standards=_string_list(
                    _first_key(item, "expectedStandards", "expected_standards", "standards")
                ),
            )
    return None


def subtopic_from_dict(data: Dict[str, Any]) -> Optional[Subtopic]:
    """
    Build a Subtopic from a stored or AI-produced dict.

    Accepts both the stored camelCase keys and the looser keys an AI
    response tends to use (``competencies``, ``activities``). Returns None
    when the dict has no usable name.
    """
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    subtopic = Subtopic(name=name.strip(), number=number_from_name(name.strip()))

    competences = _first_key(data, "specificCompetences", "specific_competences", "competences", "competencies")
    if isinstance(competences, list):
        for item in competences:
            competence = _competence_from_dict(item)
            if competence:
                subtopic.specific_competences.append(competence)

    # Flat activity/standard lists at subtopic level attach to the last competence
    flat_activities = _string_list(_first_key(data, "activities", "learningActivities"))
    flat_standards = _string_list(_first_key(data, "expectedStandards", "standards"))
    if (flat_activities or flat_standards) and subtopic.specific_competences:
        last = subtopic.specific_competences[-1]
        last.learning_activities.extend(flat_activities)
        last.expected_standards.extend(flat_standards)

    outcomes = _first_key(data, "specificOutcomes", "specific_outcomes", "outcomes")
    if isinstance(outcomes, list):
        for item in outcomes:
            outcome = _outcome_from_dict(item)
            if outcome:
                subtopic.specific_outcomes.append(outcome)

    subtopic.knowledge = _string_list(data.get("knowledge"))
    subtopic.skills = _string_list(data.get("skills"))
    subtopic.values = _string_list(data.get("values"))

    return subtopic


def topic_from_dict(data: Dict[str, Any]) -> Optional[Topic]:
    """Build a Topic (and its subtopics) from a dict; None without a name."""
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    topic = Topic(name=name.strip(), number=number_from_name(name.strip()))
    for item in data.get("subtopics") or []:
        if isinstance(item, dict):
            subtopic = subtopic_from_dict(item)
            if subtopic:
                topic.subtopics.append(subtopic)
    return topic


def topics_from_list(items: Any) -> List[Topic]:
    """Build the ordered topic list from a JSON-decoded list."""
    topics: List[Topic] = []
    if not isinstance(items, list):
        return topics
    for item in items:
        if isinstance(item, dict):
            topic = topic_from_dict(item)
            if topic:
                topics.append(topic)
    return topics


# ==================================
# Validation
# ==================================

def find_containment_violations(topics: List[Topic]) -> List[str]:
    """
    List every node whose number does not extend its parent's number.

    Nodes without a number (AI fallback records) are not checked.

    Returns:
        Human-readable violation descriptions (empty when the tree is valid)
    """
    violations = []
    for topic in topics:
        for subtopic in topic.subtopics:
            if topic.number and subtopic.number and not extends_number(subtopic.number, topic.number):
                violations.append(f"Subtopic {subtopic.number} not contained in topic {topic.number}")
            for leaf in [*subtopic.specific_outcomes, *subtopic.specific_competences]:
                if subtopic.number and leaf.number and not extends_number(leaf.number, subtopic.number):
                    violations.append(f"Outcome {leaf.number} not contained in subtopic {subtopic.number}")
    return violations


__all__ = [
    "CBC",
    "OBC",
    "KNOWLEDGE",
    "SKILLS",
    "VALUES",
    "COMPETENCE_STATEMENT",
    "LEARNING_ACTIVITY",
    "EXPECTED_STANDARD",
    "OBC_BUCKETS",
    "CBC_BUCKETS",
    "METHOD_LINE",
    "METHOD_TABLE",
    "METHOD_AI_FALLBACK",
    "SpecificOutcome",
    "SpecificCompetence",
    "Subtopic",
    "Topic",
    "SyllabusDocument",
    "split_number",
    "number_from_name",
    "extends_number",
    "subtopic_from_dict",
    "topic_from_dict",
    "topics_from_list",
    "find_containment_violations",
]
