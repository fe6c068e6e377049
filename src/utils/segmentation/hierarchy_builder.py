"""
Hierarchy Builder for Structure Extraction

Level-aware state machine that assembles the Topic -> Subtopic -> Outcome
tree from parse units in document order. Both entry paths feed it:
the line stream (via LineStreamAdapter) and the table cell grid (via the
table extractor).

States (derived from the current-node pointers):
- no-topic:     nothing open yet
- in-topic:     a Topic is open
- in-subtopic:  a Subtopic is open under the current Topic
- in-outcome:   an Outcome/Competence is open under the current Subtopic

The tree owns the nodes; current_topic / current_subtopic / current_outcome
only say where the next child attaches.

Containment: a Subtopic is attached only if its number extends the current
Topic's number by one segment, an Outcome only if it extends the current
Subtopic's. Anything else, and content with no open Subtopic, is discarded.
"""

from typing import Iterable, Iterator, List, Optional, Pattern, Sequence, Set, Union

from src.models import (
    CBC,
    COMPETENCE_STATEMENT,
    EXPECTED_STANDARD,
    LEARNING_ACTIVITY,
    OBC,
    OBC_BUCKETS,
    SpecificCompetence,
    SpecificOutcome,
    Subtopic,
    Topic,
    extends_number,
)
from src.utils.cleanup.text_normalizer import normalize_lines
from src.utils.logging_config import logger
from src.utils.segmentation.content_classifier import ContentClassifier
from src.utils.segmentation.heading_patterns import (
    MARKER_SUB_ITEM,
    UNIT_CONTENT,
    UNIT_OUTCOME,
    UNIT_SUBTOPIC,
    UNIT_TOPIC,
    HierarchyTokenizer,
    ParseUnit,
)


STATE_NO_TOPIC = "no-topic"
STATE_IN_TOPIC = "in-topic"
STATE_IN_SUBTOPIC = "in-subtopic"
STATE_IN_OUTCOME = "in-outcome"


class TreeBuilder:
    """
    Shared state machine for both entry paths.

    Args:
        curriculum_type: "obc" or "cbc"
        classifier: Content classifier (a default one is built if omitted)
        reuse_existing: Reuse a Topic/Subtopic whose name matches exactly
            instead of appending a duplicate sibling (table input, where
            merged-cell labels repeat across rows)

    Example:
        >>> builder = TreeBuilder("obc")
        >>> builder.add(ParseUnit(kind="topic", number="10.1", text="General Physics"))
        True
        >>> builder.state
        'in-topic'
    """

    def __init__(
        self,
        curriculum_type: str,
        classifier: Optional[ContentClassifier] = None,
        reuse_existing: bool = False,
    ):
        if curriculum_type not in (CBC, OBC):
            raise ValueError(f"Unknown curriculum type: {curriculum_type}")

        self.curriculum_type = curriculum_type
        self.classifier = classifier or ContentClassifier()
        self.reuse_existing = reuse_existing

        self.topics: List[Topic] = []
        self.current_topic: Optional[Topic] = None
        self.current_subtopic: Optional[Subtopic] = None
        self.current_outcome: Optional[Union[SpecificOutcome, SpecificCompetence]] = None

        self.discarded = 0

    @property
    def state(self) -> str:
        if self.current_outcome is not None:
            return STATE_IN_OUTCOME
        if self.current_subtopic is not None:
            return STATE_IN_SUBTOPIC
        if self.current_topic is not None:
            return STATE_IN_TOPIC
        return STATE_NO_TOPIC

    def add(self, unit: ParseUnit) -> bool:
        """
        Process one parse unit.

        Returns:
            True if the unit was attached to the tree, False if discarded
        """
        if unit.kind == UNIT_TOPIC:
            return self._open_topic(unit)
        if unit.kind == UNIT_SUBTOPIC:
            return self._open_subtopic(unit)
        if unit.kind == UNIT_OUTCOME:
            return self._open_outcome(unit)
        if unit.kind == UNIT_CONTENT:
            return self._add_content(unit)
        self.discarded += 1
        return False

    def add_all(self, units: Iterable[ParseUnit]) -> "TreeBuilder":
        for unit in units:
            self.add(unit)
        return self

    def build(self) -> List[Topic]:
        """
        Return the accumulated Topic sequence.

        An empty list means structural parsing failed; the caller decides
        whether to fall back.
        """
        logger.debug(
            f"Tree built: {len(self.topics)} topics, "
            f"{sum(len(t.subtopics) for t in self.topics)} subtopics, "
            f"{self.discarded} units discarded"
        )
        return self.topics

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _discard(self, unit: ParseUnit, reason: str) -> bool:
        self.discarded += 1
        logger.debug(f"Discarded {unit.kind} '{unit.label[:60]}': {reason}")
        return False

    def _open_topic(self, unit: ParseUnit) -> bool:
        name = unit.label
        topic = self._find_by_name(self.topics, name) if self.reuse_existing else None
        if topic is None:
            topic = Topic(name=name, number=unit.number)
            self.topics.append(topic)

        self.current_topic = topic
        self.current_subtopic = None
        self.current_outcome = None
        return True

    def _open_subtopic(self, unit: ParseUnit) -> bool:
        if self.current_topic is None:
            return self._discard(unit, "no open topic")
        if not extends_number(unit.number, self.current_topic.number):
            return self._discard(unit, f"not contained in topic {self.current_topic.number}")

        name = unit.label
        subtopic = (
            self._find_by_name(self.current_topic.subtopics, name)
            if self.reuse_existing else None
        )
        if subtopic is None:
            subtopic = Subtopic(name=name, number=unit.number)
            self.current_topic.subtopics.append(subtopic)

        self.current_subtopic = subtopic
        self.current_outcome = None
        return True

    def _open_outcome(self, unit: ParseUnit) -> bool:
        if self.current_subtopic is None:
            return self._discard(unit, "no open subtopic")
        if not extends_number(unit.number, self.current_subtopic.number):
            # A rejected outcome still closes the previous one
            self.current_outcome = None
            return self._discard(unit, f"not contained in subtopic {self.current_subtopic.number}")

        if self.curriculum_type == OBC:
            outcome = SpecificOutcome(text=unit.label, number=unit.number)
            self.current_subtopic.specific_outcomes.append(outcome)
        else:
            outcome = SpecificCompetence(description=unit.label, number=unit.number)
            self.current_subtopic.specific_competences.append(outcome)

        self.current_outcome = outcome
        return True

    def _add_content(self, unit: ParseUnit) -> bool:
        if self.current_subtopic is None:
            return self._discard(unit, "no open subtopic")

        if self.curriculum_type == OBC:
            return self._add_obc_content(unit)
        return self._add_cbc_content(unit)

    def _add_obc_content(self, unit: ParseUnit) -> bool:
        if unit.marker == MARKER_SUB_ITEM and isinstance(self.current_outcome, SpecificOutcome):
            self.current_outcome.sub_content.append(unit.text)
            return True

        bucket = unit.bucket or self.classifier.classify(unit.text, OBC)
        if bucket not in OBC_BUCKETS:
            return self._discard(unit, f"bucket {bucket} not valid for obc")
        self.current_subtopic.bucket(bucket).append(unit.text)
        return True

    def _add_cbc_content(self, unit: ParseUnit) -> bool:
        bucket = unit.bucket or self.classifier.classify(unit.text, CBC)

        if bucket == COMPETENCE_STATEMENT:
            competence = SpecificCompetence(description=unit.text)
            self.current_subtopic.specific_competences.append(competence)
            self.current_outcome = competence
            return True

        if not isinstance(self.current_outcome, SpecificCompetence):
            return self._discard(unit, "no open competence")

        if bucket == LEARNING_ACTIVITY:
            self.current_outcome.learning_activities.append(unit.text)
        elif bucket == EXPECTED_STANDARD:
            self.current_outcome.expected_standards.append(unit.text)
        else:
            return self._discard(unit, f"bucket {bucket} not valid for cbc")
        return True

    @staticmethod
    def _find_by_name(nodes: Sequence[Union[Topic, Subtopic]], name: str):
        for node in nodes:
            if node.name == name:
                return node
        return None


class LineStreamAdapter:
    """
    Input adapter for the line-based path: normalized lines -> parse units.

    Wraps a per-document HierarchyTokenizer so the pending-number slot never
    outlives one invocation.
    """

    def __init__(
        self,
        top_levels: Optional[Iterable[int]] = None,
        denylist: Optional[Sequence[Pattern]] = None,
    ):
        self.top_levels: Optional[Set[int]] = set(top_levels) if top_levels is not None else None
        self.tokenizer = HierarchyTokenizer(self.top_levels, denylist)

    def units(self, lines: Iterable[str]) -> Iterator[ParseUnit]:
        for line in lines:
            yield from self.tokenizer.feed(line)
        yield from self.tokenizer.finish()


def parse_lines(
    text: str,
    curriculum_type: str,
    top_levels: Optional[Iterable[int]] = None,
    classifier: Optional[ContentClassifier] = None,
    denylist: Optional[Sequence[Pattern]] = None,
) -> List[Topic]:
    """
    Line-based entry path: normalize, tokenize and build the tree.

    Args:
        text: Plain text from the conversion collaborator
        curriculum_type: "obc" or "cbc"
        top_levels: Valid top-level numbers for this document
        classifier: Content classifier
        denylist: Compiled header/footer denylist override

    Returns:
        Ordered Topic list (empty on structural failure)

    Example:
        >>> topics = parse_lines("10.1 General Physics\\n10.1.1 Units", "obc", {10})
        >>> topics[0].subtopics[0].name
        '10.1.1 Units'
    """
    allowed = set(top_levels) if top_levels is not None else None
    lines = normalize_lines(text, allowed)
    adapter = LineStreamAdapter(allowed, denylist)
    builder = TreeBuilder(curriculum_type, classifier=classifier)
    return builder.add_all(adapter.units(lines)).build()


__all__ = [
    'STATE_NO_TOPIC',
    'STATE_IN_TOPIC',
    'STATE_IN_SUBTOPIC',
    'STATE_IN_OUTCOME',
    'TreeBuilder',
    'LineStreamAdapter',
    'parse_lines',
]
