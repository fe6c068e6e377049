"""
AI helper utilities for fallback extraction and document generation.

The fallback extractor is used only when structural parsing yields no
Topics. It makes exactly one blocking call to the Claude API with a strict
prompt asking for JSON only, then parses the first balanced JSON object in
the reply into the same tree shape as the local parser. It is all-or-nothing:
no partial local result is merged and a failed call is never retried.

AI-fallback records carry looser containment guarantees than locally parsed
trees, since the model is not bound to the numbering scheme.
"""

import json
from typing import List, Optional

import anthropic

from src.config import (
    CLAUDE_API_KEY,
    CLAUDE_MAX_TOKENS,
    CLAUDE_MODEL,
    CLAUDE_TIMEOUT_SECONDS,
    FALLBACK_MAX_INPUT_CHARS,
)
from src.models import CBC, Topic, topics_from_list
from src.utils.logging_config import logger


class FallbackError(Exception):
    """Base class for AI fallback failures."""
    pass


class FallbackUnavailableError(FallbackError):
    """Raised when the AI service is not configured or cannot be reached."""
    pass


class FallbackResponseError(FallbackError):
    """Raised when the AI service returns a non-success response."""
    pass


class FallbackParseError(FallbackError):
    """Raised when the reply contains no usable JSON object."""
    pass


# ==================================
# Prompt Construction
# ==================================

CBC_SCHEMA = """{
  "curriculumType": "cbc",
  "subject": "<subject>",
  "topics": [
    {
      "name": "10.1 Topic Name",
      "subtopics": [
        {
          "name": "10.1.1 Subtopic Name",
          "specificCompetences": [
            {
              "description": "10.1.1.1 Competence statement",
              "learningActivities": ["Activity 1"],
              "expectedStandards": ["Standard 1"]
            }
          ]
        }
      ]
    }
  ]
}"""

OBC_SCHEMA = """{
  "curriculumType": "obc",
  "subject": "<subject>",
  "topics": [
    {
      "name": "10.1 Topic Name",
      "subtopics": [
        {
          "name": "10.1.1 Subtopic Name",
          "specificOutcomes": ["10.1.1.1 Specific outcome"],
          "knowledge": ["Knowledge item"],
          "skills": ["Skill item"],
          "values": ["Value item"]
        }
      ]
    }
  ]
}"""


def truncate_on_line_boundary(text: str, max_chars: int) -> str:
    """
    Truncate text to a character budget without cutting a line.

    Falls back to the last whitespace when the budget holds no line break,
    so a token is never split.

    Args:
        text: Document text
        max_chars: Maximum number of characters to keep

    Returns:
        Text of at most max_chars characters

    Example:
        >>> truncate_on_line_boundary("10.1 Physics\\n10.1.1 Units", 15)
        '10.1 Physics'
    """
    if len(text) <= max_chars:
        return text

    cut = text[:max_chars]
    if text[max_chars] == '\n':
        return cut

    boundary = cut.rfind('\n')
    if boundary <= 0:
        boundary = max(cut.rfind(' '), cut.rfind('\t'))
    if boundary <= 0:
        return ""
    return cut[:boundary].rstrip()


def build_extraction_prompt(
    text: str,
    subject: str,
    curriculum_type: str,
    grade_range: Optional[str] = None,
    max_chars: int = FALLBACK_MAX_INPUT_CHARS,
) -> str:
    """
    Build the strict JSON-only extraction prompt.

    Args:
        text: Converted document text
        subject: Subject name
        curriculum_type: "cbc" or "obc"
        grade_range: Optional grade/form range descriptor
        max_chars: Character budget for the document excerpt

    Returns:
        Formatted prompt string
    """
    excerpt = truncate_on_line_boundary(text, max_chars)
    if len(excerpt) < len(text):
        logger.warning(f"Fallback input truncated from {len(text):,} to {len(excerpt):,} chars")

    if curriculum_type == CBC:
        kind = "competency-based (CBC)"
        structure = "Topic -> Subtopic -> Specific Competences, each with Learning Activities and Expected Standards"
        schema = CBC_SCHEMA
    else:
        kind = "outcome-based (OBC)"
        structure = "Topic -> Subtopic -> Specific Outcomes, plus Knowledge, Skills and Values content lists"
        schema = OBC_SCHEMA

    scope = f" for {grade_range}" if grade_range else ""

    return f"""You are a strict data extraction engine for {kind} syllabi.

TASK: Extract the syllabus structure for {subject}{scope} from the text below.

CRITICAL INSTRUCTIONS:
1. Extract ONLY data explicitly present in the text. Do NOT invent content.
2. Ignore page headers, footers, banners and table column headings.
3. Structure: {structure}.
4. Keep each Topic, Subtopic and Outcome number as a prefix of its name
   (Topic "10.1", Subtopic "10.1.1", Outcome "10.1.1.1").
5. Preserve document order. Use [] for lists with no content.
6. Respond with ONLY a JSON object matching this format, no other text:

{schema.replace("<subject>", subject)}

SYLLABUS TEXT:
{excerpt}

JSON only:"""


def extract_first_json_object(text: str) -> Optional[dict]:
    """
    Parse the first balanced, well-formed JSON object in a reply.

    Tolerates surrounding prose and code-fence markers, and braces that
    appear inside JSON strings.

    Example:
        >>> extract_first_json_object('Here you go:\\n```json\\n{"topics": []}\\n```')
        {'topics': []}
        >>> extract_first_json_object("no json here") is None
        True
    """
    if not text:
        return None

    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    candidate = text[start:index + 1]
                    try:
                        parsed = json.loads(candidate)
                    except json.JSONDecodeError:
                        break
                    if isinstance(parsed, dict):
                        return parsed
                    break

        start = text.find('{', start + 1)

    return None


# ==================================
# AI Client
# ==================================

class ClaudeClient:
    """
    Thin wrapper over the Anthropic Messages API.

    Anything with a ``complete(prompt) -> str`` method can stand in for it
    (the coordinator only depends on that).
    """

    def __init__(
        self,
        api_key: Optional[str] = CLAUDE_API_KEY,
        model: str = CLAUDE_MODEL,
        max_tokens: int = CLAUDE_MAX_TOKENS,
        timeout: float = CLAUDE_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            if not self.api_key:
                raise FallbackUnavailableError("CLAUDE_API_KEY is not set")
            # No SDK-level retries: one failed attempt is terminal
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the reply text.

        Raises:
            FallbackUnavailableError: If no API key is set or the service
                cannot be reached
            FallbackResponseError: If the service returns an error status or
                an empty reply
        """
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIConnectionError as e:
            raise FallbackUnavailableError(f"Claude API unreachable: {e}") from e
        except anthropic.APIStatusError as e:
            raise FallbackResponseError(f"Claude API error (status {e.status_code}): {e}") from e

        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        if not text:
            raise FallbackResponseError("Claude API returned an empty reply")
        return text


# ==================================
# Fallback Coordinator
# ==================================

class FallbackCoordinator:
    """
    Last-resort AI extraction into the canonical tree shape.

    Args:
        client: Object with ``complete(prompt) -> str`` (ClaudeClient by default)
        max_input_chars: Character budget for the document excerpt
    """

    def __init__(self, client=None, max_input_chars: int = FALLBACK_MAX_INPUT_CHARS):
        self.client = client or ClaudeClient()
        self.max_input_chars = max_input_chars

    def extract(
        self,
        text: str,
        subject: str,
        curriculum_type: str,
        grade_range: Optional[str] = None,
    ) -> List[Topic]:
        """
        Run one fallback extraction.

        Returns:
            Non-empty ordered Topic list

        Raises:
            FallbackUnavailableError: Service not configured or unreachable
            FallbackResponseError: Non-success response
            FallbackParseError: No JSON object, or no Topics in it
        """
        prompt = build_extraction_prompt(
            text, subject, curriculum_type,
            grade_range=grade_range,
            max_chars=self.max_input_chars,
        )

        logger.info(f"Requesting AI fallback extraction ({len(prompt):,} char prompt)")
        reply = self.client.complete(prompt)

        data = extract_first_json_object(reply)
        if data is None:
            logger.error(f"AI fallback reply contained no JSON object: {reply[:200]!r}")
            raise FallbackParseError("AI reply contained no parseable JSON object")

        topics = topics_from_list(data.get("topics"))
        if not topics:
            raise FallbackParseError("AI reply contained no topics")

        logger.info(f"AI fallback extracted {len(topics)} topics")
        return topics


def generate_document(prompt: str, client=None) -> str:
    """
    Send an arbitrary document-generation prompt and return the raw reply.

    Unrelated to extraction; shares the AI client only.

    Raises:
        FallbackError: On any AI service failure
    """
    client = client or ClaudeClient()
    logger.info(f"Generating document ({len(prompt):,} char prompt)")
    return client.complete(prompt)


__all__ = [
    'FallbackError',
    'FallbackUnavailableError',
    'FallbackResponseError',
    'FallbackParseError',
    'truncate_on_line_boundary',
    'build_extraction_prompt',
    'extract_first_json_object',
    'ClaudeClient',
    'FallbackCoordinator',
    'generate_document',
]
