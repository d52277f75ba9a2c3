"""
Prompt construction – pure functions, no state.
Every prompt carries the query, the flattened metadata, the article inside <text> tags
and the <output> envelope the model must wrap its answer in.
"""

from typing import Any, Mapping, Optional

from deep_truth.domain.errors import InvalidInput
from deep_truth.domain.models import Mode

MISSING_VALUE = "N/A"


def validate_query(user_query: Any) -> str:
    """Return the query unchanged, or raise InvalidInput for empty / non-string queries."""
    if not isinstance(user_query, str) or not user_query.strip():
        raise InvalidInput("A valid user query or topic is required")
    return user_query


def format_metadata(metadata: Optional[Mapping[str, Any]]) -> str:
    """One 'key: value' line per entry, insertion order kept, empty values as N/A."""
    if not metadata:
        return MISSING_VALUE
    lines = []
    for key, value in metadata.items():
        rendered = value if value not in (None, "") else MISSING_VALUE
        lines.append(f"{key}: {rendered}")
    return "\n".join(lines)


def build_extraction_prompt(
    user_query: str,
    metadata: Optional[Mapping[str, Any]],
    content: str,
) -> str:
    return f"""
You are a system designed to extract related paragraphs from the provided text based on the user query.

**User Query**:
"{user_query}"

**Text Metadata**:
{format_metadata(metadata)}

**Text Content**:
<text>
{content}
</text>


**Task Instructions**:
- **Extract relevant paragraphs** from the text that are related to the user query.
- Copy paragraphs verbatim; do not summarize or add commentary.
- If nothing in the text is related to the query, return an empty array.
- **Format your response as a JSON array** inside <output> and </output> tags. Each paragraph should be an object with a "paragraph" key.
<output>
[
  {{
    "paragraph": "extracted paragraph 1"
  }},
  {{
    "paragraph": "extracted paragraph 2"
  }}
]
</output>
"""


def build_accumulation_prompt(
    user_query: str,
    metadata: Optional[Mapping[str, Any]],
    content: str,
    current_answer: Optional[str] = None,
) -> str:
    answer_block = current_answer.strip() if current_answer and current_answer.strip() else "(no answer yet)"
    return f"""
You are a system that builds one answer to the user query, article by article.

**User Query**:
"{user_query}"

**Current Answer**:
<current_answer>
{answer_block}
</current_answer>

**Text Metadata**:
{format_metadata(metadata)}

**Text Content**:
<text>
{content}
</text>


**Task Instructions**:
- Read the text and **update the current answer** with anything new it says about the user query.
- Keep everything from the current answer that is still correct.
- If the text adds nothing, return the current answer unchanged.
- **Return the complete updated answer** as plain text inside <output> and </output> tags.
<output>
updated answer
</output>
"""


class PromptBuilder:
    """Binds the query and mode once; builds one prompt per article."""

    def __init__(self, user_query: str, mode: Mode = Mode.JSON):
        self.user_query = validate_query(user_query)
        self.mode = Mode(mode)

    def build(
        self,
        metadata: Optional[Mapping[str, Any]],
        content: str,
        current_answer: Optional[str] = None,
    ) -> str:
        if self.mode is Mode.TEXT:
            return build_accumulation_prompt(self.user_query, metadata, content, current_answer)
        return build_extraction_prompt(self.user_query, metadata, content)
