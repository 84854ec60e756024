"""Prompt templates for worksheet generation."""

QUESTION_TYPE_PHRASES = {
    "multiple-choice": "multiple-choice with 4 options and a correct answer",
    "fill-in-the-blank": "fill-in-the-blank with a single correct answer",
    "open-ended": "open-ended comprehension question",
}

BASE_CLAUSE = """Create a worksheet for a {grade_level} student on the topic of "{topic}".
The worksheet should have {num_questions} questions.
The question types should be a mix of: {question_mix}.
"""

TITLE_CLAUSE = "The title of the worksheet should be creative and related to the topic.\n"

ANSWER_KEY_CLAUSE = (
    "\nIMPORTANT: For EVERY question, you MUST provide a correct 'answer'. "
    "For open-ended questions, this should be a detailed, example correct answer. "
    "The answer key is critical.\n"
)

CUSTOM_INSTRUCTIONS_CLAUSE = "\nFollow these custom instructions: {custom_instructions}\n"

SOURCE_TEXT_CLAUSE = '\nBase the questions on the following source text:\n"""\n{source_text}\n"""\n'

SOURCE_LINKS_CLAUSE = "\nAlso, use the content from the following web pages as context:\n{source_links}\n"

OUTPUT_FORMAT_CLAUSE = (
    "\nReturn the worksheet as a JSON object. "
    "For multiple choice questions, provide an array of strings for 'options' and the correct 'answer'. "
    "For fill-in-the-blank, provide the 'answer' to be filled in. "
    "For open-ended questions, provide an example 'answer'. "
    'The question text for fill-in-the-blank should use "____" to indicate the blank.'
)

# Used by providers without native structured output (OpenAI JSON mode).
JSON_SCHEMA_SYSTEM_PROMPT = """You are an expert educator who creates clear, grade-appropriate worksheets.
Respond with a single JSON object only, no markdown. The object must match this schema:
{schema}"""
