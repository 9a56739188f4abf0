import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 150_000

DEFAULT_INSTRUCTIONS = (
    "Based on the following text, identify the most important concepts and create flashcards.\n"
    'Each flashcard should have a "question" and an "answer".\n'
    "Return the flashcards as a valid JSON array of objects, where each object has a "
    '"question" key and an "answer" key.\n'
    "Ensure the output is ONLY the JSON array, with no other text before or after it."
)


class FlashcardPromptBuilder:
    """Builder for the flashcard generation prompt."""

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS):
        self.max_chars = max_chars
        self.prompts_dir = Path(__file__).parent / "prompts"
        self.instructions = self._load_instructions()

    def _load_instructions(self) -> str:
        """Load the instructions from the text file.

        Returns:
            Instruction text placed before the document
        """
        prompt_file = self.prompts_dir / "flashcards.txt"
        if not prompt_file.exists():
            return DEFAULT_INSTRUCTIONS
        return prompt_file.read_text().strip()

    def truncate(self, text: str) -> str:
        if len(text) > self.max_chars:
            logger.info(f"Truncating document text from {len(text)} to {self.max_chars} characters")
        return text[: self.max_chars]

    def create_flashcards_prompt(self, text: str) -> str:
        """Create the generation prompt for a document.

        Args:
            text: Extracted document text, truncated to ``max_chars``

        Returns:
            Formatted prompt string
        """
        prompt = f"{self.instructions}\n\n"
        prompt += "Text:\n---\n"
        prompt += f"{self.truncate(text)}\n"
        prompt += "---\n"
        prompt += "JSON Flashcards:\n"
        return prompt
