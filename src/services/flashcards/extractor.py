"""Incremental flashcard extraction from a streamed model response.

The model is asked for a JSON array of ``{"question": ..., "answer": ...}``
objects, but the response arrives in arbitrary fragments. Instead of waiting
for the whole array, :class:`FlashcardStreamExtractor` tokenizes the text as it
arrives and hands back every object the moment its closing brace is seen.

The cursor keeps the tokenizer state (open containers, what each one expects
next, string and escape flags) across fragment boundaries, so an object split
between two fragments is recognised as soon as the second one lands and is
never matched twice.

Inside an object the tokenizer follows JSON structure: key, colon, value,
comma or closing brace. A character that cannot appear where it does (for
example after a string whose closing quote is missing) marks the candidate as
malformed; scanning then restarts just past its opening brace with a fresh
state, so one broken object never hides the records after it.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import AsyncIterable, AsyncIterator, List, Optional

from pydantic import ValidationError

from src.exceptions import FlashcardsException, RecordParseError
from src.schemas.flashcards import Flashcard, StreamEvent

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to generate flashcards."

OBJECT = "object"
ARRAY = "array"

# what the innermost open container accepts next
KEY_OR_END = "key_or_end"
KEY = "key"
COLON = "colon"
VALUE = "value"
VALUE_OR_END = "value_or_end"
COMMA_OR_END = "comma_or_end"

WHITESPACE = " \t\r\n"
LITERAL_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789+-.")


@dataclass
class OpenContainer:
    kind: str
    start: int
    expect: str
    wraps_record: bool = False


@dataclass
class ExtractionCursor:
    """Scan state for one generation stream.

    Offsets are absolute positions in the concatenated response. ``buffer``
    only holds text from ``base`` onwards; everything before it has been fully
    consumed.
    """

    buffer: str = ""
    base: int = 0
    position: int = 0
    stack: List[OpenContainer] = field(default_factory=list)
    in_string: bool = False
    escaped: bool = False
    in_literal: bool = False
    last_record_end: int = 0


class FlashcardStreamExtractor:
    """Turns an ordered stream of text fragments into validated flashcards."""

    def __init__(self):
        self.cursor = ExtractionCursor()
        self.emitted = 0
        self.rejected = 0

    def feed(self, fragment: str) -> List[Flashcard]:
        """Append a fragment and return the flashcards it completed, in order."""
        if not fragment:
            return []

        cursor = self.cursor
        cursor.buffer += fragment
        buffer = cursor.buffer
        base = cursor.base
        records: List[Flashcard] = []

        index = cursor.position - base
        while index < len(buffer):
            if self._advance(buffer[index], base + index, records):
                index += 1
            else:
                index = self._resync() - base

        cursor.position = base + len(buffer)
        self._compact()
        self.emitted += len(records)
        return records

    def finish(self) -> None:
        """Close the stream. Unfinished trailing content is dropped, not parsed."""
        if self.cursor.stack:
            logger.info(
                f"Discarding {len(self.cursor.buffer)} characters of incomplete output at end of stream"
            )
        self.cursor = ExtractionCursor()

    async def extract(self, fragments: AsyncIterable[str]) -> AsyncIterator[Flashcard]:
        """Yield flashcards from ``fragments`` as soon as each one completes."""
        async for fragment in fragments:
            for record in self.feed(fragment):
                yield record
        self.finish()

    async def events(self, fragments: AsyncIterable[str]) -> AsyncIterator[StreamEvent]:
        """Yield ``flashcard`` events followed by exactly one terminal event.

        A failure of the fragment source ends the sequence with an ``error``
        event; flashcards already yielded stay valid.
        """
        try:
            async for record in self.extract(fragments):
                yield StreamEvent.card(record)
        except FlashcardsException as e:
            logger.error(f"Generation stream failed after {self.emitted} flashcards: {e}")
            yield StreamEvent.error(str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected failure while streaming flashcards: {e}")
            yield StreamEvent.error(GENERIC_FAILURE_MESSAGE)
            return

        logger.info(
            f"Flashcard stream completed: {self.emitted} emitted, {self.rejected} rejected"
        )
        yield StreamEvent.complete()

    @staticmethod
    def parse_record(span: str) -> Flashcard:
        """Parse one complete JSON object into a flashcard or raise RecordParseError."""
        try:
            data = json.loads(span)
        except json.JSONDecodeError as e:
            raise RecordParseError(f"invalid JSON: {e.msg}") from e

        try:
            return Flashcard.model_validate(data)
        except ValidationError as e:
            raise RecordParseError(f"not a flashcard: {e.error_count()} validation errors") from e

    def _advance(self, char: str, pos: int, records: List[Flashcard]) -> bool:
        """Consume one character. Returns False when it breaks JSON structure."""
        cursor = self.cursor

        if cursor.in_string:
            if cursor.escaped:
                cursor.escaped = False
            elif char == "\\":
                cursor.escaped = True
            elif char == '"':
                cursor.in_string = False
            return True

        if cursor.in_literal:
            if char in LITERAL_CHARS:
                return True
            cursor.in_literal = False

        if not cursor.stack:
            # prose, code fences and the surrounding array are not tokenized
            if char == "{":
                cursor.stack.append(OpenContainer(OBJECT, pos, KEY_OR_END))
            return True

        if char in WHITESPACE:
            return True

        top = cursor.stack[-1]
        expect = top.expect

        if char == '"':
            if expect in (KEY_OR_END, KEY):
                top.expect = COLON
            elif expect in (VALUE, VALUE_OR_END):
                top.expect = COMMA_OR_END
            else:
                return False
            cursor.in_string = True
            return True

        if char == ":" and expect == COLON:
            top.expect = VALUE
            return True

        if char == "," and expect == COMMA_OR_END:
            top.expect = KEY if top.kind == OBJECT else VALUE
            return True

        if char in "{[" and expect in (VALUE, VALUE_OR_END):
            top.expect = COMMA_OR_END
            if char == "{":
                cursor.stack.append(OpenContainer(OBJECT, pos, KEY_OR_END))
            else:
                cursor.stack.append(OpenContainer(ARRAY, pos, VALUE_OR_END))
            return True

        if char == "}" and top.kind == OBJECT and expect in (KEY_OR_END, COMMA_OR_END):
            self._close_object(pos, records)
            return True

        if char == "]" and top.kind == ARRAY and expect in (VALUE_OR_END, COMMA_OR_END):
            cursor.stack.pop()
            return True

        if char in LITERAL_CHARS and expect in (VALUE, VALUE_OR_END):
            top.expect = COMMA_OR_END
            cursor.in_literal = True
            return True

        return False

    def _close_object(self, pos: int, records: List[Flashcard]) -> None:
        cursor = self.cursor
        obj = cursor.stack.pop()
        if obj.wraps_record:
            return

        span = cursor.buffer[obj.start - cursor.base : pos - cursor.base + 1]
        try:
            record = self.parse_record(span)
        except RecordParseError as e:
            self.rejected += 1
            logger.debug(f"Skipping candidate record: {e}", extra={"preview": span[:200]})
            return

        records.append(record)
        cursor.last_record_end = pos + 1
        # every enclosing container now holds an emitted record and is never parsed
        for container in cursor.stack:
            container.wraps_record = True

    def _resync(self) -> int:
        """Abandon the open candidate and return the offset to rescan from."""
        cursor = self.cursor
        restart = max(cursor.stack[0].start + 1, cursor.last_record_end, cursor.base)
        logger.debug(f"Malformed candidate at offset {cursor.stack[0].start}, rescanning")

        self.rejected += 1
        cursor.stack.clear()
        cursor.in_string = False
        cursor.escaped = False
        cursor.in_literal = False
        return restart

    def _compact(self) -> None:
        cursor = self.cursor
        candidates = [c for c in cursor.stack if not c.wraps_record]
        if not candidates:
            keep_from = cursor.position
        elif cursor.stack[0].wraps_record:
            keep_from = cursor.last_record_end
        else:
            keep_from = cursor.stack[0].start

        if keep_from > cursor.base:
            cursor.buffer = cursor.buffer[keep_from - cursor.base :]
            cursor.base = keep_from
