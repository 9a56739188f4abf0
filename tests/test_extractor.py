"""
Stream Extractor Tests
"""
import pytest

from src.exceptions import GenerationError, RecordParseError
from src.schemas.flashcards import Flashcard
from src.services.flashcards.extractor import FlashcardStreamExtractor
from tests.conftest import failing_fragments, fragments_of


def feed_all(fragments):
    extractor = FlashcardStreamExtractor()
    records = []
    for fragment in fragments:
        records.extend(extractor.feed(fragment))
    extractor.finish()
    return records


class TestIncrementalExtraction:
    """Records are recognised as soon as they complete"""

    def test_record_split_across_fragments(self):
        extractor = FlashcardStreamExtractor()
        assert extractor.feed('{"question":"A","ans') == []
        records = extractor.feed('wer":"B"}')
        assert records == [Flashcard(question="A", answer="B")]

    def test_record_emitted_before_array_closes(self):
        extractor = FlashcardStreamExtractor()
        records = extractor.feed('[{"question": "Q1", "answer": "A1"}, {"question": "Q2"')
        assert [r.question for r in records] == ["Q1"]
        records = extractor.feed(', "answer": "A2"}]')
        assert [r.question for r in records] == ["Q2"]

    def test_single_character_fragments(self):
        text = '[{"question": "What is {x}?", "answer": "A \\"quoted\\" brace }"}]'
        records = feed_all(list(text))
        assert records == [Flashcard(question="What is {x}?", answer='A "quoted" brace }')]

    def test_escape_split_across_fragments(self):
        records = feed_all(['{"question": "back\\', '\\slash", "answer": "ok"}'])
        assert records == [Flashcard(question="back\\slash", answer="ok")]

    def test_order_follows_completion(self):
        text = "".join(
            f'{{"question": "Q{i}", "answer": "A{i}"}},' for i in range(10)
        )
        records = feed_all([text[i : i + 7] for i in range(0, len(text), 7)])
        assert [r.question for r in records] == [f"Q{i}" for i in range(10)]


class TestValidation:
    """Malformed or empty candidates are skipped without aborting"""

    def test_counts_only_well_formed_records(self):
        text = (
            '[{"question": "Q1", "answer": "A1"},'
            '{"question": "", "answer": "empty question"},'
            '{"question": "no answer"},'
            '{"question": "Q2", "answer": "   "},'
            '{"question": 3, "answer": "number"},'
            '{"question": "Q3", "answer": "A3"}]'
        )
        records = feed_all([text[:40], text[40:130], text[130:]])
        assert [r.question for r in records] == ["Q1", "Q3"]

    def test_rejected_candidates_are_counted(self):
        extractor = FlashcardStreamExtractor()
        extractor.feed('{"question": "", "answer": "x"}{"question": "Q", "answer": "A"}')
        assert extractor.emitted == 1
        assert extractor.rejected == 1

    def test_parse_record_raises_on_invalid_json(self):
        with pytest.raises(RecordParseError):
            FlashcardStreamExtractor.parse_record('{"question": "Q", "answer": }')

    def test_extra_fields_are_ignored(self):
        records = feed_all(['{"question": "Q", "answer": "A", "meta": {"difficulty": 2}}'])
        assert records == [Flashcard(question="Q", answer="A")]

    def test_wrapper_object_is_not_parsed_as_record(self):
        text = '{"flashcards": [{"question": "Q1", "answer": "A1"}, {"question": "Q2", "answer": "A2"}]}'
        extractor = FlashcardStreamExtractor()
        records = extractor.feed(text)
        assert [r.question for r in records] == ["Q1", "Q2"]
        assert extractor.rejected == 0

    def test_prose_and_code_fences_are_skipped(self):
        text = 'Here are your "cards":\n```json\n[{"question": "Q", "answer": "A"}]\n```'
        assert feed_all([text]) == [Flashcard(question="Q", answer="A")]

    def test_unterminated_question_string_does_not_hide_later_records(self):
        text = (
            '[{"question": "broken, "answer": "x"}, '
            '{"question": "A", "answer": "B"}, {"question": "C", "answer": "D"}]'
        )
        records = feed_all([text])
        assert [(r.question, r.answer) for r in records] == [("A", "B"), ("C", "D")]

    def test_missing_opening_quote_does_not_hide_later_records(self):
        text = (
            '[{"question": broken", "answer": "x"}, '
            '{"question": "A", "answer": "B"}, {"question": "C", "answer": "D"}]'
        )
        records = feed_all([text[i : i + 5] for i in range(0, len(text), 5)])
        assert [(r.question, r.answer) for r in records] == [("A", "B"), ("C", "D")]

    def test_broken_record_inside_wrapper_keeps_neighbours(self):
        text = (
            '{"flashcards": [{"question": "Q1", "answer": "A1"}, '
            '{"question": "bad, "answer": "x"}, '
            '{"question": "Q2", "answer": "A2"}]}'
        )
        records = feed_all([text])
        assert [r.question for r in records] == ["Q1", "Q2"]


class TestEndOfStream:
    """Trailing partial output is dropped"""

    def test_incomplete_trailing_object_is_discarded(self):
        records = feed_all(['[{"question": "Q1", "answer": "A1"}, {"question": "Q2", "ans'])
        assert [r.question for r in records] == ["Q1"]

    def test_rerun_yields_identical_output(self):
        fragments = ['[{"question": "Q1", "answer": "A1"},', ' {"question": "Q2", "answer": "A2"}]']
        assert feed_all(fragments) == feed_all(fragments)
        assert len(feed_all(fragments)) == 2

    def test_buffer_is_compacted_after_records(self):
        extractor = FlashcardStreamExtractor()
        extractor.feed('[{"question": "Q1", "answer": "A1"}, {"question": "Q2"')
        assert extractor.cursor.buffer.startswith('{"question": "Q2"')
        extractor.feed(', "answer": "A2"}')
        assert extractor.cursor.buffer == ""

    def test_open_wrapper_does_not_hold_buffer(self):
        extractor = FlashcardStreamExtractor()
        extractor.feed('{"cards": [{"question": "Q1", "answer": "A1"}, ')
        assert extractor.cursor.buffer == ""
        records = extractor.feed('{"question": "Q2", "answer": "A2"}]}')
        assert [r.question for r in records] == ["Q2"]
        assert extractor.cursor.buffer == ""

    def test_stray_brace_in_prose_is_released(self):
        extractor = FlashcardStreamExtractor()
        assert extractor.feed("Note: { ") == []
        assert extractor.cursor.buffer == "{ "
        assert extractor.feed("see below\n") == []
        assert extractor.cursor.buffer == ""
        records = extractor.feed('[{"question": "Q", "answer": "A"}]')
        assert records == [Flashcard(question="Q", answer="A")]


class TestEvents:
    """Event sequence produced over an async fragment stream"""

    @pytest.mark.asyncio
    async def test_complete_after_records(self):
        extractor = FlashcardStreamExtractor()
        events = [
            e async for e in extractor.events(
                fragments_of('[{"question": "Q", ', '"answer": "A"}]')
            )
        ]
        assert [e.event for e in events] == ["flashcard", "complete"]
        assert events[0].flashcard == Flashcard(question="Q", answer="A")

    @pytest.mark.asyncio
    async def test_upstream_failure_ends_with_error(self):
        extractor = FlashcardStreamExtractor()
        source = failing_fragments(
            ['[{"question": "Q", "answer": "A"}, {"quest'],
            GenerationError("AI generation failed. The prompt may have been blocked."),
        )
        events = [e async for e in extractor.events(source)]
        assert [e.event for e in events] == ["flashcard", "error"]
        assert events[-1].message == "AI generation failed. The prompt may have been blocked."

    @pytest.mark.asyncio
    async def test_unexpected_failure_uses_generic_message(self):
        extractor = FlashcardStreamExtractor()
        source = failing_fragments([], ValueError("boom"))
        events = [e async for e in extractor.events(source)]
        assert len(events) == 1
        assert events[0].event == "error"
        assert events[0].message == "Failed to generate flashcards."
