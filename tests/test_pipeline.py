"""
Test suite for chunk processing, carry state, deduplication and the collection run.
"""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
import pytest

# Add the project root to the Python path
sys.path.append(str(Path(__file__).parent.parent))

from hadith_segmenter.batch import BatchProcessor
from hadith_segmenter.collection_configs import (
    DELIMITER_DEFERRED,
    GRAMMAR_ORDINAL,
    CollectionConfig,
    KitabRange,
    get_config,
)
from hadith_segmenter.context import CarryStateManager
from hadith_segmenter.data_models import (
    CarryState,
    Chunk,
    ChunkFormatError,
    ChunkStats,
    ExtractedChunk,
    Heading,
    Page,
    ParsedUnit,
)
from hadith_segmenter.orchestrator import export_collection_pages, merge_collection, process_collection
from hadith_segmenter.post_processor import (
    PostProcessor,
    apply_inherited_heading,
    apply_kitab_ranges,
    assign_unique_unit_numbers,
    deduplicate_units,
    merge_extracted_chunks,
    number_to_letter_suffix,
)
from hadith_segmenter.processors.chunk_processor import ChunkProcessor
from hadith_segmenter.storage import ChunkStore, FileChunkStore, load_pages
from hadith_segmenter.utils.arabic import strip_diacritics

NUMBERED = CollectionConfig(
    slug="test",
    name="Test Collection",
    name_arabic="مجموعة الاختبار",
    strip_trailing_headings=True,
)

ORDINAL = CollectionConfig(
    slug="test-ordinal",
    name="Test Forty",
    name_arabic="الأربعون",
    grammar=GRAMMAR_ORDINAL,
    bab_style="none",
    chain_delimiter=DELIMITER_DEFERRED,
    detect_cross_references=False,
)


def _chunk(*contents, start_page=1, chunk_id=1):
    pages = tuple(
        Page(page_number=start_page + i, volume_number=1, printed_page_number=None, content_plain=c)
        for i, c in enumerate(contents)
    )
    return Chunk(chunk_id=chunk_id, pages_from=start_page, pages_to=start_page + len(contents) - 1, pages=pages)


def _unit(number, page=1, content="نص", footnotes=None, heading=None, seq=None):
    return ParsedUnit(
        unit_number=str(number),
        sequential_number=seq if seq is not None else int(number),
        chain_text="",
        content_text=content,
        heading=heading or Heading(),
        footnotes=footnotes,
        page_start=page,
        page_end=page,
    )


class TestChunkProcessorNumbered(unittest.TestCase):
    """Tests for numbered-grammar chunks."""

    def test_two_units(self):
        """Test the basic numbered example."""
        processor = ChunkProcessor(get_config("bukhari"))
        extracted, state = processor.process(
            _chunk("١ - فلان قال: كذا\n٢ - آخر", start_page=10),
            CarryStateManager().create_initial_state(),
        )

        self.assertEqual([u.unit_number for u in extracted.units], ["1", "2"])
        self.assertEqual(extracted.units[0].content_text, "فلان قال: كذا")
        self.assertEqual(extracted.units[0].chain_text, "")
        self.assertEqual(extracted.units[0].page_start, 10)
        self.assertEqual(state.last_unit_number, 2)
        self.assertEqual(state.last_page, 10)

    def test_headings_within_chunk(self):
        """Test that each unit gets the heading preceding it."""
        text = (
            "كتاب الإيمان\nباب الأول\n"
            "١ - حدثنا فلان عن فلان\n"
            "٢ - حدثنا آخر\nباب الثاني\n"
            "٣ - حدثنا ثالث"
        )
        extracted, state = ChunkProcessor(NUMBERED).process(_chunk(text), CarryState())
        units = extracted.units

        self.assertEqual(units[0].heading, Heading("كتاب الإيمان", "باب الأول"))
        self.assertEqual(units[1].heading, Heading("كتاب الإيمان", "باب الأول"))
        self.assertEqual(units[1].content_text, "حدثنا آخر")
        self.assertEqual(units[2].heading, Heading("كتاب الإيمان", "باب الثاني"))
        self.assertEqual(state.last_heading, Heading("كتاب الإيمان", "باب الثاني"))

    def test_heading_marker_ends_previous_body(self):
        """Test that a numbered kitab line is neither a unit nor part of a body."""
        text = "١ - حدثنا فلان\n٢ - كتاب الصلاة\n٣ - حدثنا آخر"
        extracted, _ = ChunkProcessor(NUMBERED).process(_chunk(text), CarryState())

        self.assertEqual([u.unit_number for u in extracted.units], ["1", "3"])
        self.assertEqual(extracted.units[0].content_text, "حدثنا فلان")
        self.assertEqual(extracted.units[1].heading.kitab, "كتاب الصلاة")

    def test_inherits_heading_from_previous_chunk(self):
        """Test carrying kitab/bab into the leading units of the next chunk."""
        state = CarryState(last_unit_number=3, last_heading=Heading("كتاب الإيمان", "باب الثاني"), last_page=5)
        text = "٤ - حدثنا رابع\nباب الثالث\n٥ - حدثنا خامس"
        extracted, new_state = ChunkProcessor(NUMBERED).process(_chunk(text, start_page=6), state)

        self.assertEqual(extracted.units[0].heading, Heading("كتاب الإيمان", "باب الثاني"))
        self.assertEqual(extracted.units[1].heading, Heading("كتاب الإيمان", "باب الثالث"))
        self.assertEqual(new_state.last_heading, Heading("كتاب الإيمان", "باب الثالث"))
        self.assertEqual(new_state.last_unit_number, 5)

    def test_new_kitab_resets_inherited_bab(self):
        """Test that inheritance stops at a unit's own kitab."""
        state = CarryState(last_unit_number=3, last_heading=Heading("كتاب الإيمان", "باب الثاني"), last_page=5)
        extracted, _ = ChunkProcessor(NUMBERED).process(_chunk("كتاب العلم\n٤ - حدثنا رابع"), state)

        self.assertEqual(extracted.units[0].heading, Heading("كتاب العلم", ""))

    def test_zero_boundaries(self):
        """Test that a chunk without markers leaves the state unchanged."""
        state = CarryState(last_unit_number=7, last_heading=Heading("كتاب العلم", ""), last_page=3)
        extracted, new_state = ChunkProcessor(NUMBERED).process(_chunk("مقدمة الكتاب بلا أرقام"), state)

        self.assertEqual(extracted.units, [])
        self.assertIs(new_state, state)
        self.assertEqual(extracted.last_heading, state.last_heading)

    def test_heading_only_chunk_moves_heading(self):
        """Test that a chunk with a kitab marker and no units still hands on the kitab."""
        state = CarryState(last_unit_number=3, last_heading=Heading("كتاب الإيمان", "باب الثاني"), last_page=5)
        processor = ChunkProcessor(NUMBERED)
        extracted, new_state = processor.process(_chunk("٤ - كتاب الصلاة\nمقدمة في أحكام الصلاة", start_page=6), state)

        self.assertEqual(extracted.units, [])
        self.assertEqual(new_state, CarryState(last_unit_number=3, last_heading=Heading("كتاب الصلاة", ""), last_page=5))

        extracted, _ = processor.process(_chunk("٥ - حدثنا خامس", start_page=7, chunk_id=2), new_state)
        self.assertEqual(extracted.units[0].heading, Heading("كتاب الصلاة", ""))

    def test_heading_after_last_unit_is_read_from_overlap(self):
        """Test that a bab after a chunk's last unit reaches the next chunk through the shared page."""
        processor = ChunkProcessor(NUMBERED)
        shared_page = "٢ - حدثنا آخر عن آخر\nباب الصلاة"
        state = CarryState(last_unit_number=0, last_heading=Heading("كتاب الإيمان", "باب الأول"), last_page=0)

        first, state = processor.process(_chunk("١ - حدثنا فلان عن فلان", shared_page, start_page=1), state)
        self.assertEqual(first.units[1].content_text, "حدثنا آخر عن آخر")
        self.assertEqual(state.last_heading, Heading("كتاب الإيمان", "باب الأول"))

        second, state = processor.process(
            _chunk(shared_page, "٣ - حدثنا ثالث عن ثالث", start_page=2, chunk_id=2),
            state,
        )
        self.assertEqual([u.unit_number for u in second.units], ["2", "3"])
        self.assertEqual(second.units[0].heading, Heading("كتاب الإيمان", "باب الأول"))
        self.assertEqual(second.units[1].heading, Heading("كتاب الإيمان", "باب الصلاة"))
        self.assertEqual(state.last_heading, Heading("كتاب الإيمان", "باب الصلاة"))

    def test_footnotes_and_page_range(self):
        """Test footnote separation and units spanning pages."""
        chunk = _chunk(
            "١ - حدثنا فلان عن",
            f"فلان قال كذا\n{'_' * 10}\n(١) حاشية\n٢ - حدثنا آخر",
            start_page=20,
        )
        extracted, _ = ChunkProcessor(NUMBERED).process(chunk, CarryState())
        first, second = extracted.units

        self.assertEqual(first.content_text, "حدثنا فلان عن\nفلان قال كذا")
        self.assertEqual(first.footnotes, "(١) حاشية")
        self.assertEqual((first.page_start, first.page_end), (20, 21))
        self.assertEqual((second.page_start, second.page_end), (21, 21))
        self.assertIsNone(second.footnotes)

    def test_duplicate_markers_in_chunk(self):
        """Test that a repeated marker on the same page is emitted once."""
        text = "١ - حدثنا فلان\n١ - حدثنا فلان مكرر"
        extracted, _ = ChunkProcessor(NUMBERED).process(_chunk(text), CarryState())

        self.assertEqual(len(extracted.units), 1)
        self.assertEqual(extracted.units[0].content_text, "حدثنا فلان")

    def test_initial_kitab(self):
        """Test the configured opening kitab."""
        extracted, _ = ChunkProcessor(get_config("bukhari")).process(
            _chunk("بَابُ كَيْفَ كَانَ بَدْءُ الوَحْيِ\n١ - حدثنا الحميدي"),
            CarryState(),
        )

        self.assertEqual(extracted.units[0].heading.kitab, "كتاب بدء الوحي")

    def test_implicit_kitab(self):
        """Test kitabs implied by a unit number."""
        config = CollectionConfig(slug="x", name="X", name_arabic="س", implicit_kitabs={2: "كتاب الصلاة"})
        extracted, _ = ChunkProcessor(config).process(_chunk("١ - حدثنا\n٢ - حدثنا آخر"), CarryState())

        self.assertEqual(extracted.units[0].heading.kitab, "")
        self.assertEqual(extracted.units[1].heading.kitab, "كتاب الصلاة")

    def test_determinism(self):
        """Test that identical input gives identical output."""
        chunk = _chunk("كتاب الإيمان\n١ - حدثنا فلان\n٢ - حدثنا آخر بمثله")
        first = ChunkProcessor(NUMBERED).process(chunk, CarryState())
        second = ChunkProcessor(NUMBERED).process(chunk, CarryState())

        self.assertEqual(first, second)
        self.assertEqual(first[0].to_dict(), second[0].to_dict())


class TestChunkProcessorOrdinal(unittest.TestCase):
    """Tests for ordinal-grammar chunks."""

    def test_vocalized_heading_continues_numbering(self):
        """Test the ordinal example with diacritics."""
        text = (
            "الحديثُ الثَّالِثُ\n"
            "عَنْ أَبِي هُرَيْرَةَ رَضِيَ اللهُ عَنْهُ «عَنْ رَسُولِ اللهِ صلى الله عليه وسلم قَالَ: "
            "مَنْ حُسْنِ إسْلَامِ الْمَرْءِ تَرْكُهُ مَا لَا يَعْنِيهِ»"
        )
        state = CarryState(last_unit_number=2, last_heading=Heading("الأربعون النووية", ""), last_page=5)
        extracted, new_state = ChunkProcessor(get_config("nawawi40")).process(_chunk(text, start_page=6), state)

        self.assertEqual(len(extracted.units), 1)
        unit = extracted.units[0]
        self.assertEqual(unit.sequential_number, 3)
        self.assertEqual(unit.unit_number, "3")
        self.assertEqual(unit.heading, Heading("الأربعون النووية", ""))
        self.assertTrue(strip_diacritics(unit.chain_text).startswith("عن رسول الله"))
        self.assertTrue(strip_diacritics(unit.content_text).startswith("من حسن إسلام"))
        self.assertEqual(new_state.last_unit_number, 3)

        plain, _ = ChunkProcessor(get_config("nawawi40")).process(
            _chunk(strip_diacritics(text), start_page=6), state
        )
        self.assertEqual([u.sequential_number for u in plain.units], [3])

    def test_overlap_pages_are_skipped(self):
        """Test that headings on already-covered pages are not emitted twice."""
        processor = ChunkProcessor(ORDINAL)
        pages = {
            1: "الحديث الأول\nنص أول",
            2: "الحديث الثاني\nنص ثان",
            3: "الحديث الثالث\nنص ثالث",
            4: "الحديث الرابع\nنص رابع",
            5: "الحديث الخامس\nنص خامس",
        }

        first, state = processor.process(_chunk(pages[1], pages[2], pages[3], start_page=1), CarryState())
        second, state = processor.process(
            _chunk(pages[2], pages[3], pages[4], pages[5], start_page=2, chunk_id=2), state
        )

        self.assertEqual([u.sequential_number for u in first.units], [1, 2, 3])
        self.assertEqual([u.sequential_number for u in second.units], [4, 5])
        self.assertEqual(second.units[0].content_text, "نص رابع")
        self.assertEqual(second.units[0].page_start, 4)
        self.assertEqual(state.last_page, 5)

    def test_takhrij_goes_to_footnotes(self):
        """Test qudsi-style takhrij and quoted content."""
        text = (
            "الحديث الأول\n"
            'عن أبي هريرة عن النبي قال: "قال الله تعالى: أنا عند ظن عبدي بي"\n'
            "ــ\n"
            "رواه البخاري"
        )
        extracted, _ = ChunkProcessor(get_config("qudsi40")).process(_chunk(text), CarryState())
        unit = extracted.units[0]

        self.assertEqual(unit.chain_text, "عن أبي هريرة عن النبي قال:")
        self.assertEqual(unit.content_text, "قال الله تعالى: أنا عند ظن عبدي بي")
        self.assertEqual(unit.footnotes, "رواه البخاري")


class TestChunkProcessorItems(unittest.TestCase):
    """Tests for item-grammar chunks."""

    def test_chapter_then_item(self):
        """Test that a chapter marker sets bab and emits nothing."""
        extracted, state = ChunkProcessor(get_config("hisn")).process(
            _chunk("٥ - باب في الذكر\n٦ - «دعاء الصباح»"),
            CarryState(),
        )

        self.assertEqual(len(extracted.units), 1)
        unit = extracted.units[0]
        self.assertEqual(unit.unit_number, "6")
        self.assertEqual(unit.content_text, "دعاء الصباح")
        self.assertEqual(unit.heading, Heading("حصن المسلم", "باب في الذكر"))
        self.assertEqual(state.last_heading.bab, "باب في الذكر")

    def test_multi_block_footnotes(self):
        """Test an item whose text continues after a footnote block."""
        text = f"١ - (١) «اللهم بك أصبحنا\n{'_' * 10}\n(١) رواه الترمذي\nوبك أمسينا»"
        extracted, _ = ChunkProcessor(get_config("hisn")).process(_chunk(text), CarryState())
        unit = extracted.units[0]

        self.assertEqual(unit.content_text, "اللهم بك أصبحنا\nوبك أمسينا")
        self.assertEqual(unit.footnotes, "(١) رواه الترمذي")

    def test_chapter_only_chunk_carries_bab(self):
        """Test that a chunk holding only a chapter marker passes its bab to the next chunk."""
        processor = ChunkProcessor(get_config("hisn"))
        state = CarryState(last_unit_number=4, last_heading=Heading("حصن المسلم", "باب قبله"), last_page=8)

        extracted, state = processor.process(_chunk("٥ - باب في الذكر\nشرح طويل للباب", start_page=9), state)
        self.assertEqual(extracted.units, [])
        self.assertEqual(extracted.last_heading, Heading("حصن المسلم", "باب في الذكر"))
        self.assertEqual(state.last_unit_number, 4)
        self.assertEqual(state.last_page, 8)

        extracted, _ = processor.process(_chunk("٦ - «دعاء الصباح»", start_page=10, chunk_id=2), state)
        self.assertEqual(extracted.units[0].heading, Heading("حصن المسلم", "باب في الذكر"))


class TestCarryStateManager(unittest.TestCase):
    """Tests for the CarryStateManager class."""

    def test_create_initial_state(self):
        """Test creating the initial state."""
        state = CarryStateManager().create_initial_state()

        self.assertEqual(state.last_unit_number, 0)
        self.assertTrue(state.last_heading.is_empty())
        self.assertEqual(state.last_page, 0)

    def test_update_state(self):
        """Test deriving the next state from the last unit."""
        manager = CarryStateManager()
        previous = manager.create_initial_state()
        units = [_unit(1, page=3), _unit(2, page=4)]
        state = manager.update_state(units, previous, Heading("كتاب", "باب"))

        self.assertEqual(state, CarryState(last_unit_number=2, last_heading=Heading("كتاب", "باب"), last_page=4))
        self.assertIs(manager.update_state([], state, state.last_heading), state)

    def test_update_state_without_units(self):
        """Test that a chunk without units only moves the heading."""
        manager = CarryStateManager()
        previous = CarryState(last_unit_number=7, last_heading=Heading("كتاب", "باب"), last_page=12)
        state = manager.update_state([], previous, Heading("كتاب", "باب آخر"))

        self.assertEqual(state, CarryState(last_unit_number=7, last_heading=Heading("كتاب", "باب آخر"), last_page=12))

    def test_state_serialization(self):
        """Test the camelCase form of the state."""
        state = CarryState(last_unit_number=9, last_heading=Heading("كتاب", ""), last_page=12)
        self.assertEqual(CarryState.from_dict(state.to_dict()), state)


class TestPostProcessing(unittest.TestCase):
    """Tests for deduplication, inheritance and merging."""

    def test_deduplicate_is_idempotent(self):
        """Test that dedup keeps first occurrences and is stable."""
        units = [_unit(1, content="أ"), _unit(1, content="ب"), _unit(1, page=2), _unit(2)]
        once = deduplicate_units(units)

        self.assertEqual([(u.unit_number, u.page_start) for u in once], [("1", 1), ("1", 2), ("2", 1)])
        self.assertEqual(once[0].content_text, "أ")
        self.assertEqual(deduplicate_units(once), once)

    def test_apply_inherited_heading(self):
        """Test propagation into leading units only."""
        units = [_unit(1), _unit(2, heading=Heading("", "باب جديد")), _unit(3)]
        result, last = apply_inherited_heading(units, Heading("كتاب قديم", "باب قديم"))

        self.assertEqual(result[0].heading, Heading("كتاب قديم", "باب قديم"))
        self.assertEqual(result[1].heading, Heading("كتاب قديم", "باب جديد"))
        self.assertEqual(result[2].heading, Heading("كتاب قديم", "باب جديد"))
        self.assertEqual(last, Heading("كتاب قديم", "باب جديد"))

    def test_apply_kitab_ranges(self):
        """Test that the latest-starting range wins."""
        ranges = [KitabRange(1, 100, "كتاب عام"), KitabRange(50, 60, "كتاب خاص")]
        units = apply_kitab_ranges([_unit(10), _unit(55), _unit(200)], ranges)

        self.assertEqual([u.heading.kitab for u in units], ["كتاب عام", "كتاب خاص", ""])

    def test_post_processor_with_ranges(self):
        """Test that ranges override inherited kitabs."""
        config = CollectionConfig(slug="x", name="X", name_arabic="س", kitab_ranges=[KitabRange(1, 10, "كتاب الطهارة")])
        units, last = PostProcessor(config).process([_unit(3), _unit(3)], Heading("كتاب آخر", ""), Heading())

        self.assertEqual(len(units), 1)
        self.assertEqual(units[0].heading.kitab, "كتاب الطهارة")
        self.assertEqual(last.kitab, "كتاب الطهارة")

    def test_merge_prefers_longer_text(self):
        """Test that the less truncated copy of an overlap unit wins."""
        short = ExtractedChunk(chunk_id=1, last_heading=Heading(), units=[_unit(1), _unit(2, content="مقطوع")])
        full = ExtractedChunk(chunk_id=2, last_heading=Heading(), units=[_unit(2, content="مقطوع ومكتمل"), _unit(3)])
        merged = merge_extracted_chunks([short, full])

        self.assertEqual([u.unit_number for u in merged], ["1", "2", "3"])
        self.assertEqual(merged[1].content_text, "مقطوع ومكتمل")

    def test_merge_tie_prefers_middle(self):
        """Test that equal copies are resolved by position in the chunk."""
        edge = ExtractedChunk(
            chunk_id=1,
            last_heading=Heading(),
            units=[_unit(1), _unit(2), _unit(3), _unit(4, footnotes="طرف")],
        )
        middle = ExtractedChunk(
            chunk_id=2,
            last_heading=Heading(),
            units=[_unit(4, footnotes="وسط")],
        )
        merged = merge_extracted_chunks([edge, middle])

        self.assertEqual(merged[-1].footnotes, "وسط")

    def test_merge_sorts_numerically(self):
        """Test ordering by number, then page."""
        chunk = ExtractedChunk(chunk_id=1, last_heading=Heading(), units=[_unit(10), _unit(9, page=5), _unit(9, page=2)])
        merged = merge_extracted_chunks([chunk])

        self.assertEqual([(u.unit_number, u.page_start) for u in merged], [("9", 2), ("9", 5), ("10", 1)])

    def test_unique_numbers(self):
        """Test letter suffixes for repeated numbers."""
        units = assign_unique_unit_numbers([_unit(8), _unit(8, page=2), _unit(8, page=3), _unit(9)])

        self.assertEqual([u.unit_number for u in units], ["8", "8a", "8b", "9"])
        self.assertEqual(number_to_letter_suffix(1), "a")
        self.assertEqual(number_to_letter_suffix(26), "z")
        self.assertEqual(number_to_letter_suffix(27), "aa")

    def test_chunk_stats(self):
        """Test aggregate quality counters."""
        units = [
            _unit(1, heading=Heading("كتاب", "")),
            _unit(2, content="", footnotes="(١) حاشية"),
        ]
        stats = ChunkStats.from_units(units) + ChunkStats.from_units(units[:1])

        self.assertEqual(stats.units, 3)
        self.assertEqual(stats.empty_kitab, 1)
        self.assertEqual(stats.empty_bab, 3)
        self.assertEqual(stats.empty_content, 1)
        self.assertEqual(stats.with_footnotes, 1)
        self.assertIn("3 units", stats.summary())
        self.assertIn("kitab: 1 empty", stats.summary())


class TestBatchProcessor(unittest.TestCase):
    """Tests for the BatchProcessor class."""

    def setUp(self):
        self.pages = [
            Page(page_number=i + 1, volume_number=1, printed_page_number=i + 1, content_plain="نص " * 30)
            for i in range(10)
        ]

    def test_create_chunks(self):
        """Test overlapping windows."""
        chunks = BatchProcessor(chunk_size=4, overlap=1).create_chunks(self.pages)

        self.assertEqual([c.chunk_id for c in chunks], [1, 2, 3])
        self.assertEqual([(c.pages_from, c.pages_to) for c in chunks], [(1, 4), (4, 7), (7, 10)])
        self.assertEqual(len(chunks[2].pages), 4)

    def test_front_matter_is_dropped(self):
        """Test removal of volume-0 and near-empty pages."""
        pages = [
            Page(page_number=1, volume_number=0, printed_page_number=None, content_plain="مقدمة " * 20),
            Page(page_number=2, volume_number=1, printed_page_number=None, content_plain="عنوان"),
        ] + self.pages[2:]
        chunks = BatchProcessor(chunk_size=50, overlap=2).create_chunks(pages)

        self.assertEqual(len(chunks), 1)
        self.assertEqual(chunks[0].pages_from, 3)

    def test_invalid_overlap(self):
        """Test that overlap must be smaller than the chunk size."""
        with pytest.raises(ValueError):
            BatchProcessor(chunk_size=2, overlap=2)


class TestFileChunkStore(unittest.TestCase):
    """Tests for the FileChunkStore class."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = ChunkStore.create("file", {"cache_dir": self.tmp.name})

    def tearDown(self):
        self.tmp.cleanup()

    def test_chunk_round_trip(self):
        """Test saving and loading input chunks."""
        chunk = _chunk("١ - حدثنا فلان", "٢ - حدثنا آخر", start_page=3)
        path = self.store.save_chunk(chunk)

        self.assertTrue(path.endswith("chunk-001.json"))
        self.assertEqual(self.store.list_chunk_ids(), [1])
        self.assertEqual(self.store.load_chunk(1), chunk)

    def test_extracted_round_trip(self):
        """Test saving and loading extracted output."""
        extracted = ExtractedChunk(chunk_id=2, last_heading=Heading("كتاب", ""), units=[_unit(5, footnotes="(١) ح")])
        self.store.save_extracted(extracted)

        self.assertEqual(self.store.list_extracted_ids(), [2])
        self.assertEqual(self.store.list_chunk_ids(), [])
        self.assertEqual(self.store.load_extracted(2), extracted)

        with open(os.path.join(self.tmp.name, "chunk-002.extracted.json"), encoding="utf-8") as f:
            raw = json.load(f)
        self.assertEqual(raw["units"][0]["unitNumber"], "5")
        self.assertIn("isCrossReferenceOnly", raw["units"][0])

    def test_malformed_chunk(self):
        """Test that unreadable or invalid chunks raise ChunkFormatError."""
        with open(os.path.join(self.tmp.name, "chunk-001.json"), "w", encoding="utf-8") as f:
            f.write("{not json")
        with open(os.path.join(self.tmp.name, "chunk-002.json"), "w", encoding="utf-8") as f:
            json.dump({"chunkId": 2, "pagesFrom": 1, "pagesTo": 1}, f)
        with open(os.path.join(self.tmp.name, "chunk-003.json"), "w", encoding="utf-8") as f:
            json.dump({"chunkId": "3", "pagesFrom": 1, "pagesTo": 1, "pages": []}, f)

        for chunk_id in (1, 2, 3):
            with pytest.raises(ChunkFormatError):
                self.store.load_chunk(chunk_id)

    def test_missing_files(self):
        """Test missing directories and chunks."""
        with pytest.raises(FileNotFoundError):
            FileChunkStore(os.path.join(self.tmp.name, "absent")).list_chunk_ids()
        with pytest.raises(FileNotFoundError):
            self.store.load_chunk(42)

    def test_unknown_store_type(self):
        """Test the store factory."""
        with pytest.raises(ValueError):
            ChunkStore.create("s3", {})

    def test_load_pages(self):
        """Test reading an exported page list."""
        path = os.path.join(self.tmp.name, "pages.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"pages": [_chunk("نص").pages[0].to_dict()]}, f, ensure_ascii=False)

        self.assertEqual(load_pages(path)[0].content_plain, "نص")


class TestOrchestrator(unittest.TestCase):
    """Tests for the collection-level fold."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = FileChunkStore(self.tmp.name)
        page1 = "كتاب الإيمان\n١ - حدثنا فلان عن فلان قال كذا وكذا"
        page2 = "٢ - حدثنا آخر عن آخر قال كذا"
        page3 = "٣ - حدثنا ثالث عن ثالث قال كذا"
        self.store.save_chunk(_chunk(page1, page2, start_page=1, chunk_id=1))
        self.store.save_chunk(_chunk(page2, page3, start_page=2, chunk_id=2))

    def tearDown(self):
        self.tmp.cleanup()

    def test_process_and_merge(self):
        """Test folding state over chunks and merging the overlap."""
        report = process_collection(NUMBERED, self.store)

        self.assertEqual(report.chunks_processed, 2)
        self.assertEqual(report.stats.units, 4)
        self.assertEqual(report.final_state.last_unit_number, 3)
        self.assertEqual(report.final_state.last_heading.kitab, "كتاب الإيمان")
        self.assertEqual(self.store.list_extracted_ids(), [1, 2])

        with open(os.path.join(self.tmp.name, "parse-report.json"), encoding="utf-8") as f:
            saved = json.load(f)
        self.assertEqual(saved, report.to_dict())
        self.assertEqual(saved["units"], 4)
        self.assertEqual(saved["finalState"]["lastUnitNumber"], 3)

        second = self.store.load_extracted(2)
        self.assertTrue(all(u.heading.kitab == "كتاب الإيمان" for u in second.units))

        output = os.path.join(self.tmp.name, "merged.json")
        units = merge_collection(NUMBERED, self.store, output)
        self.assertEqual([u.unit_number for u in units], ["1", "2", "3"])
        with open(output, encoding="utf-8") as f:
            self.assertEqual(len(json.load(f)["units"]), 3)

    def test_dry_run(self):
        """Test that a dry run writes nothing."""
        report = process_collection(NUMBERED, self.store, dry_run=True)

        self.assertEqual(report.stats.units, 4)
        self.assertEqual(self.store.list_extracted_ids(), [])
        self.assertFalse(os.path.exists(os.path.join(self.tmp.name, "parse-report.json")))

    def test_single_chunk(self):
        """Test processing one chunk by id."""
        report = process_collection(NUMBERED, self.store, chunk_id=2)
        self.assertEqual(report.chunks_processed, 1)

        with pytest.raises(FileNotFoundError):
            process_collection(NUMBERED, self.store, chunk_id=9)

    def test_malformed_chunk_is_fatal(self):
        """Test that a bad chunk stops the run."""
        with open(os.path.join(self.tmp.name, "chunk-003.json"), "w", encoding="utf-8") as f:
            f.write("[]")

        with pytest.raises(ChunkFormatError):
            process_collection(NUMBERED, self.store)

    def test_export(self):
        """Test cutting pages into chunk files."""
        store = FileChunkStore(os.path.join(self.tmp.name, "export"))
        pages = [
            Page(page_number=i + 1, volume_number=1, printed_page_number=None, content_plain="نص " * 30)
            for i in range(5)
        ]
        paths = export_collection_pages(pages, store, BatchProcessor(chunk_size=3, overlap=1))

        self.assertEqual(len(paths), 2)
        self.assertEqual(store.list_chunk_ids(), [1, 2])
        self.assertEqual(store.load_chunk(2).pages_from, 3)


if __name__ == "__main__":
    unittest.main()
