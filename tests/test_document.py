"""
Tests for the PDF document assembler.

Covers:
- Cursor movement
- Empty sections (placeholder, table primitive never called)
- Table primitive failure and the fallback renderer
- Logo loading and the placeholder logo
- Pagination and footers
- Repeat exports of the same payload
"""

import time
from datetime import date, datetime

import pytest

from medconnect.errors import RenderError
from medconnect.report_engine.document import (
    EMPTY_SECTION_TEXT,
    DocumentAssembler,
    DocumentCursor,
    platypus_table,
)
from medconnect.report_engine.payloads import (
    CommunityEngagementPayload,
    DoctorAvailabilityPayload,
    parse_payload,
)
from medconnect.report_engine.query import ReportKind, ReportQuery


class RecordingPrimitive:
    """Table primitive that counts calls and delegates to platypus_table."""

    def __init__(self):
        self.calls = []

    def __call__(self, headers, rows, col_widths, palette):
        self.calls.append((list(headers), [list(r) for r in rows]))
        return platypus_table(headers, rows, col_widths, palette)


def failing_primitive(headers, rows, col_widths, palette):
    raise RenderError("layout engine unavailable")


def _doctors(count):
    return [
        {"name": f"Dr. Number {i}", "specialization": "General Practice",
         "available_slots": i % 5, "availability_slots": 5}
        for i in range(count)
    ]


# =============================================================================
# Cursor
# =============================================================================

class TestDocumentCursor:
    """Tests for DocumentCursor."""

    def test_advance(self):
        cursor = DocumentCursor(vertical_offset=10)
        cursor.advance(5)
        assert cursor.vertical_offset == 15

    def test_cursor_never_moves_up(self):
        cursor = DocumentCursor(vertical_offset=10)
        with pytest.raises(ValueError):
            cursor.advance(-1)

    def test_new_page_resets_offset(self):
        cursor = DocumentCursor(page_index=0, vertical_offset=700)
        cursor.new_page(top=50)
        assert cursor.page_index == 1
        assert cursor.vertical_offset == 50


# =============================================================================
# Assembly
# =============================================================================

class TestAssemble:
    """Tests for DocumentAssembler.assemble()."""

    def test_produces_pdf(self, assembler, community_json):
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        doc = assembler.assemble(parse_payload(query.kind, community_json), query)

        assert doc.content.startswith(b"%PDF")
        assert doc.page_count >= 1
        assert doc.report_name == "COMMUNITY MANAGEMENT SYSTEM"
        assert doc.section_titles == [
            "Forum Activity",
            "Most Engaged Community Members",
            "Success Stories Statistics",
            "Popular Discussion Topics",
        ]

    def test_stat_card_text(self, assembler, community_json):
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        doc = assembler.assemble(parse_payload(query.kind, community_json), query)
        texts = doc.comparable_text()

        index = texts.index("12")
        assert texts[index + 1] == "Total Topics"

    def test_empty_rows_render_placeholder_without_primitive(self, fixed_clock):
        primitive = RecordingPrimitive()
        assembler = DocumentAssembler(table_primitive=primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        payload = CommunityEngagementPayload(most_engaged_users=[], popular_topics=[])

        doc = assembler.assemble(payload, query)

        assert primitive.calls == []
        assert doc.comparable_text().count(EMPTY_SECTION_TEXT) == 2
        assert doc.section_titles == ["Most Engaged Community Members", "Popular Discussion Topics"]

    def test_no_payload_renders_placeholder(self, assembler):
        query = ReportQuery(kind=ReportKind.USER_OVERVIEW)
        doc = assembler.assemble(None, query)
        assert EMPTY_SECTION_TEXT in doc.comparable_text()
        assert doc.section_titles == []

    def test_none_cells_are_blank(self, fixed_clock, user_overview_json):
        primitive = RecordingPrimitive()
        assembler = DocumentAssembler(table_primitive=primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.USER_OVERVIEW)

        doc = assembler.assemble(parse_payload(query.kind, user_overview_json), query)

        cells = [cell for _, rows in primitive.calls for row in rows for cell in row]
        assert "" in cells
        assert "None" not in cells
        assert "null" not in cells
        assert "None" not in doc.comparable_text()

    def test_primitive_receives_clean_text(self, fixed_clock, community_json):
        primitive = RecordingPrimitive()
        assembler = DocumentAssembler(table_primitive=primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)

        assembler.assemble(parse_payload(query.kind, community_json), query)

        topics = primitive.calls[-1][1]
        assert topics[0] == ["Managing diabetes", "30", "01/20/2024"]

    def test_configuration_box_lists_filters(self, assembler):
        query = ReportQuery(
            kind=ReportKind.DOCTOR_AVAILABILITY,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            search="cardio",
        )
        doc = assembler.assemble(DoctorAvailabilityPayload(doctor_availability=_doctors(2)), query)
        texts = doc.comparable_text()

        assert "Generated by: Admin User" in texts
        assert "Date Range: 2024-01-01 to 2024-01-31" in texts
        assert 'Search Filter: "cardio"' in texts


class TestFallbackRenderer:
    """Tests for the manual table renderer used when the primitive fails."""

    def test_fallback_truncates_long_cells(self, fixed_clock):
        assembler = DocumentAssembler(table_primitive=failing_primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        long_name = "N" * 60
        payload = CommunityEngagementPayload(most_engaged_users=[
            {"name": long_name, "role": "patient", "post_count": 3, "topics_participated": 1},
        ])

        doc = assembler.assemble(payload, query)
        texts = doc.comparable_text()

        assert doc.fallback_sections == ["Most Engaged Community Members"]
        assert "N" * 47 + "..." in texts
        assert long_name not in texts

    def test_fallback_truncates_long_headers(self, fixed_clock):
        assembler = DocumentAssembler(table_primitive=failing_primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        payload = CommunityEngagementPayload(most_engaged_users=[
            {"name": "Eric", "role": "patient", "post_count": 3, "topics_participated": 1},
        ])

        texts = assembler.assemble(payload, query).comparable_text()

        assert "Topics Particip..." in texts
        assert "User Name" in texts

    def test_fallback_keeps_short_cells(self, fixed_clock):
        assembler = DocumentAssembler(table_primitive=failing_primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        payload = CommunityEngagementPayload(most_engaged_users=[
            {"name": None, "role": "doctor", "post_count": 3, "topics_participated": 1},
        ])

        texts = assembler.assemble(payload, query).comparable_text()

        assert "doctor" in texts
        assert "None" not in texts

    def test_fallback_paginates(self, fixed_clock):
        assembler = DocumentAssembler(table_primitive=failing_primitive, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.DOCTOR_AVAILABILITY)

        doc = assembler.assemble(DoctorAvailabilityPayload(doctor_availability=_doctors(80)), query)

        assert doc.page_count > 1
        assert "Dr. Number 79" in doc.comparable_text()


class TestPagination:
    """Tests for page breaks and footers."""

    def test_long_table_spans_pages(self, assembler):
        query = ReportQuery(kind=ReportKind.DOCTOR_AVAILABILITY)
        doc = assembler.assemble(DoctorAvailabilityPayload(doctor_availability=_doctors(120)), query)

        assert doc.page_count > 1
        assert doc.fallback_sections == []

    def test_every_page_has_numbered_footer(self, assembler):
        query = ReportQuery(kind=ReportKind.DOCTOR_AVAILABILITY)
        doc = assembler.assemble(DoctorAvailabilityPayload(doctor_availability=_doctors(120)), query)

        footers = [r.text for r in doc.text_runs if r.text.startswith("Page ")]
        total = doc.page_count
        assert footers == [f"Page {i} of {total}" for i in range(1, total + 1)]

    @pytest.mark.parametrize("members", range(20, 46))
    def test_description_stays_with_its_table(self, assembler, members):
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        payload = CommunityEngagementPayload(most_engaged_users=[
            {"name": f"Member {i}", "role": "patient", "post_count": i, "topics_participated": 1}
            for i in range(members)
        ])

        doc = assembler.assemble(payload, query)

        last_cell = next(r for r in doc.text_runs if r.kind == "cell" and r.text == f"Member {members - 1}")
        description = next(r for r in doc.text_runs if r.text.startswith("Top community contributors"))
        assert description.page == last_cell.page


class TestLogo:
    """Tests for header logo loading."""

    def test_missing_logo_draws_placeholder(self, assembler):
        query = ReportQuery(kind=ReportKind.USER_OVERVIEW)
        doc = assembler.assemble(None, query)
        assert doc.logo == "placeholder"
        assert "LOGO" in doc.comparable_text()

    def test_slow_logo_draws_placeholder(self, fixed_clock):
        def slow_logo():
            time.sleep(1.0)
            return b""

        assembler = DocumentAssembler(logo_source=slow_logo, logo_timeout=0.05, clock=fixed_clock)
        query = ReportQuery(kind=ReportKind.USER_OVERVIEW)

        started = time.monotonic()
        doc = assembler.assemble(None, query)

        assert time.monotonic() - started < 1.0
        assert doc.logo == "placeholder"
        assert doc.content.startswith(b"%PDF")

    def test_undecodable_logo_draws_placeholder(self, fixed_clock):
        assembler = DocumentAssembler(logo_source=b"not an image", clock=fixed_clock)
        doc = assembler.assemble(None, ReportQuery(kind=ReportKind.USER_OVERVIEW))
        assert doc.logo == "placeholder"

    def test_valid_logo_is_drawn(self, fixed_clock, png_bytes):
        assembler = DocumentAssembler(logo_source=png_bytes, clock=fixed_clock)
        doc = assembler.assemble(None, ReportQuery(kind=ReportKind.USER_OVERVIEW))
        assert doc.logo == "image"
        assert "LOGO" not in doc.comparable_text()


class TestRepeatExport:
    """Exporting the same payload twice gives the same document text."""

    def test_same_sections_and_text(self, user_overview_json):
        query = ReportQuery(kind=ReportKind.USER_OVERVIEW, search="doctor")
        payload = parse_payload(query.kind, user_overview_json)

        first = DocumentAssembler(clock=lambda: datetime(2024, 1, 31, 9, 0, 0)).assemble(payload, query)
        second = DocumentAssembler(clock=lambda: datetime(2024, 2, 1, 17, 45, 12)).assemble(payload, query)

        assert first.section_titles == second.section_titles
        assert first.comparable_text() == second.comparable_text()
        assert first.page_count == second.page_count

    def test_assembler_is_reusable(self, assembler, community_json):
        query = ReportQuery(kind=ReportKind.COMMUNITY_ENGAGEMENT)
        payload = parse_payload(query.kind, community_json)

        first = assembler.assemble(payload, query)
        second = assembler.assemble(payload, query)

        assert first.text_runs == second.text_runs
