"""
Tests for payload parsing and section builders.
"""

from medconnect.report_engine.payloads import (
    PAYLOAD_TYPES,
    CommunityEngagementPayload,
    DoctorAvailabilityPayload,
    UserOverviewPayload,
    parse_payload,
)
from medconnect.report_engine.query import ReportKind
from medconnect.report_engine.sections import (
    SECTION_BUILDERS,
    StatsBlock,
    TableBlock,
    block_to_dict,
    build_sections,
    clean_cell,
    format_date,
    truncate_text,
)


# =============================================================================
# Payload parsing
# =============================================================================

class TestParsePayload:
    """Tests for parse_payload()."""

    def test_every_kind_has_a_payload_type(self):
        assert set(PAYLOAD_TYPES) == set(ReportKind)

    def test_camel_case_keys_map_to_sections(self, user_overview_json):
        payload = parse_payload(ReportKind.USER_OVERVIEW, user_overview_json)
        assert isinstance(payload, UserOverviewPayload)
        assert len(payload.users_by_role) == 2
        assert payload.recent_users[0]["name"] == "Alice Uwase"

    def test_missing_keys_become_none(self):
        payload = parse_payload(ReportKind.DOCTOR_AVAILABILITY, {"doctorAvailability": []})
        assert payload.doctor_availability == []
        assert payload.availability_by_day is None

    def test_wrong_types_are_tolerated(self):
        payload = parse_payload(ReportKind.COMMUNITY_ENGAGEMENT, {
            "forumActivity": [1, 2],
            "mostEngagedUsers": "nope",
            "popularTopics": [{"title": "ok"}, "junk", None],
        })
        assert payload.forum_activity is None
        assert payload.most_engaged_users is None
        assert payload.popular_topics == [{"title": "ok"}]

    def test_non_object_payload_is_empty(self):
        payload = parse_payload(ReportKind.APPOINTMENTS_ANALYTICS, ["unexpected"])
        assert payload.is_empty()

    def test_string_kind_is_accepted(self):
        payload = parse_payload("community-engagement", {})
        assert isinstance(payload, CommunityEngagementPayload)


# =============================================================================
# Cell helpers
# =============================================================================

class TestCellHelpers:
    """Tests for clean_cell, truncate_text and format_date."""

    def test_none_is_empty_string(self):
        assert clean_cell(None) == ""

    def test_markup_is_stripped(self):
        assert clean_cell("<b>Bold</b> text<br/>") == "Bold text"

    def test_numbers_are_stringified(self):
        assert clean_cell(0) == "0"

    def test_truncate_long_text(self):
        text = "x" * 60
        assert truncate_text(text, 47) == "x" * 47 + "..."

    def test_truncate_keeps_text_at_limit(self):
        text = "y" * 47
        assert truncate_text(text, 47) == text

    def test_truncate_with_keep(self):
        assert truncate_text("Topics Participated", 18, 15) == "Topics Particip..."

    def test_format_date(self):
        assert format_date("2024-01-15T10:00:00") == "01/15/2024"

    def test_format_date_passthrough(self):
        assert format_date("last tuesday") == "last tuesday"
        assert format_date(None) == ""


# =============================================================================
# Builders
# =============================================================================

class TestBuildSections:
    """Tests for the per-kind section builders."""

    def test_registry_is_exhaustive(self):
        assert set(SECTION_BUILDERS) == set(ReportKind)

    def test_community_total_topics_card(self, community_json):
        payload = parse_payload(ReportKind.COMMUNITY_ENGAGEMENT, community_json)
        blocks = build_sections(payload)

        stats = blocks[0]
        assert isinstance(stats, StatsBlock)
        card = stats.cards[0]
        assert card.label == "Total Topics"
        assert card.display_value == "12"

    def test_community_section_order(self, community_json):
        payload = parse_payload(ReportKind.COMMUNITY_ENGAGEMENT, community_json)
        titles = [b.title for b in build_sections(payload)]
        assert titles == [
            "Forum Activity",
            "Most Engaged Community Members",
            "Success Stories Statistics",
            "Popular Discussion Topics",
        ]

    def test_success_story_nulls_become_zero(self, community_json):
        payload = parse_payload(ReportKind.COMMUNITY_ENGAGEMENT, community_json)
        stories = [b for b in build_sections(payload) if b.title == "Success Stories Statistics"][0]
        assert stories.clean_rows()[3] == ["Anonymous Stories", "0", "Anonymous"]

    def test_user_overview_totals_and_shares(self, user_overview_json):
        payload = parse_payload(ReportKind.USER_OVERVIEW, user_overview_json)
        blocks = build_sections(payload)

        summary = blocks[0]
        assert [(c.label, c.display_value) for c in summary.cards] == [
            ("Total Users", "10"),
            ("Doctors", "3"),
            ("Patients", "7"),
        ]
        roles = blocks[1]
        assert roles.clean_rows()[0] == ["doctor", "3", "30.0%", "Active"]

    def test_user_overview_none_cells(self, user_overview_json):
        payload = parse_payload(ReportKind.USER_OVERVIEW, user_overview_json)
        recent = [b for b in build_sections(payload) if b.title == "Recent User Registrations"][0]
        ghost = recent.clean_rows()[1]
        assert ghost[0] == ""
        assert ghost[3] == ""
        assert "None" not in ghost

    def test_doctor_completeness_status(self, user_overview_json):
        payload = parse_payload(ReportKind.USER_OVERVIEW, user_overview_json)
        profiles = build_sections(payload)[-1]
        rows = profiles.clean_rows()
        assert rows[0] == ["Dr. Jean Habimana", "Cardiology", "100%", "4/4", "Complete"]
        assert rows[1] == ["Dr. Grace Mukamana", "Not specified", "25%", "1/4", "Incomplete"]

    def test_recent_users_limited_to_fifteen(self):
        users = [{"name": f"User {i}", "email": "", "role": "patient"} for i in range(40)]
        payload = UserOverviewPayload(recent_users=users)
        blocks = build_sections(payload)
        assert len(blocks[0].rows) == 15

    def test_missing_section_is_skipped(self):
        assert build_sections(UserOverviewPayload()) == []

    def test_empty_list_keeps_section(self):
        blocks = build_sections(DoctorAvailabilityPayload(availability_by_day=[]))
        assert len(blocks) == 1
        assert isinstance(blocks[0], TableBlock)
        assert blocks[0].rows == []

    def test_availability_rate_with_zero_slots(self):
        payload = DoctorAvailabilityPayload(doctor_availability=[
            {"name": "Dr. A", "specialization": "GP", "available_slots": 0, "availability_slots": 0},
            {"name": "Dr. B", "specialization": "GP", "available_slots": 3, "availability_slots": 4},
        ])
        table = build_sections(payload)[1]
        assert [row[-1] for row in table.clean_rows()] == ["0%", "75%"]

    def test_specialization_share_with_zero_total(self):
        payload = parse_payload(ReportKind.APPOINTMENTS_ANALYTICS, {
            "specializationStats": [{"specialization": "Cardiology", "appointment_count": 0}],
        })
        table = build_sections(payload)[0]
        assert table.clean_rows()[0] == ["Cardiology", "0", "0.0%"]

    def test_block_to_dict(self, community_json):
        payload = parse_payload(ReportKind.COMMUNITY_ENGAGEMENT, community_json)
        blocks = [block_to_dict(b) for b in build_sections(payload)]
        assert blocks[0] == {
            "type": "stats",
            "title": "Forum Activity",
            "cards": [
                {"label": "Total Topics", "value": "12"},
                {"label": "Total Posts", "value": "340"},
                {"label": "Active Users", "value": "25"},
            ],
        }
        assert blocks[-1]["rows"][0][0] == "Managing diabetes"
