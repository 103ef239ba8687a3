"""
Unit tests for agents/itinerary_parser.py

Tests cover:
- The pure state-machine step (day markers, clamping, summary, tips overlay)
- Leading time extraction
- parse() on concrete and adversarial text
- parse_day() for JSON and free-text single-day responses
"""
import pytest

from agents import itinerary_parser as ip
from agents.itinerary_parser import ParseMode, ParserState
from itinerary_models import ActivityCategory


LISBON_TEXT = (
    "Day 1\n"
    "9:00 AM Visit the old town\n"
    "Dinner at a seaside restaurant\n"
    "Tips: bring sunscreen"
)


# ---------------------------------------------------------------------------
# step
# ---------------------------------------------------------------------------

class TestStep:
    def test_initial_state(self):
        state = ParserState()
        assert state.mode is ParseMode.COLLECTING_SUMMARY
        assert state.current_day == 0
        assert state.collecting_tips is False

    def test_day_marker_sets_day_and_yields_nothing(self):
        state, candidate = ip.step(ParserState(), "Day 3: Museum visits", 5)
        assert state.current_day == 2
        assert state.mode is ParseMode.IN_DAY
        assert candidate is None

    def test_lowercase_day_marker(self):
        state, _ = ip.step(ParserState(), "day 2 - beaches", 3)
        assert state.current_day == 1

    def test_day_beyond_trip_is_clamped_to_last_day(self):
        state, candidate = ip.step(ParserState(), "Day 9", 5)
        assert state.current_day == 4
        assert candidate is None

    def test_day_zero_is_clamped_to_first_day(self):
        state, _ = ip.step(ParserState(current_day=3, mode=ParseMode.IN_DAY), "Day 0", 5)
        assert state.current_day == 0

    def test_marker_ends_summary_permanently(self):
        state, _ = ip.step(ParserState(), "Day 1", 2)
        state, _ = ip.step(state, "Lovely city overview line", 2)
        assert state.summary == ""

    def test_summary_lines_are_space_joined(self):
        state, _ = ip.step(ParserState(), "A sunny trip.", 2)
        state, _ = ip.step(state, "", 2)
        state, _ = ip.step(state, "Lots of food.", 2)
        assert state.summary == "A sunny trip. Lots of food."

    def test_summary_lines_are_still_activity_candidates(self):
        _, candidate = ip.step(ParserState(), "Wander through the harbour area", 2)
        assert candidate == "Wander through the harbour area"

    def test_tip_line_turns_on_tip_collection(self):
        state, candidate = ip.step(ParserState(mode=ParseMode.IN_DAY), "Tip: carry cash", 2)
        assert state.collecting_tips is True
        assert state.tips == "Tip: carry cash"
        assert candidate is None

    def test_only_the_opening_tip_line_is_withheld(self):
        state = ParserState(mode=ParseMode.IN_DAY, collecting_tips=True, tips="Tips:")
        state, candidate = ip.step(state, "Second tip: tram 28 fills up early", 2)
        assert candidate == "Second tip: tram 28 fills up early"

    def test_substring_tip_opens_tip_collection(self):
        # "multiple" contains "tip"
        state, candidate = ip.step(ParserState(mode=ParseMode.IN_DAY), "10:00 Visit multiple galleries", 2)
        assert state.collecting_tips is True
        assert candidate is None

    def test_lines_after_tips_are_collected_and_still_candidates(self):
        state = ParserState(mode=ParseMode.IN_DAY, collecting_tips=True, tips="Tips:")
        state, candidate = ip.step(state, "Book the tram ahead of time", 2)
        assert state.tips == "Tips: Book the tram ahead of time"
        assert candidate == "Book the tram ahead of time"

    def test_overall_lines_are_not_added_to_tips(self):
        state = ParserState(mode=ParseMode.IN_DAY, collecting_tips=True)
        state, candidate = ip.step(state, "Overall a great trip", 2)
        assert state.tips == ""
        assert candidate is None

    @pytest.mark.parametrize("header", [
        "Morning activities", "Dining options", "Recommended spots", "Overall budget",
    ])
    def test_section_headers_are_skipped(self, header):
        _, candidate = ip.step(ParserState(mode=ParseMode.IN_DAY), header, 2)
        assert candidate is None

    def test_zero_day_trip_yields_no_candidates(self):
        _, candidate = ip.step(ParserState(), "Visit the cathedral square", 0)
        assert candidate is None

    def test_state_is_not_mutated(self):
        original = ParserState()
        ip.step(original, "Summary line here", 2)
        assert original.summary == ""


# ---------------------------------------------------------------------------
# time extraction
# ---------------------------------------------------------------------------

class TestParseTime:
    @pytest.mark.parametrize("text, expected", [
        ("9:00 AM Visit", "09:00"),
        ("9 am breakfast", "09:00"),
        ("2:30 PM Lunch", "14:30"),
        ("12pm noon cannon", "12:00"),
        ("12:15 am night tram", "00:15"),
        ("14:00 Museum", "14:00"),
        ("7 Sunrise hike", "07:00"),
    ])
    def test_leading_times(self, text, expected):
        assert ip._parse_time(text) == expected

    @pytest.mark.parametrize("text", [
        "Visit at 9:00",
        "2024 was a great year",
        "45:00 somewhere",
        "13 pm odd",
        "10th century church",
    ])
    def test_no_leading_time(self, text):
        assert ip._parse_time(text) is None


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

class TestParse:
    def test_lisbon_scenario(self):
        result = ip.parse(LISBON_TEXT, 1, "Lisbon")

        assert len(result.day_activities) == 1
        first, second = result.day_activities[0]

        assert first.category == ActivityCategory.ATTRACTION
        assert first.estimated_cost == 0
        assert first.time == "09:00"

        assert second.category == ActivityCategory.DINING
        assert second.estimated_cost == 60
        assert second.time == "09:00"

        assert result.tips == "Tips: bring sunscreen"

    def test_activity_fields(self):
        result = ip.parse(LISBON_TEXT, 1, "Lisbon")
        activity = result.day_activities[0][1]
        assert activity.id == "activity-0-1"
        assert activity.name == "Dinner at a seaside restaurant"
        assert activity.description == "Dinner at a seaside restaurant"
        assert activity.duration == 120
        assert activity.location.name == "Lisbon"
        assert activity.location.latitude == 0 and activity.location.longitude == 0
        assert activity.notes == ""

    def test_sample_plan_spreads_days(self, sample_plan):
        result = ip.parse(sample_plan, 3, "Lisbon")
        assert [len(day) for day in result.day_activities] == [3, 2, 3]
        assert result.summary == "A relaxed three days in Lisbon mixing history, food and views."
        assert result.tips.startswith("Tips: buy a Viva Viagem card")

    def test_sample_plan_categories(self, sample_plan):
        result = ip.parse(sample_plan, 3, "Lisbon")
        day1, day2, day3 = result.day_activities
        assert day1[1].category == ActivityCategory.DINING
        assert day1[1].time == "12:30"
        assert day2[0].estimated_cost == 25
        assert day3[0].category == ActivityCategory.TRANSPORT
        assert day3[1].category == ActivityCategory.ACTIVITY

    def test_ids_are_unique_within_each_day(self, sample_plan):
        result = ip.parse(sample_plan, 3, "Lisbon")
        for index, day in enumerate(result.day_activities):
            ids = [a.id for a in day]
            assert len(ids) == len(set(ids))
            assert all(i.startswith(f"activity-{index}-") for i in ids)

    def test_bullet_is_stripped_from_name_and_description(self):
        result = ip.parse("Day 1\n- Sunset at the castle walls", 1, "Lisbon")
        activity = result.day_activities[0][0]
        assert activity.name == "Sunset at the castle walls"
        assert activity.description == "Sunset at the castle walls"

    def test_name_is_truncated_at_first_hyphen(self):
        result = ip.parse("Day 1\nSelf-Guided Tour of Belem", 1, "Lisbon")
        activity = result.day_activities[0][0]
        assert activity.name == "Self"
        assert activity.description == "Self-Guided Tour of Belem"

    def test_untimed_dot_bullet_is_rejected(self):
        result = ip.parse("Day 1\n• Sunset at the castle walls", 1, "Lisbon")
        assert result.day_activities == [[]]

    def test_timed_dot_bullet_is_accepted(self):
        result = ip.parse("Day 1\n• 6 pm Sunset at the castle", 1, "Lisbon")
        assert result.day_activities[0][0].time == "18:00"

    def test_short_untimed_lines_are_rejected(self):
        result = ip.parse("Day 1\nRelax\nShopping", 1, "Lisbon")
        assert result.day_activities == [[]]

    def test_day_beyond_trip_lands_on_last_day(self):
        text = "Day 9\n9:00 Visit the aquarium"
        result = ip.parse(text, 5, "Lisbon")
        assert len(result.day_activities) == 5
        assert len(result.day_activities[4]) == 1

    def test_day_marker_line_is_not_an_activity(self):
        result = ip.parse("Day 3: Museum visits", 3, "Lisbon")
        assert result.day_activities == [[], [], []]

    @pytest.mark.parametrize("text", ["", "   \n\n  ", None, "Day\nDay x\n:::", "🙂" * 100])
    def test_never_raises_and_keeps_day_count(self, text):
        result = ip.parse(text, 4, "Lisbon")
        assert len(result.day_activities) == 4

    def test_zero_days_returns_empty_list(self):
        assert ip.parse(LISBON_TEXT, 0, "Lisbon").day_activities == []

    def test_reparsing_summary_keeps_day_count(self, sample_plan):
        first = ip.parse(sample_plan, 3, "Lisbon")
        again = ip.parse(first.summary, 3, "Lisbon")
        assert len(again.day_activities) == 3

    def test_windows_line_endings(self):
        result = ip.parse(LISBON_TEXT.replace("\n", "\r\n"), 1, "Lisbon")
        assert len(result.day_activities[0]) == 2

    def test_sparsest_day(self, sample_plan):
        assert ip.parse(sample_plan, 3, "Lisbon").sparsest_day() == 2
        assert ip.parse("Day 1\n9:00 Tram 28 ride", 2, "Lisbon").sparsest_day() == 0


# ---------------------------------------------------------------------------
# parse_day
# ---------------------------------------------------------------------------

class TestParseDay:
    def test_json_object(self):
        raw = '{"morning": "Walk through Alfama", "afternoon": "Lunch at Time Out Market", ' \
              '"evening": "Fado dinner in Bairro Alto", "notes": "Book fado ahead"}'
        result = ip.parse_day(raw, 2, "Lisbon")

        assert [a.time for a in result.activities] == ["09:00", "12:00", "17:00"]
        assert [a.id for a in result.activities] == ["activity-1-0", "activity-1-1", "activity-1-2"]
        assert result.activities[1].category == ActivityCategory.DINING
        assert result.activities[2].estimated_cost == 60
        assert result.notes == "Book fado ahead"

    def test_fenced_json(self):
        raw = '```json\n{"morning": "Visit the castle", "notes": ""}\n```'
        result = ip.parse_day(raw, 1, "Lisbon")
        assert len(result.activities) == 1
        assert result.activities[0].notes == "Morning"

    def test_json_with_surrounding_prose(self):
        raw = 'Here is your plan:\n{"evening": "Dinner at a rooftop restaurant"}\nEnjoy!'
        result = ip.parse_day(raw, 1, "Lisbon")
        assert [a.name for a in result.activities] == ["Dinner at a rooftop restaurant"]

    def test_missing_slots_are_skipped(self):
        result = ip.parse_day('{"morning": "", "afternoon": null, "evening": 3}', 1, "Lisbon")
        assert result.activities == []

    def test_free_text_uses_line_parser(self):
        raw = "9:00 AM Visit the old town\nDinner at a seaside restaurant"
        result = ip.parse_day(raw, 4, "Lisbon")
        assert [a.id for a in result.activities] == ["activity-3-0", "activity-3-1"]

    def test_garbage_yields_no_activities(self):
        assert ip.parse_day("{not json", 1, "Lisbon").activities == []

    def test_deeply_nested_json_does_not_raise(self):
        raw = '{"morning": ' + "[" * 100000 + "]" * 100000 + "}"
        result = ip.parse_day(raw, 1, "Lisbon")
        # Undecodable, so the whole text is one untimed line
        assert len(result.activities) == 1
        assert result.activities[0].time == "09:00"

    def test_deeply_nested_lines_yield_no_activities(self):
        assert ip.parse_day("[\n" * 100000, 1, "Lisbon").activities == []

    def test_json_array_falls_back_to_line_parser(self):
        result = ip.parse_day('["Visit the castle"]', 1, "Lisbon")
        assert len(result.activities) == 1
        assert result.activities[0].notes == ""
