"""Tests for assembling Blocks from canonical text and candidates."""
import copy
import json

import pytest

from class_plan_normalizer.errors import CandidateFormatError, PlanParseError
from class_plan_normalizer.models import NormalizedType
from class_plan_normalizer.parsers.canonicalizer import canonicalize
from class_plan_normalizer.parsers.text_cleaner import clean_text
from class_plan_normalizer.parsers.type_mapper import WORKOUT_KEYWORDS
from class_plan_normalizer.services.block_assembler import (
    GENERIC_CUES,
    assemble_from_candidate,
    assemble_from_canonical,
    default_cues,
)

from conftest import SCENARIO_ONE_TEXT


def assert_sum_invariant(blocks):
    for block in blocks:
        assert block.duration_sec == sum(e.duration_sec for e in block.timeline)


class TestAssembleFromCanonical:
    """Strict canonical parsing."""

    def test_scenario_one_blocks(self):
        blocks = assemble_from_canonical(canonicalize(clean_text(SCENARIO_ONE_TEXT)))
        assert [b.normalized_type for b in blocks] == ["WARMUP", "COOLDOWN"]
        assert [b.id for b in blocks] == ["block-1", "block-2"]
        assert [b.duration_sec for b in blocks] == [30, 30]
        assert blocks[0].duration == "0:30"
        assert blocks[0].cues == ["Move smoothly", "Prepare your body", "Focus on mobility"]
        assert blocks[0].intensity_target_rpe == 5
        assert_sum_invariant(blocks)

    def test_untimed_entries_share_the_block_hint(self):
        text = (
            "BLOCK 1\nNAME: Mobility\nTYPE: WARMUP\nDURATION: 2:00\nTIMELINE:\n"
            "- 30s | Jumping Jacks\n- Arm circles\n- Hip openers"
        )
        block = assemble_from_canonical(text)[0]
        assert [e.duration_sec for e in block.timeline] == [30, 45, 45]
        assert block.duration_sec == 120

    def test_untimed_entries_default_when_hint_is_used_up(self):
        text = "BLOCK 1\nNAME: Quick\nTYPE: INTERVAL\nDURATION: 0:30\nTIMELINE:\n- 30s | Squats\n- Lunges"
        block = assemble_from_canonical(text)[0]
        assert [e.duration_sec for e in block.timeline] == [30, 30]

    def test_empty_block_runs_for_its_hint(self):
        text = "BLOCK 1\nNAME: Core\nTYPE: INTERVAL\nDURATION: 3:00\nTIMELINE:"
        block = assemble_from_canonical(text)[0]
        assert [(e.label, e.duration_sec) for e in block.timeline] == [("Core", 180)]

    def test_blank_type_inferred_from_name(self):
        text = "BLOCK 1\nNAME: Tabata Burner\nTYPE: \nDURATION: 4:00\nTIMELINE:\n- 20s | Squats"
        block = assemble_from_canonical(text)[0]
        assert block.normalized_type == NormalizedType.TABATA

    def test_pattern_and_type_mapping(self):
        text = (
            "BLOCK 1\nNAME: Main\nTYPE: Tabata Variation\nDURATION: 4:00\nPATTERN: 20/10 x 8\n"
            "TIMELINE:\n- 20s | Squats\n- 10s | Rest"
        )
        block = assemble_from_canonical(text)[0]
        assert block.normalized_type == NormalizedType.TABATA
        assert block.type == "Tabata Variation"
        assert block.pattern == "20/10 x 8"
        assert block.timeline[1].is_rest is True

    def test_full_sample_text(self, sample_text):
        cleaned = clean_text(sample_text)
        blocks = assemble_from_canonical(canonicalize(cleaned), fallback_text=cleaned)
        assert [b.name for b in blocks] == ["Warm-up", "TABATA", "COOL-DOWN"]
        assert [b.duration_sec for b in blocks] == [300, 120, 180]
        assert_sum_invariant(blocks)


class TestFallback:
    """Line-oriented fallback when the canonical grammar finds nothing."""

    def test_fallback_groups_under_keyword_lines(self):
        blocks = assemble_from_canonical("WARMUP\n30s | March\nCOOLDOWN")
        assert [b.name for b in blocks] == ["WARMUP", "COOLDOWN"]
        assert [b.normalized_type for b in blocks] == ["WARMUP", "COOLDOWN"]
        assert [e.label for e in blocks[1].timeline] == ["Exercise 1", "Exercise 2"]
        assert blocks[1].duration_sec == 60

    def test_fallback_text_used_when_canonical_is_empty(self):
        blocks = assemble_from_canonical("", fallback_text="Tabata\n20s | Burpees")
        assert blocks[0].normalized_type == NormalizedType.TABATA

    @pytest.mark.parametrize("keyword", WORKOUT_KEYWORDS)
    def test_every_workout_keyword_opens_a_fallback_block(self, keyword):
        blocks = assemble_from_canonical(f"{keyword.title()} Burner\n20s | Burpees")
        assert len(blocks) == 1
        assert blocks[0].normalized_type == keyword

    def test_zero_blocks_raises(self):
        with pytest.raises(PlanParseError) as exc:
            assemble_from_canonical("Just some notes", fallback_text="")
        assert "no workout blocks could be identified" in str(exc.value).lower()


class TestAssembleFromCandidate:
    """Structured candidates."""

    def test_builds_plan(self, sample_candidate):
        plan = assemble_from_candidate(sample_candidate)
        assert [b.id for b in plan.blocks] == ["warmup", "main", "cooldown"]
        assert [b.normalized_type for b in plan.blocks] == ["WARMUP", "TABATA", "COOLDOWN"]
        assert plan.blocks[1].pattern == "40/20 x 6"
        assert plan.blocks[0].cues == ["Ease in"]
        assert plan.blocks[1].cues == default_cues(NormalizedType.TABATA)
        assert [b.start_sec for b in plan.blocks] == [0, 120, 480]
        assert plan.total_duration_sec == 600
        assert plan.metadata.class_name == "Lunchtime HIIT"
        assert plan.metadata.duration_min == 10
        assert_sum_invariant(plan.blocks)

    def test_fenced_json_string(self, sample_candidate):
        text = "```json\n" + json.dumps(sample_candidate) + "\n```"
        assert assemble_from_candidate(text).total_duration_sec == 600

    def test_missing_fields_named(self, sample_candidate):
        del sample_candidate["time_audit"]
        with pytest.raises(CandidateFormatError) as exc:
            assemble_from_candidate(sample_candidate)
        assert "time_audit" in str(exc.value)

    def test_error_key_surfaces(self):
        with pytest.raises(CandidateFormatError) as exc:
            assemble_from_candidate({"error": "Could not build a plan for that request"})
        assert str(exc.value) == "Could not build a plan for that request"

    def test_empty_blocks_raises(self, sample_candidate):
        sample_candidate["blocks"] = []
        with pytest.raises(PlanParseError):
            assemble_from_candidate(sample_candidate)

    def test_explicit_normalized_type_respected(self, sample_candidate):
        sample_candidate["blocks"][1]["normalized_type"] = "emom"
        sample_candidate["blocks"][2]["normalized_type"] = "whatever"
        plan = assemble_from_candidate(sample_candidate)
        assert plan.blocks[1].normalized_type == NormalizedType.EMOM
        assert plan.blocks[2].normalized_type == NormalizedType.COOLDOWN

    def test_empty_timeline_stays_empty(self, sample_candidate):
        sample_candidate["blocks"][1]["timeline"] = []
        plan = assemble_from_candidate(sample_candidate)
        assert plan.blocks[1].timeline == []
        assert plan.blocks[1].duration_sec == 0

    def test_input_not_mutated(self, sample_candidate):
        before = copy.deepcopy(sample_candidate)
        assemble_from_candidate(sample_candidate)
        assert sample_candidate == before


class TestDefaultCues:
    def test_unknown_type_gets_generic_cues(self):
        assert default_cues(NormalizedType.INTERVAL) == GENERIC_CUES
        assert default_cues("RANDOMIZED") == GENERIC_CUES
