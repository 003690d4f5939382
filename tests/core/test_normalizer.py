"""
Tests for the misread normalizer.

Tests cover:
- Context-restricted substitution
- Equivalence with already-correct input
- Idempotence
- Configuration validation
"""

import pytest

from ocrclean.core.normalizer import MisreadNormalizer, MisreadRule
from ocrclean.exceptions import ConfigurationError


@pytest.fixture
def standard_rule():
    return MisreadRule(
        name="standard_number_one",
        characters="il{/\\",
        replacement="1",
        context=r"jdm[a-z]",
    )


@pytest.fixture
def normalizer(standard_rule):
    return MisreadNormalizer([standard_rule])


# =============================================================================
# SUBSTITUTION TESTS
# =============================================================================

class TestContextualSubstitution:
    """Misreads are fixed only right after the configured context."""

    @pytest.mark.parametrize("misread", ["i", "l", "{", "/", "\\"])
    def test_misread_after_prefix_is_rewritten(self, normalizer, misread):
        """Every configured misread character maps to the canonical one."""
        result = normalizer.normalize(f"jdmf{misread}4h2a3")

        assert result.text == "jdmf14h2a3"
        assert result.substitutions == 1
        assert result.changed

    @pytest.mark.parametrize("misread", ["i", "l", "{", "/", "\\"])
    def test_same_as_canonical_input(self, normalizer, misread):
        """Misread input normalizes to the same text as correct input."""
        misread_text = normalizer.normalize(f"jdmf{misread}4zza3(x3,x5)").text
        canonical_text = normalizer.normalize("jdmf14zza3(x3,x5)").text

        assert misread_text == canonical_text

    def test_characters_outside_context_untouched(self, normalizer):
        """Blind replacement would corrupt 'l' and 'i' elsewhere in the text."""
        text = "fill line item jdmfi4 label"
        result = normalizer.normalize(text)

        assert result.text == "fill line item jdmf14 label"
        assert result.substitutions == 1

    def test_no_context_means_no_change(self, normalizer):
        """Text without the context prefix is returned unchanged."""
        result = normalizer.normalize("il{/\\ il{/\\")

        assert result.text == "il{/\\ il{/\\"
        assert result.substitutions == 0
        assert not result.changed

    def test_only_first_position_by_default(self, normalizer):
        """max_run=1 rewrites only the character right after the context."""
        result = normalizer.normalize("jdmfil")

        assert result.text == "jdmf1l"

    def test_max_run_rewrites_consecutive_characters(self):
        """A longer run is rewritten up to max_run characters."""
        normalizer = MisreadNormalizer([
            MisreadRule(name="run", characters="Oo", replacement="0", context=r"SN:", max_run=3),
        ])

        assert normalizer.normalize("SN:OoO7").text == "SN:0007"
        assert normalizer.normalize("SN:OOOO").text == "SN:000O"

    def test_every_occurrence_in_text(self, normalizer):
        """All in-context occurrences are fixed, not only the first."""
        result = normalizer.normalize("jdmfi4 / jdmgl5")

        assert result.text == "jdmf14 / jdmg15"
        assert result.substitutions == 2

    def test_original_is_preserved(self, normalizer):
        """NormalizedText keeps the raw input."""
        result = normalizer.normalize("jdmfi4")

        assert result.original == "jdmfi4"

    def test_rules_apply_in_declared_order(self):
        """Later rules see the output of earlier ones."""
        normalizer = MisreadNormalizer([
            MisreadRule(name="s_five", characters="sS", replacement="5", context=r"#"),
            MisreadRule(name="o_zero", characters="oO", replacement="0", context=r"#5"),
        ])

        assert normalizer.normalize("#so").text == "#50"

    def test_empty_rule_table_is_identity(self):
        """A normalizer without rules returns its input."""
        result = MisreadNormalizer().normalize("anything at all")

        assert result.text == "anything at all"
        assert result.substitutions == 0


# =============================================================================
# IDEMPOTENCE TESTS
# =============================================================================

class TestIdempotence:
    """Normalizing normalized text changes nothing."""

    @pytest.mark.parametrize("text", [
        "jdmfi4h2a3",
        "jdmf{4zza3(x3,x5)",
        "fill jdmf/4 and jdmg\\9",
        "no context here",
        "",
    ])
    def test_second_pass_is_noop(self, normalizer, text):
        once = normalizer.normalize(text)
        twice = normalizer.normalize(once.text)

        assert twice.text == once.text
        assert twice.substitutions == 0

    def test_cascading_context_settles_in_one_call(self):
        """A rewrite that creates a new context is handled within one call."""
        normalizer = MisreadNormalizer([
            MisreadRule(name="digit_l", characters="l", replacement="1", context=r"\d"),
        ])
        once = normalizer.normalize("1lll")

        assert once.text == "1111"
        assert normalizer.normalize(once.text).text == once.text

    @pytest.mark.parametrize("run_length", [4, 16, 17, 30, 200])
    def test_long_cascading_run_fully_rewritten(self, run_length):
        """max_run limits one pass; the cascade still fixes runs of any length."""
        normalizer = MisreadNormalizer([
            MisreadRule(name="digit_l", characters="l", replacement="1", context=r"\d"),
        ])
        once = normalizer.normalize("5" + "l" * run_length)
        twice = normalizer.normalize(once.text)

        assert once.text == "5" + "1" * run_length
        assert once.substitutions == run_length
        assert twice.text == once.text
        assert twice.substitutions == 0


# =============================================================================
# CONFIGURATION TESTS
# =============================================================================

class TestConfigurationValidation:
    """Malformed tables fail at construction."""

    def test_empty_characters_rejected(self):
        with pytest.raises(ConfigurationError, match="empty character class"):
            MisreadNormalizer([MisreadRule(name="x", characters="", replacement="1", context="a")])

    @pytest.mark.parametrize("replacement", ["", "11"])
    def test_replacement_must_be_one_character(self, replacement):
        with pytest.raises(ConfigurationError, match="exactly one character"):
            MisreadNormalizer([
                MisreadRule(name="x", characters="l", replacement=replacement, context="a"),
            ])

    def test_replacement_inside_characters_rejected(self):
        with pytest.raises(ConfigurationError, match="cannot also be a misread"):
            MisreadNormalizer([MisreadRule(name="x", characters="l1", replacement="1", context="a")])

    def test_cross_rule_cycle_rejected(self):
        """A replacement that another rule rewrites again could loop."""
        with pytest.raises(ConfigurationError, match="another rule"):
            MisreadNormalizer([
                MisreadRule(name="a", characters="l", replacement="1", context="x"),
                MisreadRule(name="b", characters="1", replacement="7", context="y"),
            ])

    def test_missing_context_rejected(self):
        with pytest.raises(ConfigurationError, match="blind replacement"):
            MisreadNormalizer([MisreadRule(name="x", characters="l", replacement="1", context="")])

    def test_context_matching_empty_string_rejected(self):
        """A context like 'a*' would allow replacement anywhere."""
        with pytest.raises(ConfigurationError, match="empty string"):
            MisreadNormalizer([MisreadRule(name="x", characters="l", replacement="1", context="a*")])

    def test_invalid_context_regex_rejected(self):
        with pytest.raises(ConfigurationError, match="Invalid misread context"):
            MisreadNormalizer([MisreadRule(name="x", characters="l", replacement="1", context="(")])

    def test_max_run_below_one_rejected(self):
        with pytest.raises(ConfigurationError, match="max_run"):
            MisreadNormalizer([
                MisreadRule(name="x", characters="l", replacement="1", context="a", max_run=0),
            ])

    def test_duplicate_names_rejected(self):
        rule = MisreadRule(name="x", characters="l", replacement="1", context="a")
        with pytest.raises(ConfigurationError, match="Duplicate"):
            MisreadNormalizer([rule, rule])

    def test_error_names_the_rule(self):
        """The offending rule is reported in the error details."""
        with pytest.raises(ConfigurationError) as exc_info:
            MisreadNormalizer([MisreadRule(name="broken", characters="", replacement="1", context="a")])

        assert exc_info.value.setting_name == "misreads.broken"
