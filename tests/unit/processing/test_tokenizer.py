from __future__ import annotations

from groupforms.processing.tokenizer import PARENTHETICAL, detect_separator, has_separator, tokenize
from groupforms.typing.enums import CategoryPattern


def test_tokenize_strips_and_drops_empty_tokens() -> None:
    assert tokenize("Pupils Fed - P1 - Male", " - ") == ["Pupils Fed", "P1", "Male"]
    assert tokenize("ANC__1st_visit", "_") == ["ANC", "1st", "visit"]
    assert tokenize("Remarks", " - ") == ["Remarks"]


def test_tokenize_parenthetical_splits_inner_words() -> None:
    assert tokenize("Cases (Male Under5)", PARENTHETICAL) == ["Cases", "Male", "Under5"]
    assert tokenize("Remarks", PARENTHETICAL) == ["Remarks"]


def test_has_separator() -> None:
    assert has_separator("Pupils Fed - P1")
    assert has_separator("Cases (Male)")
    assert has_separator("Stock|Opening")
    assert not has_separator("Remarks")


def test_detect_separator_picks_consistent_separator() -> None:
    detection = detect_separator(
        ["Pupils Fed - P1 - Male", "Pupils Fed - P1 - Female", "Pupils Fed - P2 - Male", "Pupils Fed - P2 - Female"],
    )

    assert detection.pattern == CategoryPattern.HIERARCHICAL
    assert detection.separator == " - "
    assert detection.confidence == 1.0
    assert detection.token_count == 3


def test_detect_separator_underscore() -> None:
    detection = detect_separator(["ANC_1st_visit", "ANC_2nd_visit", "ANC_4th_visit"])

    assert detection.pattern == CategoryPattern.UNDERSCORE_DELIM
    assert detection.separator == "_"


def test_detect_separator_ties_keep_priority_order() -> None:
    detection = detect_separator(["A - B_C", "D - E_F"])

    assert detection.pattern == CategoryPattern.HIERARCHICAL


def test_detect_separator_returns_flat_below_threshold() -> None:
    detection = detect_separator(["Malaria - Cases", "Remarks", "Comments"])

    assert detection.is_flat
    assert detection.separator is None
    assert detection.confidence == 0.0


def test_detect_separator_threshold_is_tunable() -> None:
    detection = detect_separator(["Malaria - Cases", "Remarks", "Comments"], threshold=0.3)

    assert detection.pattern == CategoryPattern.HIERARCHICAL


def test_detect_separator_empty_input_is_flat() -> None:
    assert detect_separator([]).is_flat


def test_detect_separator_zero_threshold_still_needs_a_split() -> None:
    assert detect_separator(["Remarks", "Comments"], threshold=0.0).is_flat
    assert detect_separator(["Remarks", "Malaria - Cases"], threshold=0.0).separator == " - "
