import pytest

from nextplay.services.sentiment import NEGATIVE_TERMS, POSITIVE_TERMS, score_sentiment


def test_positive_message_scores_above_zero():
    assert score_sentiment("I feel great and ready for what comes next") > 0


def test_negative_message_scores_below_zero():
    assert score_sentiment("I feel lost and alone since I got cut") < 0


@pytest.mark.parametrize("text", ["", "   ", "The season ended on Saturday."])
def test_neutral_text_scores_zero(text):
    assert score_sentiment(text) == 0.0


def test_matching_is_case_insensitive():
    assert score_sentiment("GREAT") == score_sentiment("great") == 0.1


def test_each_term_counts_once():
    assert score_sentiment("good good good") == 0.1


def test_score_is_clamped():
    assert score_sentiment(" ".join(POSITIVE_TERMS)) == 1.0
    assert score_sentiment(" ".join(NEGATIVE_TERMS)) == -1.0


def test_terms_match_inside_longer_words():
    # "hopeful" contains "hope", "hopeless" contains both "hope" and "hopeless".
    assert score_sentiment("hopeful") == 0.2
    assert score_sentiment("hopeless") == 0.0


def test_scores_have_no_float_drift():
    assert score_sentiment("good great happy") == 0.3


def test_none_is_treated_as_empty():
    assert score_sentiment(None) == 0.0
