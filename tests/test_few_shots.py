import random

from smartbudget.data.examples import load_examples
from smartbudget.lib.categories import FEW_SHOT_PRIORITY
from smartbudget.services.few_shots import format_few_shots, get_few_shots


def test_one_example_per_priority_category():
    shots = get_few_shots()
    assert len(shots) == 5
    assert [s.category for s in shots] == FEW_SHOT_PRIORITY


def test_random_fill_has_no_duplicates():
    shots = get_few_shots(count=9, rng=random.Random(7))
    assert len(shots) == 9
    assert len(set(shots)) == 9
    assert [s.category for s in shots[:5]] == FEW_SHOT_PRIORITY


def test_fill_stops_when_corpus_exhausted():
    shots = get_few_shots(count=500, rng=random.Random(1))
    assert len(shots) == len(load_examples())


def test_corpus_is_cached_singleton():
    assert load_examples() is load_examples()


def test_format_includes_currency_and_verdict():
    text = format_few_shots(get_few_shots(count=1), "CHF")
    assert "CHF" in text
    assert "Decision:" in text
