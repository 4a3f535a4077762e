"""Few-shot example selection for the transaction classifier."""
from __future__ import annotations
import random
from typing import List, Optional

from smartbudget.data.examples import KaggleTransaction, load_examples
from smartbudget.lib.categories import FEW_SHOT_PRIORITY


def get_few_shots(count: int = 5, rng: Optional[random.Random] = None) -> List[KaggleTransaction]:
    """
    One example per priority category (first match in corpus order), then random
    fill without duplicates until ``count`` examples or the corpus is exhausted.
    """
    data = load_examples()
    rng = rng or random
    examples: List[KaggleTransaction] = []

    for category in FEW_SHOT_PRIORITY:
        if len(examples) >= count:
            break
        match = next((t for t in data if t.category == category), None)
        if match is not None:
            examples.append(match)

    remaining = [t for t in data if t not in examples]
    while len(examples) < count and remaining:
        pick = remaining.pop(rng.randrange(len(remaining)))
        examples.append(pick)
    return examples


def format_few_shots(examples: List[KaggleTransaction], currency: str) -> str:
    return "\n\n".join(
        "Example:\n"
        f"Merchant: {t.merchant}\n"
        f"Amount: {t.amount} {currency}\n"
        f"Category: {t.category}\n"
        f"Impulse purchase: {'yes' if t.is_impulse else 'no'}\n"
        f"Decision: {t.decision_label}\n"
        f"Explanation: {t.decision_explanation}"
        for t in examples
    )
