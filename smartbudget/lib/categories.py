"""
Category vocabulary.

Categories are free-form strings: the classifier may coin new ones. The list
below is what the classifier is offered and what the UI suggests; it is never
used to reject a value.
"""

RECOMMENDED_CATEGORIES = [
    "groceries",
    "shopping",
    "food delivery",
    "transport",
    "entertainment",
    "health",
    "education",
    "housing",
    "insurance",
    "general/other",
]

# Few-shot examples are drawn one per category in this order
FEW_SHOT_PRIORITY = [
    "groceries",
    "shopping",
    "food delivery",
    "transport",
    "entertainment",
]

# Used when a model reply is parseable but carries no category
DEFAULT_LLM_CATEGORY = "general/other"
# Used when the keyword fallback finds nothing
DEFAULT_FALLBACK_CATEGORY = "general"

# Explicit income tags recognised by budget scoping
SALARY_CATEGORY = "salary"
OTHER_INCOME_CATEGORY = "other income"
INCOME_CATEGORIES = {SALARY_CATEGORY, OTHER_INCOME_CATEGORY}


def normalize_category(value: str | None) -> str:
    """Normalize category (lowercase, trim, collapse spaces)."""
    return " ".join((value or "").lower().split())
