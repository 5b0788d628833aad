import unittest

from expense_tracker.classification_engine import (
    UNCATEGORIZED_ID,
    classify_category,
    match_keyword_group,
)
from expense_tracker.models import DEFAULT_CATEGORIES, Category


class ClassificationEngineTests(unittest.TestCase):
    def test_classifies_with_default_categories(self) -> None:
        cases = [
            ("Pizza night", "1"),
            ("Uber to the airport", "2"),
            ("Monthly rent", "3"),
            ("Concert tickets", "4"),
            ("Textbook", "5"),
            ("Pharmacy run", "6"),
            ("New shoes", "7"),
            ("Phone bill", "8"),
            ("Random thing", "9"),
        ]
        for description, expected in cases:
            with self.subTest(description=description):
                self.assertEqual(classify_category(description, DEFAULT_CATEGORIES), expected)

    def test_empty_description_falls_back_to_other(self) -> None:
        self.assertEqual(classify_category("", DEFAULT_CATEGORIES), "9")

    def test_first_matching_group_wins(self) -> None:
        # "netflix" (entertainment) is checked before "subscription" (utilities).
        self.assertEqual(match_keyword_group("Netflix subscription"), "Entertainment")
        self.assertEqual(classify_category("Netflix subscription", DEFAULT_CATEGORIES), "4")

    def test_matching_is_case_insensitive(self) -> None:
        categories = [Category(id="f", name="food"), Category(id="o", name="OTHER")]

        self.assertEqual(classify_category("BREAKFAST burrito", categories), "f")
        self.assertEqual(classify_category("zzz", categories), "o")

    def test_missing_group_category_falls_back_to_other(self) -> None:
        categories = [Category(id="h", name="Housing"), Category(id="o", name="Other")]

        self.assertEqual(classify_category("Coffee", categories), "o")

    def test_uncategorized_when_no_fallback_exists(self) -> None:
        categories = [Category(id="h", name="Housing")]

        self.assertEqual(classify_category("Coffee", categories), UNCATEGORIZED_ID)
        self.assertEqual(classify_category("Coffee", []), UNCATEGORIZED_ID)


if __name__ == "__main__":
    unittest.main()
