import unittest

from threatwatch.scoring.criticality import (
    CATEGORY_MODIFIERS,
    KEYWORD_SEVERITY,
    auto_categorize,
    keyword_score,
    score_criticality,
)


class TestCriticality(unittest.TestCase):
    def test_ransomware_keyword_and_category(self):
        content = "New ransomware strain spotted"
        categories = auto_categorize(content)
        self.assertEqual(keyword_score(content), 10)
        self.assertIn("ransomware", categories)
        self.assertEqual(score_criticality(content, categories), 10)

    def test_no_keywords_defaults(self):
        content = "This is a brief note"
        categories = auto_categorize(content)
        self.assertEqual(categories, ["vulnerability"])
        self.assertEqual(score_criticality(content, categories), 3)

    def test_max_not_sum(self):
        self.assertEqual(keyword_score("exploit kit with malware and a botnet"), 8)

    def test_case_insensitive(self):
        self.assertEqual(keyword_score("ZERO-DAY in the wild"), 10)

    def test_negative_modifier(self):
        content = "A phishing wave hits banks"
        categories = auto_categorize(content)
        self.assertEqual(categories, ["phishing"])
        self.assertEqual(score_criticality(content, categories), 4)

    def test_score_is_clamped(self):
        self.assertEqual(score_criticality("", ["phishing", "phishing", "phishing"]), 1)
        self.assertEqual(score_criticality("ransomware data breach", ["ransomware", "data-leak"]), 10)
        self.assertEqual(score_criticality("", []), 3)
        self.assertEqual(score_criticality("", ["unknown-category"]), 3)

    def test_multiple_categories_in_fixed_order(self):
        content = "Data breach exposes stolen data; attackers used a trojan"
        self.assertEqual(auto_categorize(content), ["data-leak", "malware"])

    def test_tables_are_read_only(self):
        with self.assertRaises(TypeError):
            KEYWORD_SEVERITY["new"] = 1
        with self.assertRaises(TypeError):
            CATEGORY_MODIFIERS["ransomware"] = 5


if __name__ == "__main__":
    unittest.main()
