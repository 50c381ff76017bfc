import unittest

from threatwatch.ingestion.text_extract import (
    MAX_CONTENT_CHARS,
    extract_text,
    parse_html,
    strip_markup,
)


class TestExtractText(unittest.TestCase):
    def test_skips_non_content_elements(self):
        html = """
        <html><head><style>body { color: red }</style><script>var leak = 1;</script></head>
        <body>
          <h1>Leak   site</h1>
          <noscript>enable js</noscript>
          <iframe>frame text</iframe>
          <svg><text>vector</text></svg>
          <!-- hidden comment -->
          <p>Actor posted
             new dump.</p>
        </body></html>
        """
        text = extract_text(parse_html(html))
        self.assertEqual(text, "Leak site Actor posted new dump.")

    def test_output_is_bounded(self):
        html = "<p>" + ("word " * 3000) + "</p>"
        text = extract_text(parse_html(html))
        self.assertEqual(len(text), MAX_CONTENT_CHARS)

    def test_empty_document(self):
        self.assertEqual(extract_text(parse_html("")), "")


class TestStripMarkup(unittest.TestCase):
    def test_tags_become_single_spaces(self):
        self.assertEqual(strip_markup("<p>New<b>CVE</b>  published</p>"), "New CVE published")

    def test_unterminated_tag_is_kept(self):
        self.assertEqual(strip_markup("a < b and more"), "a < b and more")

    def test_truncates(self):
        self.assertEqual(len(strip_markup("x" * 6000)), MAX_CONTENT_CHARS)


if __name__ == "__main__":
    unittest.main()
