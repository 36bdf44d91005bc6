"""
Unit tests for the HTML helpers.

Contract:
- every tag is removed, only a fixed set of entities is decoded
- unknown entities stay as written
- file links are collected from href/src attributes
"""

import unittest

from mycourses.sanitize import clean_html_content, extract_file_links


class TestCleanHtmlContent(unittest.TestCase):
    def test_strips_nested_tags(self) -> None:
        self.assertEqual(clean_html_content("<p>This is <strong>important</strong></p>"), "This is important")

    def test_decodes_known_entities(self) -> None:
        html = "<p>Tom &amp; Jerry &lt;3 &quot;cheese&quot; &#39;n&#39;&nbsp;crackers &gt; all</p>"
        self.assertEqual(clean_html_content(html), "Tom & Jerry <3 \"cheese\" 'n' crackers > all")

    def test_unknown_entities_left_verbatim(self) -> None:
        self.assertEqual(clean_html_content("&copy; 2026 &#169; &mdash;"), "&copy; 2026 &#169; &mdash;")

    def test_entities_are_decoded_only_once(self) -> None:
        self.assertEqual(clean_html_content("&amp;lt;b&amp;gt;"), "&lt;b&gt;")

    def test_trims_whitespace(self) -> None:
        self.assertEqual(clean_html_content("  <div>\n  Hello  </div>\n"), "Hello")

    def test_empty_and_none(self) -> None:
        self.assertEqual(clean_html_content(""), "")
        self.assertEqual(clean_html_content(None), "")

    def test_idempotent_without_angle_brackets(self) -> None:
        for html in ["<p>a &amp; b</p>", "<ul><li>one</li><li>two</li></ul>", "plain text", "<br/>&nbsp;x"]:
            once = clean_html_content(html)
            self.assertEqual(clean_html_content(once), once)

    def test_link_text_is_kept(self) -> None:
        self.assertEqual(clean_html_content('<a href="viewer/files/x.pdf">link</a> done'), "link done")


class TestExtractFileLinks(unittest.TestCase):
    def test_collects_anchor_and_image_links(self) -> None:
        html = (
            '<p><a href="viewer/files/homework.pdf">Download</a>'
            '<img src="viewer/files/img/diagram.png">'
            '<a href="https://example.com">elsewhere</a></p>'
        )
        self.assertEqual(
            extract_file_links(html),
            ["viewer/files/homework.pdf", "viewer/files/img/diagram.png"],
        )

    def test_duplicates_are_dropped(self) -> None:
        html = '<a href="viewer/files/a.pdf">1</a><a href="viewer/files/a.pdf">2</a>'
        self.assertEqual(extract_file_links(html), ["viewer/files/a.pdf"])

    def test_no_html(self) -> None:
        self.assertEqual(extract_file_links(""), [])
        self.assertEqual(extract_file_links("no links here"), [])


if __name__ == "__main__":
    unittest.main()
