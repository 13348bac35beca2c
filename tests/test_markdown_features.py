import unittest

from docpager.core.blocks import BlockKind, extract_blocks
from docpager.core.renderer import render_baseline


class TestMarkdownFeatures(unittest.TestCase):
    """
    Markdown front end: the HTML it produces must break into the blocks the
    paginator expects.
    """

    def test_headings_and_paragraphs(self):
        html, _ = render_baseline("# Title\n\nSome text.\n\n## Section\n")
        blocks = extract_blocks(html)
        self.assertEqual([b.tag for b in blocks], ['h1', 'p', 'h2'])
        self.assertEqual(blocks[0].level, 1)

    def test_tables(self):
        text = """
| Feature | Status |
|---------|--------|
| Tables  | yes    |
"""
        html, _ = render_baseline(text)
        self.assertIn("<table>", html)
        blocks = extract_blocks(html)
        self.assertEqual([b.kind for b in blocks], [BlockKind.TABLE])

    def test_fenced_code_is_one_block(self):
        text = """
```python
def hello():
    print("hi")
```
"""
        html, _ = render_baseline(text)
        self.assertIn("<pre", html)
        blocks = extract_blocks(html)
        self.assertEqual(len(blocks), 1)
        self.assertEqual(blocks[0].kind, BlockKind.CODE)

    def test_lists_and_quotes(self):
        text = """
- A
- B

1. One
2. Two

> Quoted text
"""
        html, _ = render_baseline(text)
        self.assertEqual([b.tag for b in extract_blocks(html)], ['ul', 'ol', 'blockquote'])

    def test_horizontal_rule(self):
        html, _ = render_baseline("Above\n\n---\n\nBelow")
        self.assertEqual([b.tag for b in extract_blocks(html)], ['p', 'hr', 'p'])

    def test_definition_lists(self):
        text = """
Term
:   Definition
"""
        html, _ = render_baseline(text)
        self.assertIn("<dl>", html)
        self.assertIn("<dt>Term</dt>", html)
        self.assertIn("<dd>Definition</dd>", html)

    def test_abbreviations(self):
        text = """
Written in HTML.

*[HTML]: Hyper Text Markup Language
"""
        html, _ = render_baseline(text)
        self.assertIn('<abbr title="Hyper Text Markup Language">HTML</abbr>', html)

    def test_toc_is_returned(self):
        _, toc = render_baseline("# First\n\n## Second\n")
        self.assertIn("First", toc)
        self.assertIn("Second", toc)

    def test_empty_text(self):
        html, _ = render_baseline("")
        self.assertEqual(extract_blocks(html), [])


if __name__ == '__main__':
    unittest.main()
