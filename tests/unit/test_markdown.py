"""Unit tests for Markdown structure extraction."""

from paper2slides.ingestion import markdown
from paper2slides.ingestion.metadata import KeywordExtractor


class TestStructureExtraction:
    """Tests for header, image, code and table extraction."""

    def test_extract_headers_all_levels(self):
        text = "# One\ntext\n###### Six\n####### Seven is not a header\n#NoSpace"

        assert markdown.extract_headers(text) == ["One", "Six"]

    def test_extract_images_defaults_alt(self):
        text = "![Diagram](img/a.png) and ![](img/b.png)"
        images = markdown.extract_images(text)

        assert [image.src for image in images] == ["img/a.png", "img/b.png"]
        assert images[0].alt == "Diagram"
        assert images[1].alt == "Image"

    def test_extract_code_blocks_defaults_language(self):
        text = "```python\nprint('hi')\n```\n\n```\nplain\n```"
        blocks = markdown.extract_code_blocks(text)

        assert [(b.language, b.code) for b in blocks] == [("python", "print('hi')"), ("text", "plain")]

    def test_extract_tables(self):
        text = "intro\n| A | B |\n|---|---|\n| 1 | 2 |\n| 3 | 4 |\noutro"
        tables = markdown.extract_tables(text)

        assert len(tables) == 1
        assert tables[0].headers == ["A", "B"]
        assert tables[0].rows == [["1", "2"], ["3", "4"]]

    def test_single_row_is_not_a_table(self):
        assert markdown.extract_tables("| lonely | row |") == []

    def test_unclosed_fence_is_not_code(self):
        assert not markdown.contains_code("```python\nprint('never closed')")


class TestKeywordExtractor:
    """Tests for term-frequency keyword extraction."""

    def test_most_frequent_first(self):
        extractor = KeywordExtractor(num_keywords=2)
        text = "gradient gradient gradient descent descent model"

        assert extractor.extract(text) == ["gradient", "descent"]

    def test_short_words_and_digits_ignored(self):
        extractor = KeywordExtractor()
        keywords = extractor.extract("the cat sat on 2024 mat with layer2 tokens")

        assert keywords == ["with", "tokens"]

    def test_non_latin_words_counted(self):
        extractor = KeywordExtractor()
        keywords = extractor.extract("анализ данных анализ моделей")

        assert keywords[0] == "анализ"
        assert "данных" in keywords

    def test_scores_are_counts(self):
        extractor = KeywordExtractor()

        assert extractor.extract_with_scores("Layer layer LAYER") == [("layer", 3)]

    def test_empty_text(self):
        assert KeywordExtractor().extract("   ") == []

    def test_batch(self):
        extractor = KeywordExtractor(num_keywords=1)

        assert extractor.extract_batch(["alpha alpha beta", "gamma"]) == [["alpha"], ["gamma"]]
