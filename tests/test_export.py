"""
Tests for the format optimizer and renderers.

Covers:
- Titles and section titles preserved in every format
- Markup and PDF string escaping of titles
- Format-specific structure (PDF objects, DOCX markup, HTML page, Markdown)
- Option defaults, merging and validation
- Template presets
- Metadata estimates and access URLs
- Unsupported formats and cancellation
"""

import asyncio
import math
from xml.dom import minidom

import pytest

from screening_engine.core import CancellationToken, GenerationCancelledError
from screening_engine.documents import DocumentType, generate_document
from screening_engine.export import (
    ExportFormat,
    FormatOptimizer,
    PdfRenderer,
    StructuralDocument,
    StructuralSection,
    TemplateNotFoundError,
    UnsupportedFormatError,
    anchor_for,
    count_words,
    create_default_registry,
    default_options_for,
    score_format_quality,
)

from conftest import FIXED_NOW


EPOCH_MS = int(FIXED_NOW.timestamp() * 1000)
TITLE = "Q3 Review: Acme Holdings"


@pytest.fixture
def optimizer():
    return FormatOptimizer(create_default_registry(), clock=lambda: FIXED_NOW)


@pytest.fixture
def document():
    return StructuralDocument(
        id="DOC-1",
        title=TITLE,
        sector="Technology",
        sections=(
            StructuralSection(
                "Executive Summary",
                "**Recommendation:** RECOMMENDED\n\nStrong recurring revenue base.",
            ),
            StructuralSection(
                "Deal Overview",
                "| Metric | Value |\n|--------|-------|\n| Expected IRR | 30.0% |\n| Multiple | 3.0x |",
            ),
            StructuralSection(
                "Next Steps",
                "1. Complete detailed due diligence plan\n2. Conduct management presentations",
            ),
        ),
    )


def export(optimizer, document, target_format, overrides=None, **kwargs):
    kwargs.setdefault("timeout", 5)
    return asyncio.run(
        optimizer.optimize_for_format(document, target_format, overrides, **kwargs)
    )


class TestFormatParsing:
    """Tests for export format names."""

    @pytest.mark.parametrize("name,expected", [
        ("PDF", ExportFormat.PDF),
        ("docx", ExportFormat.DOCX),
        (" Html ", ExportFormat.HTML),
        ("MARKDOWN", ExportFormat.MARKDOWN),
    ])
    def test_parse(self, name, expected):
        assert ExportFormat.parse(name) == expected

    def test_unsupported(self):
        with pytest.raises(UnsupportedFormatError) as exc:
            ExportFormat.parse("XML")
        assert str(exc.value) == "Unsupported format: XML"

    def test_unsupported_is_value_error(self):
        with pytest.raises(ValueError):
            ExportFormat.parse("rtf")


class TestTitlesPreserved:
    """Document and section titles appear verbatim in every format."""

    @pytest.mark.parametrize("target_format", list(ExportFormat))
    def test_titles(self, optimizer, document, target_format):
        content = export(optimizer, document, target_format).content
        assert TITLE in content
        for section in document.sections:
            assert section.title in content


class TestPdf:
    """Tests for PDF rendering."""

    def test_envelope(self, optimizer, document):
        content = export(optimizer, document, "PDF").content
        assert content.startswith("%PDF-1.4")
        assert content.rstrip().endswith("%%EOF")
        assert f"/Title ({TITLE})" in content

    def test_print_quality_by_default(self, optimizer, document):
        result = export(optimizer, document, ExportFormat.PDF)
        assert "/Quality (print)" in result.content
        assert "Print optimization" in result.metadata.optimizations_applied

    def test_landscape(self, optimizer, document):
        content = export(
            optimizer, document, ExportFormat.PDF, {"layout": {"orientation": "landscape"}}
        ).content
        assert "/MediaBox [0 0 842 595]" in content

    def test_cover_page_optional(self, optimizer, document):
        with_cover = export(optimizer, document, ExportFormat.PDF).content
        without = export(
            optimizer, document, ExportFormat.PDF,
            {"structure": {"include_executive_summary": False}},
        ).content
        assert "<<PDF COVER PAGE>>" in with_cover
        assert "<<PDF COVER PAGE>>" not in without

    def test_watermark_and_password(self, optimizer, document):
        content = export(
            optimizer, document, ExportFormat.PDF,
            {"export_options": {"watermark": "DRAFT", "password": "secret"}},
        ).content
        assert "/Watermark (DRAFT)" in content
        assert "/Encrypt" in content


class TestDocx:
    """Tests for DOCX rendering."""

    def test_title_paragraph(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.DOCX).content
        assert f'<w:pStyle w:val="Title"/></w:pPr><w:r><w:t>{TITLE}</w:t>' in content

    def test_no_table_of_contents_by_default(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.DOCX).content
        assert "TOCHeading" not in content

    def test_editable_by_default(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.DOCX).content
        assert "<w:comment " in content
        assert "<w:trackRevisions/>" in content

    def test_read_only(self, optimizer, document):
        content = export(
            optimizer, document, ExportFormat.DOCX,
            {"export_options": {"allow_editing": False}},
        ).content
        assert 'w:edit="readOnly"' in content
        assert "<w:trackRevisions/>" not in content

    def test_tables_converted(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.DOCX).content
        assert '<w:tblStyle w:val="TableGrid"/>' in content
        assert "<w:t>Expected IRR</w:t>" in content


class TestHtml:
    """Tests for HTML rendering."""

    def test_page(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.HTML).content
        assert content.startswith("<!DOCTYPE html>")
        assert f"<title>{TITLE}</title>" in content
        assert '<meta name="viewport"' in content

    def test_navigation_and_headings(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.HTML).content
        assert '<a href="#section-1">Executive Summary</a>' in content
        assert '<h2 tabindex="0">1. Executive Summary</h2>' in content
        assert '<section id="section-2" class="document-section">' in content

    def test_inline_markup(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.HTML).content
        assert "<strong>Recommendation:</strong> RECOMMENDED" in content
        assert "<ol><li>Complete detailed due diligence plan</li>" in content

    def test_confidential_not_indexed(self, optimizer, document):
        confidential = export(optimizer, document, ExportFormat.HTML).content
        internal = export(
            optimizer, document, ExportFormat.HTML,
            {"industry": {"confidentiality_level": "internal"}},
        ).content
        assert 'content="noindex, nofollow"' in confidential
        assert 'content="noindex, nofollow"' not in internal


class TestMarkdown:
    """Tests for Markdown rendering."""

    def test_front_matter(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.MARKDOWN).content
        assert content.startswith(f'---\ntitle: "{TITLE}"\n')

    def test_table_of_contents_before_sections(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.MARKDOWN).content
        toc = content.index("## Table of Contents")
        first_section = content.index("## 1. Executive Summary {#executive-summary}")
        assert toc < first_section
        assert "1. [Executive Summary](#executive-summary)" in content
        assert "3. [Next Steps](#next-steps)" in content

    def test_whitespace_normalized(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.MARKDOWN).content
        assert "\n\n\n" not in content

    def test_tables_aligned(self, optimizer, document):
        content = export(optimizer, document, ExportFormat.MARKDOWN).content
        assert "| Metric       | Value |" in content
        assert "| Expected IRR | 30.0% |" in content

    def test_without_numbering(self, optimizer, document):
        content = export(
            optimizer, document, ExportFormat.MARKDOWN,
            {"structure": {"section_numbering": False}},
        ).content
        assert "## Executive Summary {#executive-summary}" in content

    def test_without_table_of_contents(self, optimizer, document):
        content = export(
            optimizer, document, ExportFormat.MARKDOWN,
            {"structure": {"include_table_of_contents": False}},
        ).content
        assert "## Table of Contents" not in content

    def test_anchor(self):
        assert anchor_for("Risk-Based Focus Areas") == "risk-based-focus-areas"
        assert anchor_for("Regulatory & Clinical Due Diligence") == (
            "regulatory-clinical-due-diligence"
        )



class TestEscaping:
    """Tests for titles and tables that need format-specific escaping."""

    def test_html_title_markup_escaped(self, optimizer):
        doc = StructuralDocument(
            title="Acme <script>alert(1)</script>",
            sections=(StructuralSection("Risks & <Mitigants>", "Plain text."),),
        )
        content = export(optimizer, doc, ExportFormat.HTML).content
        assert "<script>alert(1)</script>" not in content
        assert "<title>Acme &lt;script&gt;alert(1)&lt;/script&gt;</title>" in content
        assert '<a href="#section-1">Risks &amp; &lt;Mitigants&gt;</a>' in content
        assert '<h2 tabindex="0">1. Risks &amp; &lt;Mitigants&gt;</h2>' in content

    def test_docx_with_ampersand_is_well_formed(self, optimizer):
        doc = StructuralDocument(
            title="Smith & Jones (Holdings)",
            sections=(StructuralSection("Q&A", "Terms agreed."),),
        )
        content = export(optimizer, doc, ExportFormat.DOCX).content
        dom = minidom.parseString(content)
        texts = [
            node.firstChild.data
            for node in dom.getElementsByTagName("w:t")
            if node.firstChild is not None
        ]
        assert "Smith & Jones (Holdings)" in texts
        assert any(text.endswith("Q&A") for text in texts)

    def test_pdf_string_delimiters_escaped(self, optimizer):
        doc = StructuralDocument(
            title="Fund (II) \\ Co",
            sections=(StructuralSection("Terms (Draft)", "Fee (2%)"),),
        )
        content = export(optimizer, doc, ExportFormat.PDF).content
        assert r"/Title (Fund \(II\) \\ Co)" in content
        assert r"Terms \(Draft\)) /Dest /section-1" in content
        assert r"(Fee \(2%\)) Tj" in content

    @pytest.mark.parametrize("target_format", list(ExportFormat))
    def test_separator_only_table(self, optimizer, target_format):
        doc = StructuralDocument(
            title="Notes", sections=(StructuralSection("Summary", "|---|---|"),)
        )
        result = export(optimizer, doc, target_format)
        assert "Summary" in result.content
        assert "<table" not in result.content
        assert "<w:tbl>" not in result.content


class TestOptions:
    """Tests for defaults and override merging."""

    def test_base_defaults(self):
        options = default_options_for(ExportFormat.HTML)
        assert options.structure.include_table_of_contents is True
        assert options.structure.page_numbers is False
        assert options.industry.confidentiality_level == "confidential"
        assert options.export_options.quality == "high"

    def test_format_defaults(self):
        assert default_options_for(ExportFormat.PDF).export_options.quality == "print"
        assert default_options_for(ExportFormat.DOCX).export_options.allow_editing is True
        markdown = default_options_for(ExportFormat.MARKDOWN).structure
        assert (markdown.page_numbers, markdown.headers, markdown.footers) == (False, False, False)

    def test_merge_keeps_unnamed_keys(self, optimizer):
        options = optimizer.resolve_options(
            ExportFormat.PDF, {"structure": {"page_numbers": False}}
        )
        assert options.structure.page_numbers is False
        assert options.structure.section_numbering is True
        assert options.export_options.quality == "print"

    def test_nested_merge(self, optimizer):
        options = optimizer.resolve_options(
            ExportFormat.PDF, {"layout": {"margins": {"left": 1.5}}}
        )
        assert options.layout.margins.left == 1.5
        assert options.layout.margins.top == 1

    def test_unknown_option(self, optimizer):
        with pytest.raises(ValueError, match="Unknown option 'structure.toc'"):
            optimizer.resolve_options(ExportFormat.PDF, {"structure": {"toc": True}})

    def test_invalid_choice(self, optimizer):
        with pytest.raises(ValueError, match="page_size"):
            optimizer.resolve_options(ExportFormat.PDF, {"layout": {"page_size": "A3"}})

    def test_section_must_be_mapping(self, optimizer):
        with pytest.raises(ValueError, match="expects a mapping"):
            optimizer.resolve_options(ExportFormat.PDF, {"structure": True})

    def test_to_dict(self):
        data = default_options_for(ExportFormat.PDF).to_dict()
        assert data["typography"]["heading_scale"] == [24, 20, 16, 14, 12]
        assert data["export_options"]["quality"] == "print"


class TestTemplatePresets:
    """Tests for rendering with a template's options."""

    def test_template_options(self, optimizer, document):
        result = export(
            optimizer, document, ExportFormat.PDF, template_id="pdf-executive-summary"
        )
        assert "/BaseFont /Times-New-Roman" in result.content
        assert "Enhanced compliance" in result.metadata.optimizations_applied

    def test_overrides_apply_on_template(self, optimizer):
        options = optimizer.resolve_options(
            ExportFormat.PDF,
            {"typography": {"font_size": 10}},
            template_id="pdf-executive-summary",
        )
        assert options.typography.font_size == 10
        assert options.typography.font_family == "Times New Roman"

    def test_unknown_template(self, optimizer, document):
        with pytest.raises(TemplateNotFoundError):
            export(optimizer, document, ExportFormat.PDF, template_id="missing")


class TestMetadata:
    """Tests for size, page, word and quality estimates."""

    def test_estimates(self, optimizer, document):
        result = export(optimizer, document, ExportFormat.PDF)
        metadata = result.metadata
        assert metadata.format == ExportFormat.PDF
        assert metadata.word_count == count_words(result.content)
        assert metadata.page_count == math.ceil(metadata.word_count / 250)
        assert metadata.file_size == int(round(len(result.content) * 3.0))
        assert metadata.optimizations_applied[0] == "PDF format optimization"
        assert metadata.processing_time >= 0

    def test_pdf_quality(self, optimizer, document):
        assert export(optimizer, document, ExportFormat.PDF).metadata.quality_score == 1.0

    def test_quality_heuristic(self):
        assert score_format_quality("short", ExportFormat.MARKDOWN) == 0.8
        assert score_format_quality(
            "Table of Contents / Executive Summary", ExportFormat.HTML
        ) == 0.9
        assert score_format_quality("<<PDF", ExportFormat.HTML) == 0.8
        assert score_format_quality("<<PDF", ExportFormat.PDF) == 0.85

    @pytest.mark.parametrize("target_format", list(ExportFormat))
    def test_quality_bounds(self, optimizer, document, target_format):
        quality = export(optimizer, document, target_format).metadata.quality_score
        assert 0.5 <= quality <= 1.0


class TestUrls:
    """Tests for download, preview and share URLs."""

    def test_pdf_urls(self, optimizer, document):
        result = export(optimizer, document, ExportFormat.PDF)
        assert result.download_url == f"/api/documents/download/DOC-1-pdf-{EPOCH_MS}"
        assert result.shareable_url == f"/api/documents/share/DOC-1-pdf-{EPOCH_MS}"
        assert result.preview_url is None

    def test_html_preview(self, optimizer, document):
        result = export(optimizer, document, ExportFormat.HTML)
        assert result.preview_url == f"/api/documents/preview/DOC-1-html-{EPOCH_MS}"

    def test_document_without_id(self, optimizer):
        doc = StructuralDocument(title="Untitled", sections=[StructuralSection("Notes", "x")])
        result = export(optimizer, doc, ExportFormat.MARKDOWN)
        assert result.download_url == f"/api/documents/download/document-markdown-{EPOCH_MS}"

    def test_to_dict(self, optimizer, document):
        data = export(optimizer, document, ExportFormat.HTML).to_dict()
        assert data["metadata"]["format"] == "html"
        assert data["preview_url"].startswith("/api/documents/preview/")


class TestErrors:
    """Tests for rejected requests."""

    def test_unsupported_format(self, optimizer, document):
        with pytest.raises(UnsupportedFormatError, match="Unsupported format: XML"):
            export(optimizer, document, "XML")

    def test_format_without_renderer(self, document):
        optimizer = FormatOptimizer(
            create_default_registry(), renderers={ExportFormat.PDF: PdfRenderer()}
        )
        assert optimizer.supported_formats == [ExportFormat.PDF]
        with pytest.raises(UnsupportedFormatError):
            export(optimizer, document, ExportFormat.HTML)

    def test_cancelled(self, optimizer, document):
        token = CancellationToken()
        token.cancel("user navigated away")
        with pytest.raises(GenerationCancelledError, match="PDF export was cancelled"):
            export(optimizer, document, ExportFormat.PDF, cancel_token=token)


class TestGeneratedDocuments:
    """Tests for exporting assembled documents."""

    @pytest.mark.parametrize("target_format", list(ExportFormat))
    def test_generated_summary(self, optimizer, tech_opportunity, screening_result,
                               fixed_clock, target_format):
        generated = asyncio.run(generate_document(
            DocumentType.INVESTMENT_SUMMARY, tech_opportunity, screening_result,
            clock=fixed_clock,
        )).document
        result = export(optimizer, generated.to_structural(), target_format)
        assert generated.title in result.content
        for title in generated.section_titles:
            assert title in result.content
        assert generated.id in result.download_url
