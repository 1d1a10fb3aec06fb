"""
Format renderers.

Each renderer builds a format-native skeleton for a structural document
(front matter, optional table of contents, one block per section) and
then runs its format-specific passes over the text:

- PDF: layout, metadata, typography, navigation
- DOCX: style definitions, table formatting, collaboration markers
- HTML: accessibility, interactivity, responsive styles, SEO metadata
- Markdown: whitespace normalization, table alignment, front matter

Output is a textual representation of the target format, not a binary
file. Document and section titles appear verbatim in every format, escaped
only where the format's own syntax requires it (HTML and DOCX entities,
PDF string delimiters).
"""

import html
import re
from datetime import datetime
from typing import Callable

from .models import ExportFormat, StructuralDocument, StructuralSection
from .options import FormatOptimizationOptions

DEFAULT_SECTOR_LABEL = "Investment Analysis"
GENERATOR_NAME = "Deal Screening Engine"
REVIEW_NOTE = "Review note: Document generated automatically"

# Page dimensions (width, height) in PDF points and DOCX twips
PDF_PAGE_POINTS = {"A4": (595, 842), "Letter": (612, 792), "Legal": (612, 1008)}
DOCX_PAGE_TWIPS = {"A4": (11906, 16838), "Letter": (12240, 15840), "Legal": (12240, 20160)}

_TABLE_SEPARATOR = re.compile(r"^\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?$")
_BULLET = re.compile(r"^[-*]\s+(.*)$")
_NUMBERED = re.compile(r"^\d+\.\s+(.*)$")
_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"\*(.+?)\*")

Pass = Callable[[str, StructuralDocument, FormatOptimizationOptions], str]


def anchor_for(title: str) -> str:
    """Markdown/HTML anchor slug for a heading, e.g. 'Deal Overview' -> 'deal-overview'."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def section_label(number: int, section: StructuralSection, options: FormatOptimizationOptions) -> str:
    """Heading text for a section, numbered when section numbering is on."""
    if options.structure.section_numbering:
        return f"{number}. {section.title}"
    return section.title


def _page_size(table: dict, options: FormatOptimizationOptions) -> tuple[int, int]:
    width, height = table[options.layout.page_size]
    if options.layout.orientation == "landscape":
        return height, width
    return width, height


def _split_blocks(content: str) -> list[list[str]]:
    """Split text into blocks of non-empty lines separated by blank lines."""
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in content.splitlines():
        if line.strip():
            current.append(line.rstrip())
        elif current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)
    return blocks


def _is_table(block: list[str]) -> bool:
    return all(line.lstrip().startswith("|") for line in block)


def _table_rows(block: list[str]) -> list[list[str]]:
    """Parse pipe table lines into cell rows, dropping separator rows."""
    rows = []
    for line in block:
        if _TABLE_SEPARATOR.match(line.strip()):
            continue
        cells = line.strip().strip("|").split("|")
        rows.append([c.strip() for c in cells])
    return rows


def _pdf_string(text: str) -> str:
    """Escape text for a PDF literal string."""
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _strip_inline(text: str) -> str:
    text = _BOLD.sub(r"\1", text)
    return _ITALIC.sub(r"\1", text)


def _insert_before(content: str, marker: str, block: str) -> str:
    return content.replace(marker, block + marker, 1)


class Renderer:
    """Base renderer: build a skeleton, then apply the format's passes in order."""

    export_format: ExportFormat

    def render(
        self,
        document: StructuralDocument,
        options: FormatOptimizationOptions,
        generated_at: datetime,
    ) -> str:
        content = self.build_structure(document, options, generated_at)
        for apply_pass in self.passes():
            content = apply_pass(content, document, options)
        return content

    def build_structure(
        self,
        document: StructuralDocument,
        options: FormatOptimizationOptions,
        generated_at: datetime,
    ) -> str:
        raise NotImplementedError

    def passes(self) -> list[Pass]:
        return []


# =============================================================================
# PDF
# =============================================================================

class PdfRenderer(Renderer):
    """PDF-like textual object stream."""

    export_format = ExportFormat.PDF

    CONTENT_MARKER = "<<PDF CONTENT>>"

    def build_structure(self, document, options, generated_at):
        sector = document.sector or DEFAULT_SECTOR_LABEL
        parts = [
            "%PDF-1.4\n"
            f"% Professional PDF Document - {document.title}\n"
            "\n"
            "<<PDF METADATA>>\n"
            f"/Title ({_pdf_string(document.title)})\n"
            f"/Author ({GENERATOR_NAME})\n"
            f"/Subject ({_pdf_string(sector)})\n"
            "/Creator (screening-engine)\n"
            f"/CreationDate ({generated_at.isoformat()})\n"
            "\n"
            f"{self.CONTENT_MARKER}\n"
        ]

        if options.structure.include_executive_summary:
            parts.append(self._cover_page(document, options, generated_at))

        if options.structure.include_table_of_contents:
            parts.append(self._table_of_contents(document, options))

        for number, section in enumerate(document.sections, start=1):
            parts.append(self._section(number, section, options))

        return "".join(parts)

    def passes(self):
        return [
            self._apply_layout,
            self._apply_metadata,
            self._apply_typography,
            self._apply_navigation,
        ]

    def _cover_page(self, document, options, generated_at) -> str:
        width, height = _page_size(PDF_PAGE_POINTS, options)
        title_size = options.typography.heading_scale[0]
        sector = document.sector or DEFAULT_SECTOR_LABEL
        return (
            "\n<<PDF COVER PAGE>>\n"
            f"/MediaBox [0 0 {width} {height}]\n"
            "BT\n"
            f"/F1 {title_size} Tf\n"
            f"100 {height - 92} Td\n"
            f"({_pdf_string(document.title)}) Tj\n"
            "0 -50 Td\n"
            "/F1 14 Tf\n"
            f"({_pdf_string(sector)}) Tj\n"
            "0 -30 Td\n"
            f"({generated_at.date().isoformat()}) Tj\n"
            "0 -30 Td\n"
            f"({options.industry.confidentiality_level.upper()}) Tj\n"
            "ET\n"
            "\n<< Page Break >>\n"
        )

    def _table_of_contents(self, document, options) -> str:
        lines = [
            "\n<<PDF TABLE OF CONTENTS>>\n",
            "BT\n/F1 18 Tf\n100 750 Td\n(Table of Contents) Tj\nET\n",
        ]
        for index, section in enumerate(document.sections):
            label = f"{index + 1}. {section.title}"
            lines.append(f"BT\n/F1 12 Tf\n100 {700 - index * 20} Td\n({_pdf_string(label)}) Tj\nET\n")
        lines.append("\n<< Page Break >>\n")
        return "".join(lines)

    def _section(self, number, section, options) -> str:
        heading_size = options.typography.heading_scale[1]
        return (
            f"\n<<PDF SECTION {number}>>\n"
            "BT\n"
            f"/F1 {heading_size} Tf\n"
            "100 750 Td\n"
            f"({_pdf_string(section_label(number, section, options))}) Tj\n"
            "ET\n"
            "\n"
            "BT\n"
            f"/F1 {options.typography.font_size} Tf\n"
            "100 720 Td\n"
            f"{self._text_commands(section.content)}\n"
            "ET\n"
            "\n<< Section Break >>\n"
        )

    @staticmethod
    def _text_commands(content: str) -> str:
        """Convert markdown-like text to PDF text show commands."""
        commands = []
        for line in content.splitlines():
            text = line.strip()
            if not text or _TABLE_SEPARATOR.match(text):
                continue
            heading = _HEADING.match(text)
            if heading:
                text = heading.group(2)
            text = _strip_inline(text).strip("|").replace(" | ", "    ")
            commands.append(f"({_pdf_string(text)}) Tj 0 -15 Td")
        return "\n".join(commands)

    def _apply_layout(self, content, document, options):
        width, height = _page_size(PDF_PAGE_POINTS, options)
        margins = options.layout.margins
        spacing = options.layout.spacing
        block = (
            "<<PDF LAYOUT>>\n"
            f"/MediaBox [0 0 {width} {height}]\n"
            f"/Orientation ({options.layout.orientation})\n"
            f"/Margins [{margins.top * 72:g} {margins.right * 72:g} "
            f"{margins.bottom * 72:g} {margins.left * 72:g}]\n"
            f"/Columns {options.layout.columns}\n"
            f"/Spacing << /Paragraph {spacing.paragraphs:g} /Section {spacing.sections:g} "
            f"/List {spacing.lists:g} >>\n"
            "\n"
        )
        return _insert_before(content, self.CONTENT_MARKER, block)

    def _apply_metadata(self, content, document, options):
        policy = options.export_options
        industry = options.industry
        lines = [
            f"/Keywords (investment, analysis, {_pdf_string(document.sector or DEFAULT_SECTOR_LABEL)})",
            f"/Confidentiality ({industry.confidentiality_level.upper()})",
            f"/Compliance ({industry.compliance_level})",
            f"/Quality ({policy.quality})",
            f"/Compression {str(policy.compression).lower()}",
            "/Permissions << "
            f"/Print {str(policy.allow_printing).lower()} "
            f"/Copy {str(policy.allow_copying).lower()} "
            f"/Modify {str(policy.allow_editing).lower()} >>",
        ]
        if policy.watermark:
            lines.append(f"/Watermark ({_pdf_string(policy.watermark)})")
        if policy.protected:
            lines.append("/Encrypt << /Filter /Standard /V 2 >>")
        block = "<<PDF DOCUMENT INFO>>\n" + "\n".join(lines) + "\n\n"
        return _insert_before(content, self.CONTENT_MARKER, block)

    def _apply_typography(self, content, document, options):
        typography = options.typography
        base_font = typography.font_family.split(",")[0].strip().replace(" ", "-")
        scale = " ".join(f"{size:g}" for size in typography.heading_scale)
        block = (
            "<<PDF TYPOGRAPHY>>\n"
            f"/F1 << /Type /Font /Subtype /Type1 /BaseFont /{base_font} >>\n"
            f"/FontSize {typography.font_size:g}\n"
            f"/Leading {typography.font_size * typography.line_height:.1f}\n"
            f"/HeadingScale [{scale}]\n"
            "\n"
        )
        return _insert_before(content, self.CONTENT_MARKER, block)

    def _apply_navigation(self, content, document, options):
        structure = options.structure
        parts = [content, "\n<<PDF OUTLINES>>\n"]
        for number, section in enumerate(document.sections, start=1):
            parts.append(f"/Outline ({_pdf_string(section_label(number, section, options))}) /Dest /section-{number}\n")
        if structure.page_numbers:
            parts.append("\n<<PDF PAGE NUMBERS>>\n/Position (bottom-center) /Format (Page %d of %d)\n")
        if structure.headers:
            parts.append(f"\n<<PDF HEADER>>\n({_pdf_string(document.title)})\n")
        if structure.footers:
            parts.append(
                f"\n<<PDF FOOTER>>\n({options.industry.confidentiality_level.upper()})\n"
            )
        parts.append("\n%%EOF\n")
        return "".join(parts)


# =============================================================================
# DOCX
# =============================================================================

class DocxRenderer(Renderer):
    """WordprocessingML-like document body."""

    export_format = ExportFormat.DOCX

    DOCUMENT_OPEN = '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'

    def build_structure(self, document, options, generated_at):
        width, height = _page_size(DOCX_PAGE_TWIPS, options)
        margins = options.layout.margins
        parts = [
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n',
            f"{self.DOCUMENT_OPEN}\n",
            "  <w:body>\n",
            "    <w:sectPr>\n"
            f'      <w:pgSz w:w="{width}" w:h="{height}" w:orient="{options.layout.orientation}"/>\n'
            f'      <w:pgMar w:top="{int(margins.top * 1440)}" w:right="{int(margins.right * 1440)}" '
            f'w:bottom="{int(margins.bottom * 1440)}" w:left="{int(margins.left * 1440)}"/>\n'
            f'      <w:cols w:num="{options.layout.columns}"/>\n'
            "    </w:sectPr>\n",
            self._paragraph(document.title, "Title", escape=True),
        ]

        if options.structure.include_table_of_contents:
            parts.append(self._paragraph("Table of Contents", "TOCHeading"))
            parts.append('    <w:p><w:fldSimple w:instr="TOC \\o &quot;1-2&quot; \\h"/></w:p>\n')

        for number, section in enumerate(document.sections, start=1):
            parts.append(self._paragraph(section_label(number, section, options), "Heading1", escape=True))
            parts.append(self._content(section.content))

        parts.append("  </w:body>\n</w:document>\n")
        return "".join(parts)

    def passes(self):
        return [
            self._apply_styles,
            self._apply_table_formatting,
            self._apply_page_furniture,
            self._apply_collaboration,
        ]

    @staticmethod
    def _paragraph(text: str, style: str = "", escape: bool = False) -> str:
        if escape:
            text = html.escape(text, quote=False)
        style_xml = f'<w:pPr><w:pStyle w:val="{style}"/></w:pPr>' if style else ""
        return f"    <w:p>{style_xml}<w:r><w:t>{text}</w:t></w:r></w:p>\n"

    def _content(self, content: str) -> str:
        parts = []
        for block in _split_blocks(content):
            if _is_table(block):
                rows = _table_rows(block)
                if rows:
                    parts.append(self._table(rows))
                continue
            for line in block:
                text = line.strip()
                heading = _HEADING.match(text)
                bullet = _BULLET.match(text)
                numbered = _NUMBERED.match(text)
                if heading:
                    parts.append(self._paragraph(_strip_inline(heading.group(2)), "Heading2", escape=True))
                elif bullet:
                    parts.append(self._paragraph(_strip_inline(bullet.group(1)), "ListBullet", escape=True))
                elif numbered:
                    parts.append(self._paragraph(_strip_inline(numbered.group(1)), "ListNumber", escape=True))
                else:
                    parts.append(self._paragraph(_strip_inline(text), escape=True))
        return "".join(parts)

    @staticmethod
    def _table(rows: list[list[str]]) -> str:
        lines = ["    <w:tbl>\n"]
        for row in rows:
            cells = "".join(
                f"<w:tc><w:p><w:r><w:t>{html.escape(_strip_inline(cell), quote=False)}</w:t></w:r></w:p></w:tc>"
                for cell in row
            )
            lines.append(f"      <w:tr>{cells}</w:tr>\n")
        lines.append("    </w:tbl>\n")
        return "".join(lines)

    def _apply_styles(self, content, document, options):
        typography = options.typography
        scale = typography.heading_scale
        font = html.escape(typography.font_family.split(",")[0].strip())
        styles = (
            "  <w:styles>\n"
            '    <w:style w:type="paragraph" w:styleId="Normal">'
            f'<w:name w:val="Normal"/><w:rPr><w:rFonts w:ascii="{font}"/>'
            f'<w:sz w:val="{int(typography.font_size * 2)}"/></w:rPr>'
            f'<w:pPr><w:spacing w:after="{int(options.layout.spacing.paragraphs * 20)}" '
            f'w:line="{int(typography.line_height * 240)}"/></w:pPr></w:style>\n'
            '    <w:style w:type="paragraph" w:styleId="Title">'
            f'<w:name w:val="Title"/><w:rPr><w:sz w:val="{int(scale[0] * 2)}"/><w:b/></w:rPr></w:style>\n'
            '    <w:style w:type="paragraph" w:styleId="Heading1">'
            f'<w:name w:val="Heading 1"/><w:rPr><w:sz w:val="{int(scale[1] * 2)}"/><w:b/></w:rPr></w:style>\n'
            '    <w:style w:type="paragraph" w:styleId="Heading2">'
            f'<w:name w:val="Heading 2"/><w:rPr><w:sz w:val="{int(scale[min(2, len(scale) - 1)] * 2)}"/><w:b/></w:rPr></w:style>\n'
            '    <w:style w:type="table" w:styleId="TableGrid"><w:name w:val="Table Grid"/></w:style>\n'
            "  </w:styles>\n"
        )
        return content.replace(f"{self.DOCUMENT_OPEN}\n", f"{self.DOCUMENT_OPEN}\n{styles}", 1)

    def _apply_table_formatting(self, content, document, options):
        table_props = (
            "    <w:tbl>\n"
            '      <w:tblPr><w:tblStyle w:val="TableGrid"/><w:tblW w:w="5000" w:type="pct"/>'
            '<w:tblHeader/></w:tblPr>\n'
        )
        return content.replace("    <w:tbl>\n", table_props)

    def _apply_page_furniture(self, content, document, options):
        structure = options.structure
        furniture = []
        if structure.headers:
            furniture.append(f'      <w:headerReference w:type="default" w:title="{html.escape(document.title)}"/>\n')
        if structure.footers:
            furniture.append(
                '      <w:footerReference w:type="default" '
                f'w:text="{options.industry.confidentiality_level.upper()}"/>\n'
            )
        if structure.page_numbers:
            furniture.append('      <w:pgNumType w:start="1"/>\n')
        if not furniture:
            return content
        return content.replace("    </w:sectPr>\n", "".join(furniture) + "    </w:sectPr>\n", 1)

    def _apply_collaboration(self, content, document, options):
        policy = options.export_options
        markers = [
            '    <w:commentRangeStart w:id="0"/>\n',
            f"    <w:r><w:t>{REVIEW_NOTE}</w:t></w:r>\n",
            '    <w:commentRangeEnd w:id="0"/>\n',
            f'    <w:comment w:id="0" w:author="{GENERATOR_NAME}"><w:p><w:r><w:t>{REVIEW_NOTE}</w:t></w:r></w:p></w:comment>\n',
        ]
        if not policy.allow_editing:
            markers.append('    <w:documentProtection w:edit="readOnly" w:enforcement="1"/>\n')
        else:
            markers.append('    <w:trackRevisions/>\n')
        return content.replace("  </w:body>", "".join(markers) + "  </w:body>", 1)


# =============================================================================
# HTML
# =============================================================================

class HtmlRenderer(Renderer):
    """Standalone HTML page."""

    export_format = ExportFormat.HTML

    def build_structure(self, document, options, generated_at):
        sector = document.sector or DEFAULT_SECTOR_LABEL
        confidentiality = options.industry.confidentiality_level.upper()
        generated = generated_at.date().isoformat()
        title = html.escape(document.title, quote=False)

        parts = [
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            "<head>\n"
            '  <meta charset="UTF-8">\n'
            f"  <title>{title}</title>\n"
            f"  <style>\n{self._styles(options)}  </style>\n"
            "</head>\n"
            "<body>\n"
            '  <div class="document-container">\n'
            '    <header class="document-header">\n'
            f"      <h1>{title}</h1>\n"
            '      <div class="document-meta">\n'
            f'        <span class="sector">{html.escape(sector)}</span>\n'
            f'        <span class="date">{generated}</span>\n'
            f'        <span class="confidentiality">{confidentiality}</span>\n'
            "      </div>\n"
            "    </header>\n"
        ]

        if options.structure.include_table_of_contents:
            items = "".join(
                f'        <li><a href="#section-{n}">{html.escape(section.title, quote=False)}</a></li>\n'
                for n, section in enumerate(document.sections, start=1)
            )
            parts.append(
                '    <nav class="table-of-contents">\n'
                "      <h2>Table of Contents</h2>\n"
                f"      <ul>\n{items}      </ul>\n"
                "    </nav>\n"
            )

        parts.append('    <main class="document-content">\n')
        for number, section in enumerate(document.sections, start=1):
            parts.append(
                f'    <section id="section-{number}" class="document-section">\n'
                f"      <h2>{html.escape(section_label(number, section, options), quote=False)}</h2>\n"
                '      <div class="section-content">\n'
                f"{self._content(section.content)}"
                "      </div>\n"
                "    </section>\n"
            )
        parts.append("    </main>\n")

        if options.structure.footers:
            parts.append(
                '    <footer class="document-footer">\n'
                f"      <p>Generated by {GENERATOR_NAME} | {generated} | {confidentiality}</p>\n"
                "    </footer>\n"
            )

        parts.append("  </div>\n</body>\n</html>\n")
        return "".join(parts)

    def passes(self):
        return [
            self._apply_accessibility,
            self._apply_interactivity,
            self._apply_responsive,
            self._apply_seo,
        ]

    @staticmethod
    def _inline(text: str) -> str:
        text = html.escape(text, quote=False)
        text = _BOLD.sub(r"<strong>\1</strong>", text)
        return _ITALIC.sub(r"<em>\1</em>", text)

    def _content(self, content: str) -> str:
        parts = []
        for block in _split_blocks(content):
            if _is_table(block):
                rows = _table_rows(block)
                if not rows:
                    continue
                header, body = rows[0], rows[1:]
                head_cells = "".join(f"<th>{self._inline(c)}</th>" for c in header)
                body_rows = "".join(
                    "<tr>" + "".join(f"<td>{self._inline(c)}</td>" for c in row) + "</tr>"
                    for row in body
                )
                parts.append(
                    f"        <table><thead><tr>{head_cells}</tr></thead>"
                    f"<tbody>{body_rows}</tbody></table>\n"
                )
                continue

            paragraph: list[str] = []
            list_tag = None
            items: list[str] = []

            def flush_paragraph():
                if paragraph:
                    parts.append("        <p>" + "<br>".join(paragraph) + "</p>\n")
                    paragraph.clear()

            def flush_list():
                nonlocal list_tag
                if list_tag:
                    lis = "".join(f"<li>{item}</li>" for item in items)
                    parts.append(f"        <{list_tag}>{lis}</{list_tag}>\n")
                    items.clear()
                    list_tag = None

            for line in block:
                text = line.strip()
                heading = _HEADING.match(text)
                bullet = _BULLET.match(text)
                numbered = _NUMBERED.match(text)
                if heading:
                    flush_paragraph()
                    flush_list()
                    level = min(6, len(heading.group(1)) + 2)
                    parts.append(f"        <h{level}>{self._inline(heading.group(2))}</h{level}>\n")
                elif bullet or numbered:
                    flush_paragraph()
                    tag = "ul" if bullet else "ol"
                    if list_tag != tag:
                        flush_list()
                        list_tag = tag
                    items.append(self._inline((bullet or numbered).group(1)))
                else:
                    flush_list()
                    paragraph.append(self._inline(text))
            flush_paragraph()
            flush_list()
        return "".join(parts)

    @staticmethod
    def _styles(options: FormatOptimizationOptions) -> str:
        typography = options.typography
        spacing = options.layout.spacing
        return (
            "    body {\n"
            f"      font-family: {typography.font_family};\n"
            f"      font-size: {typography.font_size:g}pt;\n"
            f"      line-height: {typography.line_height:g};\n"
            "      margin: 0;\n"
            "      padding: 20px;\n"
            "      background-color: #f5f5f5;\n"
            "    }\n"
            "    .document-container { max-width: 800px; margin: 0 auto; background: white; padding: 40px; }\n"
            "    .document-header { border-bottom: 2px solid #333; padding-bottom: 20px; margin-bottom: 30px; }\n"
            f"    .document-header h1 {{ font-size: {typography.heading_scale[0]:g}pt; margin: 0 0 10px 0; }}\n"
            "    .document-meta { display: flex; gap: 20px; color: #666; }\n"
            "    .table-of-contents { background: #f8f9fa; padding: 20px; border-left: 4px solid #007bff; }\n"
            f"    .document-section {{ margin-bottom: {spacing.sections * 2:g}px; }}\n"
            f"    .document-section h2 {{ font-size: {typography.heading_scale[1]:g}pt; border-bottom: 1px solid #ddd; }}\n"
            f"    .section-content p {{ margin: 0 0 {spacing.paragraphs:g}pt 0; }}\n"
            "    .section-content table { border-collapse: collapse; }\n"
            "    .section-content th, .section-content td { border: 1px solid #ddd; padding: 4px 8px; }\n"
            "    .document-footer { border-top: 1px solid #ddd; margin-top: 40px; text-align: center; color: #666; }\n"
            "    @media print {\n"
            "      body { background: white; }\n"
            "    }\n"
        )

    def _apply_accessibility(self, content, document, options):
        content = re.sub(r"<h([1-6])>", r'<h\1 tabindex="0">', content)
        content = content.replace("<table>", '<table role="table">')
        content = content.replace(
            '<nav class="table-of-contents">',
            '<nav class="table-of-contents" aria-label="Table of Contents">',
        )
        content = content.replace('<main class="document-content">', '<main class="document-content" role="main">')
        return content

    def _apply_interactivity(self, content, document, options):
        script = (
            "  <script>\n"
            "    function searchDocument(term) {\n"
            "      const needle = term.toLowerCase();\n"
            "      document.querySelectorAll('.document-section').forEach(function (section) {\n"
            "        section.hidden = needle && !section.textContent.toLowerCase().includes(needle);\n"
            "      });\n"
            "    }\n"
            "    document.addEventListener('DOMContentLoaded', function () {\n"
            "      document.querySelectorAll('.table-of-contents a').forEach(function (link) {\n"
            "        link.addEventListener('click', function (e) {\n"
            "          e.preventDefault();\n"
            "          document.querySelector(this.getAttribute('href')).scrollIntoView({ behavior: 'smooth' });\n"
            "        });\n"
            "      });\n"
            "    });\n"
            "  </script>\n"
        )
        search = (
            '    <input type="search" class="document-search" aria-label="Search document" '
            'oninput="searchDocument(this.value)">\n'
        )
        content = content.replace("</head>", script + "</head>", 1)
        return content.replace("    </header>\n", "    </header>\n" + search, 1)

    def _apply_responsive(self, content, document, options):
        viewport = '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        media = (
            "    @media (max-width: 768px) {\n"
            "      .document-container { padding: 16px; }\n"
            "      .document-meta { flex-direction: column; gap: 4px; }\n"
            "      .section-content table { display: block; overflow-x: auto; }\n"
            "    }\n"
        )
        content = content.replace('  <meta charset="UTF-8">\n', '  <meta charset="UTF-8">\n' + viewport, 1)
        return content.replace("  </style>", media + "  </style>", 1)

    def _apply_seo(self, content, document, options):
        sector = html.escape(document.sector or DEFAULT_SECTOR_LABEL)
        title = html.escape(document.title)
        meta = (
            f'  <meta name="description" content="{title} - Investment Analysis Document">\n'
            f'  <meta name="keywords" content="investment, analysis, {sector}">\n'
            f'  <meta property="og:title" content="{title}">\n'
            '  <meta property="og:type" content="article">\n'
        )
        if options.industry.confidentiality_level != "internal":
            meta += '  <meta name="robots" content="noindex, nofollow">\n'
        return content.replace("  <style>", meta + "  <style>", 1)


# =============================================================================
# Markdown
# =============================================================================

class MarkdownRenderer(Renderer):
    """GitHub-flavoured Markdown with YAML front matter."""

    export_format = ExportFormat.MARKDOWN

    def build_structure(self, document, options, generated_at):
        sector = document.sector or DEFAULT_SECTOR_LABEL
        confidentiality = options.industry.confidentiality_level.upper()
        parts = [
            f"# {document.title}\n\n"
            "---\n\n"
            "**Document Information**\n"
            f"- **Sector:** {sector}\n"
            f"- **Generated:** {generated_at.date().isoformat()}\n"
            f"- **Confidentiality:** {confidentiality}\n"
            f"- **Word Count:** {document.total_words}\n\n"
            "---\n\n"
        ]

        if options.structure.include_table_of_contents:
            parts.append("## Table of Contents\n\n")
            for number, section in enumerate(document.sections, start=1):
                parts.append(f"{number}. [{section.title}](#{anchor_for(section.title)})\n")
            parts.append("\n---\n\n")

        for number, section in enumerate(document.sections, start=1):
            parts.append(
                f"## {section_label(number, section, options)} {{#{anchor_for(section.title)}}}\n\n"
                f"{section.content}\n\n"
                "---\n\n"
            )

        if options.structure.footers:
            parts.append(f"*{confidentiality} - Generated by {GENERATOR_NAME}*\n")

        return "".join(parts)

    def passes(self):
        return [
            self._normalize_whitespace,
            self._align_tables,
            self._add_front_matter,
        ]

    def _normalize_whitespace(self, content, document, options):
        lines = [line.rstrip() for line in content.splitlines()]
        text = "\n".join(lines)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip("\n") + "\n"

    def _align_tables(self, content, document, options):
        output: list[str] = []
        table: list[str] = []

        def flush():
            if table:
                output.extend(self._aligned(table))
                table.clear()

        for line in content.split("\n"):
            if line.startswith("|"):
                table.append(line)
            else:
                flush()
                output.append(line)
        flush()
        return "\n".join(output)

    @staticmethod
    def _aligned(block: list[str]) -> list[str]:
        rows = [[c.strip() for c in line.strip().strip("|").split("|")] for line in block]
        columns = max(len(row) for row in rows)
        widths = [3] * columns
        for line, row in zip(block, rows):
            if _TABLE_SEPARATOR.match(line.strip()):
                continue
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))

        aligned = []
        for line, row in zip(block, rows):
            row = row + [""] * (columns - len(row))
            if _TABLE_SEPARATOR.match(line.strip()):
                cells = ["-" * w for w in widths]
            else:
                cells = [cell.ljust(w) for cell, w in zip(row, widths)]
            aligned.append("| " + " | ".join(cells) + " |")
        return aligned

    def _add_front_matter(self, content, document, options):
        title = document.title.replace("\\", "\\\\").replace('"', '\\"')
        front_matter = (
            "---\n"
            f'title: "{title}"\n'
            f"author: {GENERATOR_NAME}\n"
            f"sector: {document.sector or DEFAULT_SECTOR_LABEL}\n"
            f"confidentiality: {options.industry.confidentiality_level}\n"
            f"wordcount: {document.total_words}\n"
            "---\n\n"
        )
        return front_matter + content


def default_renderers() -> dict[ExportFormat, Renderer]:
    """One renderer per supported format."""
    return {
        ExportFormat.PDF: PdfRenderer(),
        ExportFormat.DOCX: DocxRenderer(),
        ExportFormat.HTML: HtmlRenderer(),
        ExportFormat.MARKDOWN: MarkdownRenderer(),
    }
