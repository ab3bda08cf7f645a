# app/utils/pdf_tools.py
from __future__ import annotations

"""
Renderização do documento de Ativo Fixo em PDF.

Propósito
---------
- `DocumentRenderer`: capacidade única "conteúdo → bytes PDF".
- `CanvasRenderer`: desenho programático com ReportLab (canvas), com política
  própria de quebra de página antes do bloco de assinaturas.
- `MarkupRenderer`: HTML (Jinja2) convertido por WeasyPrint; a paginação fica
  a cargo do motor.
- `get_renderer`: seleção pelo nome configurado (`PDF_RENDERER`).

Observações
-----------
- Falhas de renderização não são tratadas aqui; propagam para a rota.
- WeasyPrint depende de bibliotecas do sistema (Pango); por isso é importado
  apenas quando o `MarkupRenderer` efetivamente gera o PDF.
"""

from io import BytesIO
from pathlib import Path
from typing import List, Tuple
import logging

import jinja2
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from app.automations.ativo_fixo_document import DocumentContent

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "automations" / "templates"

PAGE_W, PAGE_H = A4
MARGIN = 20 * mm
TOP = PAGE_H - MARGIN
CONTENT_W = PAGE_W - 2 * MARGIN
COL_FRACTIONS = (0.55, 0.25, 0.20)

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
LEADING = 13
CELL_PAD = 5

# Política do bloco de assinaturas (coordenadas ReportLab, origem embaixo).
SIGNATURE_THRESHOLD = 140  # abaixo disso, assinaturas vão para nova página
SIGNATURE_OFFSET = 60
SIGNATURE_BLOCK_H = 36  # nome (1 linha) + cargo + data
SIGNATURE_FLOOR = MARGIN + SIGNATURE_BLOCK_H + 4
SIGNATURE_BOX_W = CONTENT_W * 0.45
SIGNATURE_MAX_NAME_LINES = 6


class DocumentRenderer:
    """Interface: transforma um `DocumentContent` em bytes de PDF."""

    name = "base"

    def render(self, content: DocumentContent) -> bytes:  # pragma: no cover - interface
        raise NotImplementedError


def wrap_text(text: str, font: str, size: float, width: float) -> List[str]:
    """
    Quebra o texto em linhas que cabem em `width`.

    Usa `simpleSplit` por palavras e corta por caractere as palavras que,
    sozinhas, ainda excedem a largura.
    """
    out: List[str] = []
    for line in simpleSplit(text, font, size, width):
        while len(line) > 1 and stringWidth(line, font, size) > width:
            cut = len(line) - 1
            while cut > 1 and stringWidth(line[:cut], font, size) > width:
                cut -= 1
            out.append(line[:cut])
            line = line[cut:]
        out.append(line)
    return out or [""]


def plan_signature(cursor_y: float, block_height: float = SIGNATURE_BLOCK_H) -> Tuple[bool, float]:
    """
    Decide onde desenhar as assinaturas a partir do cursor após as observações.

    Retorna
    -------
    Tuple[bool, float]
        (iniciar nova página?, y da linha de assinatura). O bloco inteiro
        (`block_height` abaixo da linha) fica sempre acima da margem inferior.
    """
    floor = MARGIN + block_height + 4
    if cursor_y < max(SIGNATURE_THRESHOLD, floor + 20):
        return True, TOP - SIGNATURE_OFFSET
    return False, max(cursor_y - SIGNATURE_OFFSET, floor)


def signature_name_lines(name: str) -> Tuple[float, List[str]]:
    """Nome da assinatura em caixa alta: 10pt, reduzido a 7pt e truncado com '...' se muito longo."""
    text = name.upper()
    size = 10
    lines = wrap_text(text, FONT_BOLD, size, SIGNATURE_BOX_W)
    if len(lines) > 3:
        size = 7
        lines = wrap_text(text, FONT_BOLD, size, SIGNATURE_BOX_W)
    if len(lines) > SIGNATURE_MAX_NAME_LINES:
        lines = lines[:SIGNATURE_MAX_NAME_LINES]
        last = lines[-1]
        while last and stringWidth(last + "...", FONT_BOLD, size) > SIGNATURE_BOX_W:
            last = last[:-1]
        lines[-1] = last + "..."
    return size, lines


class CanvasRenderer(DocumentRenderer):
    """Desenho direto no canvas do ReportLab (A4, Helvetica)."""

    name = "canvas"

    def render(self, content: DocumentContent) -> bytes:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=A4)
        c.setTitle(content.title.title())
        c.setAuthor(content.signatures[0].name)

        y = self._draw_title(c, content.title)
        y = self._draw_header(c, content, y)
        y = self._draw_table(c, content, y - 10)
        y = self._draw_observation(c, content.observation, y - 20)

        y = self._ensure_space(c, y, LEADING * 2)
        c.setFont(FONT_BOLD, 12)
        c.drawString(MARGIN, y - 14, content.urgency_banner)
        y -= 14

        names = [signature_name_lines(slot.name) for slot in content.signatures]
        block_h = max(len(lines) * (size + 2) for size, lines in names) + 24
        new_page, sig_y = plan_signature(y, block_h)
        if new_page:
            c.showPage()
        self._draw_signatures(c, content, names, sig_y)

        c.showPage()
        c.save()
        buf.seek(0)
        data = buf.read()
        logger.info("[pdf_tools] canvas PDF gerado (%d bytes, %d linhas)", len(data), len(content.rows))
        return data

    # ---------------------- blocos ----------------------
    @staticmethod
    def _ensure_space(c: canvas.Canvas, y: float, needed: float) -> float:
        if y - needed < MARGIN:
            c.showPage()
            return TOP
        return y

    @staticmethod
    def _draw_title(c: canvas.Canvas, title: str) -> float:
        y = TOP - 16
        c.setFont(FONT_BOLD, 16)
        c.drawCentredString(PAGE_W / 2, y, title)
        y -= 8
        c.setLineWidth(1.5)
        c.line(MARGIN, y, PAGE_W - MARGIN, y)
        return y - 20

    def _draw_header(self, c: canvas.Canvas, content: DocumentContent, y: float) -> float:
        for label, value in content.header:
            label_w = stringWidth(f"{label}: ", FONT_BOLD, 11)
            lines = wrap_text(value, FONT, 11, CONTENT_W - label_w)
            y = self._ensure_space(c, y, 14)
            c.setFont(FONT_BOLD, 11)
            c.drawString(MARGIN, y, f"{label}:")
            for n, line in enumerate(lines):
                if n:
                    y -= 14
                    y = self._ensure_space(c, y, 0)
                c.setFont(FONT, 11)
                c.drawString(MARGIN + label_w, y, line)
            y -= 16
        return y - 10

    def _draw_table(self, c: canvas.Canvas, content: DocumentContent, y: float) -> float:
        widths = [CONTENT_W * f for f in COL_FRACTIONS]
        header_lines = self._row_lines(content.table_header, widths, FONT_BOLD)
        y = self._draw_cells(c, header_lines, widths, y, bold=True)
        header_h = self._cells_height(header_lines)

        for row in content.rows:
            lines = self._row_lines(row, widths)
            total = max(len(cell) for cell in lines)
            height = self._cells_height(lines)
            if y - height < MARGIN and height <= TOP - MARGIN - header_h:
                c.showPage()
                y = self._draw_cells(c, header_lines, widths, TOP, bold=True)

            # Linha maior que o espaço restante: reparte as linhas entre páginas.
            start = 0
            while start < total:
                fit = int((y - MARGIN - 2 * CELL_PAD) // LEADING)
                if fit < 1:
                    c.showPage()
                    y = self._draw_cells(c, header_lines, widths, TOP, bold=True)
                    continue
                chunk = [cell[start:start + fit] for cell in lines]
                y = self._draw_cells(c, chunk, widths, y)
                start += fit
                if start < total:
                    c.showPage()
                    y = self._draw_cells(c, header_lines, widths, TOP, bold=True)
        return y

    @staticmethod
    def _row_lines(row, widths: List[float], font: str = FONT) -> List[List[str]]:
        return [wrap_text(text, font, 10, w - 2 * CELL_PAD) for text, w in zip(row, widths)]

    @staticmethod
    def _cells_height(lines: List[List[str]]) -> float:
        return max(1, max(len(cell) for cell in lines)) * LEADING + 2 * CELL_PAD

    def _draw_cells(self, c: canvas.Canvas, lines: List[List[str]], widths: List[float], y: float, bold: bool = False) -> float:
        font = FONT_BOLD if bold else FONT
        height = self._cells_height(lines)
        x = MARGIN
        c.setLineWidth(0.5)
        for idx, (cell, w) in enumerate(zip(lines, widths)):
            if bold:
                c.setFillGray(0.94)
                c.rect(x, y - height, w, height, stroke=1, fill=1)
                c.setFillGray(0)
            else:
                c.rect(x, y - height, w, height, stroke=1, fill=0)
            c.setFont(font, 10)
            ty = y - CELL_PAD - 10
            for line in cell:
                if idx == 0:
                    c.drawString(x + CELL_PAD, ty, line)
                else:
                    c.drawCentredString(x + w / 2, ty, line)
                ty -= LEADING
            x += w
        return y - height

    def _draw_observation(self, c: canvas.Canvas, text: str, y: float) -> float:
        y = self._ensure_space(c, y, LEADING * 3)
        c.setFont(FONT_BOLD, 11)
        c.drawString(MARGIN, y, "Observações:")
        y -= 8

        lines: List[str] = []
        for paragraph in text.splitlines() or [""]:
            lines.extend(wrap_text(paragraph, FONT, 10, CONTENT_W - 2 * CELL_PAD))
        box_h = max(60, len(lines) * LEADING + 2 * CELL_PAD)

        if y - box_h < MARGIN and box_h <= TOP - MARGIN:
            c.showPage()
            y = TOP
        c.setFont(FONT, 10)
        if y - box_h >= MARGIN:
            c.setLineWidth(0.5)
            c.rect(MARGIN, y - box_h, CONTENT_W, box_h, stroke=1, fill=0)
            ty = y - CELL_PAD - 10
            for line in lines:
                c.drawString(MARGIN + CELL_PAD, ty, line)
                ty -= LEADING
            return y - box_h

        # Texto maior que uma página: sem moldura, quebrando linha a linha.
        ty = y - CELL_PAD - 10
        for line in lines:
            if ty < MARGIN:
                c.showPage()
                c.setFont(FONT, 10)
                ty = TOP - 10
            c.drawString(MARGIN + CELL_PAD, ty, line)
            ty -= LEADING
        return ty

    @staticmethod
    def _draw_signatures(c: canvas.Canvas, content: DocumentContent, names, y: float) -> None:
        lefts = (MARGIN, PAGE_W - MARGIN - SIGNATURE_BOX_W)
        c.setLineWidth(0.7)
        for x, slot, (size, lines) in zip(lefts, content.signatures, names):
            cx = x + SIGNATURE_BOX_W / 2
            c.line(x, y, x + SIGNATURE_BOX_W, y)
            ty = y
            c.setFont(FONT_BOLD, size)
            for line in lines:
                ty -= size + 2
                c.drawCentredString(cx, ty, line)
            c.setFont(FONT, 9)
            c.drawCentredString(cx, ty - 12, slot.role)
            c.drawCentredString(cx, ty - 24, slot.date_line)


class MarkupRenderer(DocumentRenderer):
    """HTML via template Jinja2 (autoescape) e conversão com WeasyPrint."""

    name = "markup"
    template_name = "ativo_fixo/documento.html"

    def __init__(self, templates_dir: Path = TEMPLATES_DIR) -> None:
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(templates_dir)),
            autoescape=jinja2.select_autoescape(["html"]),
            undefined=jinja2.StrictUndefined,
        )

    def render_html(self, content: DocumentContent) -> str:
        tpl = self.env.get_template(self.template_name)
        return tpl.render(doc=content)

    def render(self, content: DocumentContent) -> bytes:
        from weasyprint import HTML

        html = self.render_html(content)
        data = HTML(string=html).write_pdf()
        logger.info("[pdf_tools] markup PDF gerado (%d bytes, %d linhas)", len(data), len(content.rows))
        return data


_RENDERERS = {
    CanvasRenderer.name: CanvasRenderer,
    MarkupRenderer.name: MarkupRenderer,
}


def get_renderer(name: str) -> DocumentRenderer:
    """
    Instancia o renderizador configurado.

    Exceções
    --------
    ValueError
        Nome desconhecido.
    """
    try:
        return _RENDERERS[name]()
    except KeyError:
        raise ValueError(f"Renderizador de PDF desconhecido: {name!r}") from None
