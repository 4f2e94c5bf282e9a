from .assembler_base import AssemblerBase, AssemblerState, create_assembler, get_assembler
from .pdf_assembler import PDFAssembler
from .epub_assembler import EPUBAssembler
from .cbz_assembler import CBZAssembler
from .cbr_assembler import CBRAssembler

__all__ = [
    "AssemblerBase",
    "AssemblerState",
    "create_assembler",
    "get_assembler",
    "PDFAssembler",
    "EPUBAssembler",
    "CBZAssembler",
    "CBRAssembler",
]
