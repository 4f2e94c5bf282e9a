__title__ = "comicpack"
__description__ = "Assemble downloaded comic and manga pages into PDF, EPUB, CBZ or CBR files."
__version__ = "1.0.0"
__license__ = "GPLv3"
__intro__ = f"{__title__} v{__version__} - download comic pages and pack them into a single file"
