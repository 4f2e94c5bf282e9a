from comicpack.domain.comic import Comic, ComicResult
from comicpack.pipeline.maker import ComicMaker, make_comic

__all__ = [
    "Comic",
    "ComicResult",
    "ComicMaker",
    "make_comic",
]
