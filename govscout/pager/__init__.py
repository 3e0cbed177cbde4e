"""Page-size-bounded pagination loops."""

from .paginate import PAGE_SIZE, PaginateResult, WindowResult, paginate_all, paginate_window

__all__ = ["PAGE_SIZE", "PaginateResult", "WindowResult", "paginate_all", "paginate_window"]
