from .router import configure_page_router

__all__ = ["configure_page_router"]
