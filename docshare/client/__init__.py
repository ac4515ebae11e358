from docshare.client.api_client import APIClient, ApiError
from docshare.client.page_controller import CommentThread, DocumentPageController

__all__ = ["APIClient", "ApiError", "CommentThread", "DocumentPageController"]
