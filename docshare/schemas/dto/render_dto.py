import base64
from typing import List, Optional
from pydantic import BaseModel

from docshare.schemas.dto.file_record_dto import FileRecordDTO


class RenderedPage(BaseModel):
    """One rasterised page, PNG encoded."""
    page_number: int
    width: int
    height: int
    png: bytes

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png).decode("ascii")


class RenderedPageDTO(BaseModel):
    page_number: int
    width: int
    height: int
    image: str

    @classmethod
    def from_page(cls, page: RenderedPage) -> "RenderedPageDTO":
        return cls(
            page_number=page.page_number,
            width=page.width,
            height=page.height,
            image=page.to_data_url(),
        )


class DocumentViewDTO(BaseModel):
    file: FileRecordDTO
    kind: str
    download_url: str
    page_count: int = 0
    pages: List[RenderedPageDTO] = []
    message: Optional[str] = None
