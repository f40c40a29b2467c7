from pydantic import BaseModel, Field


class UploadUrlRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1, max_length=100)
    is_public: bool = False


class UploadUrlResponse(BaseModel):
    presigned_url: str
    file_url: str
    object_name: str


class DownloadUrlRequest(BaseModel):
    file_url: str = Field(..., min_length=1)


class DownloadUrlResponse(BaseModel):
    url: str
