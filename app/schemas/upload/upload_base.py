from pydantic import BaseModel


class UploadSignature(BaseModel):
    timestamp: int
    signature: str
    api_key: str
    cloud_name: str
    folder: str
