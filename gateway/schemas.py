from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

class FetchRequest(BaseModel):
    url: StrictStr

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("URL is required")
        return value

class FetchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html: str = Field(description="Raw fetched body decoded as text")
    fetched_url: str = Field(alias="fetchedUrl", description="The URL as submitted by the caller")

class ErrorResponse(BaseModel):
    error: str
