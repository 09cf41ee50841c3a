from pydantic import BaseModel, ConfigDict, Field


class CategoryRecord(BaseModel):
    id: int | None = Field(..., description="Row identifier")
    name: str = Field(..., description="Category name")
    description: str | None = Field(..., description="Optional description")

    model_config = ConfigDict(from_attributes=True)
