from pydantic import BaseModel, Field


class GenerateCodeRequest(BaseModel):
    prompt: str = Field(
        example="A pomodoro timer with start, pause and reset buttons",
        description="Description of the website to build",
    )


class ModifyCodeRequest(BaseModel):
    prompt: str = Field(
        example="Make the buttons round and blue",
        description="The requested change to the current code",
    )
    current_html: str | None = Field(default=None, description="HTML currently in the editor")
    current_css: str | None = Field(default=None, description="CSS currently in the editor")
    current_js: str | None = Field(default=None, description="JavaScript currently in the editor")


class ValidatePromptResponse(BaseModel):
    valid: bool
    reason: str | None = None


class FieldUpdateEvent(BaseModel):
    type: str = "field"
    field: str
    value: str


class GenerateCodeResponse(BaseModel):
    """Final frame of a generation or modification stream."""

    type: str = "result"
    success: bool
    html: str = ""
    css: str = ""
    js: str = ""
    reason: str | None = None
    message: str | None = None
    excerpt: str | None = None


class HealthResponse(BaseModel):
    status: str
