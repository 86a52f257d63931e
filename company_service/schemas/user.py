from pydantic import BaseModel, ConfigDict


class UserLogin(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    username: str
    password: str


class LoginResponse(BaseModel):
    message: str
