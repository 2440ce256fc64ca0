"""Like, pass and introduction request schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LikeCreate(BaseModel):
    """Body of ``POST /likes``."""

    liked_id: Any = Field(None, alias="likedId", description="Id of the user being liked")

    model_config = ConfigDict(populate_by_name=True)


class PassCreate(BaseModel):
    """Body of ``POST /passes``."""

    passed_id: Any = Field(None, alias="passedId", description="Id of the user being passed on")

    model_config = ConfigDict(populate_by_name=True)


class IntroCreate(BaseModel):
    """Body of ``POST /likes/{userId}/intro``."""

    intro_message: Any = Field(None, alias="introMessage", description="One-time introduction text")

    model_config = ConfigDict(populate_by_name=True)
