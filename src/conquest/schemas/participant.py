from pydantic import BaseModel, ConfigDict, Field


class AttributesPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    might: int = Field(..., ge=0, description="Martial prowess")
    intellect: int = Field(..., ge=0, description="Strategic insight")
    leadership: int = Field(..., ge=0, description="Command of troops")
    statecraft: int = Field(..., ge=0, description="Administration")
    charisma: int = Field(..., ge=0, description="Persuasion and morale")
    destiny: int = Field(..., ge=0, description="Fortune")


class AttackerPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    attributes: AttributesPayload = Field(..., description="The six ruler attributes")
    troops: int = Field(..., ge=0, description="Troops committed to the battle")
    level: int = Field(..., ge=1, description="Ruler level")
