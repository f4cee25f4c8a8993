#backend/app/models/feedback.py

from pydantic import BaseModel, Field
from typing import List, Literal

TipType = Literal["good", "improve"]

class ATSTip(BaseModel):
    type: TipType
    tip: str

class Tip(ATSTip):
    explanation: str

class ATSSection(BaseModel):
    score: int = Field(..., ge=0, le=100)
    tips: List[ATSTip] = Field(default_factory=list)

class Section(BaseModel):
    score: int = Field(..., ge=0, le=100)
    tips: List[Tip] = Field(default_factory=list)

class Feedback(BaseModel):
    """Structured review of a resume, as produced by the AI reviewer."""
    overallScore: int = Field(..., ge=0, le=100)
    ATS: ATSSection
    toneAndStyle: Section
    content: Section
    structure: Section
    skills: Section

# Detail sections in display order: (section key, title)
DETAIL_SECTIONS = (
    ("toneAndStyle", "Tone & Style"),
    ("content", "Content"),
    ("structure", "Structure"),
    ("skills", "Skills"),
)
