"""
Heuristic resume field extraction.
Turns plain resume text into skills, contact details, one experience entry and
one education entry using keyword and regex matching only.
"""
import re
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field


# ============================================================================
# Pydantic Schemas for Extracted Output
# ============================================================================

class ContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class ExperienceEntry(BaseModel):
    years: str  # "2019" or "2018 - 2022"
    description: str


class EducationEntry(BaseModel):
    degree: str
    description: str


class ExtractedResume(BaseModel):
    """Structured candidate record derived from one document"""
    skills: List[str] = Field(default_factory=list)
    contact: ContactInfo = Field(default_factory=ContactInfo)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    summary: str = ""


# ============================================================================
# Extraction Configuration
# ============================================================================

DEFAULT_SKILL_KEYWORDS = (
    "javascript", "python", "java", "react", "node", "sql", "html", "css",
    "aws", "docker", "kubernetes", "git", "agile", "scrum", "mongodb",
    "postgresql", "mysql", "typescript", "angular", "vue", "express",
    "spring", "django", "flask", "laravel", "php", "ruby", "go",
    "communication", "leadership", "teamwork", "problem solving",
    "project management", "analytical", "creative", "organizational",
)


class ExtractionConfig(BaseModel):
    """Immutable vocabulary and section-header synonyms used by the extractor."""
    skill_keywords: Tuple[str, ...] = DEFAULT_SKILL_KEYWORDS
    skills_headers: Tuple[str, ...] = ("skills", "technical skills", "competencies")
    experience_headers: Tuple[str, ...] = ("experience", "work experience", "employment")
    education_headers: Tuple[str, ...] = ("education", "academic background")
    section_max_chars: int = 500
    experience_description_chars: int = 200
    education_description_chars: int = 100

    class Config:
        frozen = True


DEFAULT_CONFIG = ExtractionConfig()

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b")
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
DEGREE_PATTERN = re.compile(r"\b(bachelor|master|phd|associate|diploma|certificate)", re.IGNORECASE)
# Next section starts at a line of capitals followed by a colon, e.g. "WORK HISTORY:"
NEXT_SECTION_PATTERN = re.compile(r"\n\s*[A-Z][A-Z\s]{2,}:")


# ============================================================================
# Core Functions
# ============================================================================

def normalize_lines(text: str) -> List[str]:
    """Split into trimmed, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def find_section_text(text: str, section_headers: Tuple[str, ...], max_chars: int = 500) -> Optional[str]:
    """
    Locate a section by its header synonyms.

    Headers are tried in the order given; the first one present anywhere in the
    lowercased text wins. The section runs from just after the header to the
    next all-caps "HEADER:" line or max_chars, whichever is nearer.
    Returns None when no header occurs.
    """
    lower_text = text.lower()

    for header in section_headers:
        header_index = lower_text.find(header.lower())
        if header_index == -1:
            continue

        after_header = text[header_index + len(header):]
        section_end = min(len(after_header), max_chars)
        next_section = NEXT_SECTION_PATTERN.search(after_header)
        if next_section:
            section_end = min(section_end, next_section.start())
        return after_header[:section_end]

    return None


def extract_skills(text: str, config: ExtractionConfig = DEFAULT_CONFIG) -> List[str]:
    """Section matches first, then whole-document matches, each in vocabulary order."""
    skills: List[str] = []

    skills_section = find_section_text(text, config.skills_headers, config.section_max_chars)
    if skills_section:
        lower_section = skills_section.lower()
        for keyword in config.skill_keywords:
            if keyword.lower() in lower_section:
                skills.append(keyword)

    lower_text = text.lower()
    for keyword in config.skill_keywords:
        if keyword not in skills and keyword.lower() in lower_text:
            skills.append(keyword)

    return skills


def extract_contact(text: str) -> ContactInfo:
    """First email and first phone number in the document win."""
    contact = ContactInfo()

    email_match = EMAIL_PATTERN.search(text)
    if email_match:
        contact.email = email_match.group(0)

    phone_match = PHONE_PATTERN.search(text)
    if phone_match:
        contact.phone = phone_match.group(0)

    return contact


def extract_experience(text: str, config: ExtractionConfig = DEFAULT_CONFIG) -> List[ExperienceEntry]:
    # Only ever one entry, however many roles the section lists
    section = find_section_text(text, config.experience_headers, config.section_max_chars)
    if not section:
        return []

    years = YEAR_PATTERN.findall(section)
    if not years:
        return []

    if len(years) > 1:
        numeric = [int(year) for year in years]
        span = f"{min(numeric)} - {max(numeric)}"
    else:
        span = years[0]

    return [ExperienceEntry(
        years=span,
        description=section[:config.experience_description_chars] + "...",
    )]


def extract_education(text: str, config: ExtractionConfig = DEFAULT_CONFIG) -> List[EducationEntry]:
    section = find_section_text(text, config.education_headers, config.section_max_chars)
    if not section:
        return []

    degree_match = DEGREE_PATTERN.search(section)
    if not degree_match:
        return []

    return [EducationEntry(
        degree=degree_match.group(0),
        description=section[:config.education_description_chars] + "...",
    )]


def extract_resume_data(text: str, config: ExtractionConfig = DEFAULT_CONFIG) -> ExtractedResume:
    """
    Derive a structured candidate record from resume text.

    Pure and deterministic: the same text and config always produce the same
    record.
    """
    if not normalize_lines(text):
        return ExtractedResume()

    return ExtractedResume(
        skills=extract_skills(text, config),
        contact=extract_contact(text),
        experience=extract_experience(text, config),
        education=extract_education(text, config),
        summary="",
    )


def normalize_skill_name(skill_name: str) -> str:
    """Case-folded form used to compare skill names."""
    return skill_name.lower().strip()
