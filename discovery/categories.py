"""Resource category catalog and keyword classification."""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from exceptions import ValidationError

CLASSIFY_KEYWORD_LIMIT = 10


class ResourceCategory(str, Enum):
    """Fixed resource categories.

    Declaration order is significant: classification walks the members in
    this order and the first match wins.
    """

    ALL = "All Resources"
    SHELTER = "Shelter & Housing"
    FOOD = "Food & Meals"
    HEALTHCARE = "Healthcare"
    MENTAL_HEALTH = "Mental Health"
    SUBSTANCE_SUPPORT = "Substance Support"
    CRISIS = "Crisis Services"
    LEGAL_AID = "Legal Aid"
    IMMIGRATION = "Immigration Help"
    FINANCIAL = "Financial Assistance"
    EMPLOYMENT = "Employment"
    EDUCATION = "Education"
    TRANSPORTATION = "Transportation"
    FAMILY = "Family Services"
    VETERANS = "Veterans Services"
    LGBTQ = "LGBTQ+ Support"
    YOUTH_SERVICES = "Youth Services"
    DOMESTIC_VIOLENCE = "Domestic Violence"
    SUPPORT = "Support"
    CHILDCARE = "Childcare"
    CLOTHING = "Clothing"
    SENIORS = "Seniors"
    DISABILITIES = "Disabilities"
    ADDICTION = "Addiction"
    WOMEN = "Women"
    MEN = "Men"

    @property
    def id(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.value

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def search_keywords(self) -> List[str]:
        return list(_KEYWORDS[self])

    def top_keywords(self, count: int) -> List[str]:
        return list(_KEYWORDS[self][:count])

    @classmethod
    def from_key(cls, value: str) -> "ResourceCategory":
        """Resolve a member name ("mental_health") or raw label ("Mental Health")."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValidationError("Category is required")
        normalized = re.sub(r"[^a-z0-9]+", "_", cleaned.lower()).strip("_")
        for category in cls:
            if category.key == normalized or category.value.lower() == cleaned.lower():
                return category
        raise ValidationError("Unknown category", detail={"category": value})

    @classmethod
    def searchable(cls) -> List["ResourceCategory"]:
        """Every category except the catch-all, in declaration order."""
        return [category for category in cls if category is not cls.ALL]


_ICONS: Dict[ResourceCategory, str] = {
    ResourceCategory.ALL: "square.grid.2x2.fill",
    ResourceCategory.SHELTER: "house.fill",
    ResourceCategory.FOOD: "fork.knife",
    ResourceCategory.HEALTHCARE: "cross.fill",
    ResourceCategory.MENTAL_HEALTH: "brain.head.profile",
    ResourceCategory.SUBSTANCE_SUPPORT: "pills.fill",
    ResourceCategory.CRISIS: "exclamationmark.triangle.fill",
    ResourceCategory.LEGAL_AID: "building.columns.fill",
    ResourceCategory.IMMIGRATION: "globe",
    ResourceCategory.FINANCIAL: "dollarsign.circle.fill",
    ResourceCategory.EMPLOYMENT: "briefcase.fill",
    ResourceCategory.EDUCATION: "book.fill",
    ResourceCategory.TRANSPORTATION: "bus.fill",
    ResourceCategory.FAMILY: "figure.2.and.child.holdinghands",
    ResourceCategory.VETERANS: "shield.fill",
    ResourceCategory.LGBTQ: "heart.fill",
    ResourceCategory.YOUTH_SERVICES: "figure.child",
    ResourceCategory.DOMESTIC_VIOLENCE: "house.lodge",
    ResourceCategory.SUPPORT: "person.2.fill",
    ResourceCategory.CHILDCARE: "figure.and.child.holdinghands",
    ResourceCategory.CLOTHING: "tshirt.fill",
    ResourceCategory.SENIORS: "figure.roll",
    ResourceCategory.DISABILITIES: "figure.roll.runningpace",
    ResourceCategory.ADDICTION: "cross.vial.fill",
    ResourceCategory.WOMEN: "figure.dress",
    ResourceCategory.MEN: "figure",
}

_COLORS: Dict[ResourceCategory, str] = {
    ResourceCategory.ALL: "#6A89CC",
    ResourceCategory.SHELTER: "#F9844A",
    ResourceCategory.FOOD: "#4D908E",
    ResourceCategory.HEALTHCARE: "#F94144",
    ResourceCategory.MENTAL_HEALTH: "#577590",
    ResourceCategory.SUBSTANCE_SUPPORT: "#F8961E",
    ResourceCategory.CRISIS: "#E63946",
    ResourceCategory.LEGAL_AID: "#90BE6D",
    ResourceCategory.IMMIGRATION: "#0096C7",
    ResourceCategory.FINANCIAL: "#43AA8B",
    ResourceCategory.EMPLOYMENT: "#277DA1",
    ResourceCategory.EDUCATION: "#577590",
    ResourceCategory.TRANSPORTATION: "#277DA1",
    ResourceCategory.FAMILY: "#F3722C",
    ResourceCategory.VETERANS: "#1D3557",
    ResourceCategory.LGBTQ: "#F37EF9",
    ResourceCategory.YOUTH_SERVICES: "#FFC8DD",
    ResourceCategory.DOMESTIC_VIOLENCE: "#D00000",
    ResourceCategory.SUPPORT: "#4A90E2",
    ResourceCategory.CHILDCARE: "#FF6B6B",
    ResourceCategory.CLOTHING: "#FF7F50",
    ResourceCategory.SENIORS: "#DEB887",
    ResourceCategory.DISABILITIES: "#20B2AA",
    ResourceCategory.ADDICTION: "#9932CC",
    ResourceCategory.WOMEN: "#FF69B4",
    ResourceCategory.MEN: "#1E90FF",
}

_KEYWORDS: Dict[ResourceCategory, Tuple[str, ...]] = {
    ResourceCategory.ALL: (
        "help", "assistance", "resources", "support", "services", "aid",
    ),
    ResourceCategory.SHELTER: (
        "shelter", "homeless shelter", "emergency housing", "transitional housing",
        "affordable housing", "rent help", "housing assistance", "eviction",
        "women's shelter", "men's shelter", "temporary shelter",
    ),
    ResourceCategory.FOOD: (
        "food bank", "food pantry", "free meals", "soup kitchen", "meal program",
        "grocery assistance", "emergency food", "community meals", "food stamps",
        "snap benefits", "wic", "hunger",
    ),
    ResourceCategory.HEALTHCARE: (
        "free clinic", "community health", "medical care", "doctor", "health center",
        "emergency medical", "dental care", "vision care", "prescription",
        "medication assistance", "health insurance", "medicaid", "medicare",
    ),
    ResourceCategory.MENTAL_HEALTH: (
        "mental health", "counseling", "therapy", "psychiatrist", "psychologist",
        "depression", "anxiety", "trauma", "crisis counseling", "support group",
        "mental illness", "behavioral health",
    ),
    ResourceCategory.SUBSTANCE_SUPPORT: (
        "substance abuse", "addiction", "recovery", "detox", "rehab", "treatment center",
        "alcoholics anonymous", "narcotics anonymous", "sober living", "drug counseling",
        "alcohol treatment", "opioid treatment",
    ),
    ResourceCategory.CRISIS: (
        "crisis center", "suicide prevention", "crisis hotline", "emergency services",
        "crisis intervention", "disaster relief", "emergency assistance", "crisis support",
    ),
    ResourceCategory.LEGAL_AID: (
        "legal aid", "free legal", "legal assistance", "lawyer", "attorney", "legal rights",
        "legal clinic", "public defender", "legal advocacy", "law help", "court help",
        "legal services", "tenant rights", "consumer rights",
    ),
    ResourceCategory.IMMIGRATION: (
        "immigration services", "immigrant rights", "refugee", "asylum", "immigration lawyer",
        "deportation", "daca", "citizenship", "green card", "visa help", "immigration legal",
        "undocumented", "migrant",
    ),
    ResourceCategory.FINANCIAL: (
        "financial assistance", "emergency cash", "bill pay assistance", "utility assistance",
        "rent assistance", "financial counseling", "debt help", "tax help", "benefits",
        "financial aid", "low income", "welfare", "financial support",
    ),
    ResourceCategory.EMPLOYMENT: (
        "job training", "employment center", "job search", "career counseling", "resume help",
        "vocational training", "workforce development", "job placement", "unemployment",
        "work program", "job skills", "job fair",
    ),
    ResourceCategory.EDUCATION: (
        "adult education", "ged program", "literacy program", "esl class",
        "educational assistance", "school supplies", "tutoring", "college access",
        "financial aid", "scholarship", "education resources", "computer training",
    ),
    ResourceCategory.TRANSPORTATION: (
        "transportation assistance", "bus pass", "reduced fare", "ride service",
        "medical transport", "free transportation", "car repair", "gas voucher", "transit",
        "ride share", "commuter assistance",
    ),
    ResourceCategory.FAMILY: (
        "family support", "childcare", "parenting classes", "family counseling",
        "child support", "family resources", "after school", "family assistance",
        "children services", "family crisis", "parent help",
    ),
    ResourceCategory.VETERANS: (
        "veteran services", "va medical center", "veteran benefits", "veteran housing",
        "veteran healthcare", "veteran employment", "military", "veteran assistance",
        "veteran support", "va hospital", "veteran counseling",
    ),
    ResourceCategory.LGBTQ: (
        "lgbtq", "lgbtq+ support", "gay", "lesbian", "transgender", "queer", "lgbtq health",
        "lgbtq youth", "lgbtq housing", "lgbtq counseling", "lgbtq center", "lgbtq resources",
    ),
    ResourceCategory.YOUTH_SERVICES: (
        "youth services", "teen center", "youth shelter", "youth program",
        "children services", "youth counseling", "after school program", "juvenile",
        "teen support", "foster youth", "runaway", "youth outreach",
    ),
    ResourceCategory.DOMESTIC_VIOLENCE: (
        "domestic violence", "abuse shelter", "women's shelter", "abuse hotline",
        "safety planning", "protective order", "family violence",
        "intimate partner violence", "abuse support", "safe house", "victim services",
        "battering",
    ),
    ResourceCategory.SUPPORT: (
        "community support center", "community center", "peer support", "drop-in center",
        "outreach center", "neighborhood center", "mutual aid", "resource center",
        "case management", "social services",
    ),
    ResourceCategory.CHILDCARE: (
        "childcare services", "daycare", "day care", "child care", "preschool",
        "head start", "early learning", "nursery", "babysitting", "infant care",
    ),
    ResourceCategory.CLOTHING: (
        "clothing donation center", "clothing bank", "free clothing", "clothes closet",
        "thrift store", "coat drive", "clothing closet", "uniform assistance",
        "shoe donation", "clothing assistance",
    ),
    ResourceCategory.SENIORS: (
        "senior services", "senior center", "elderly", "aging services", "meals on wheels",
        "retirement", "older adults", "adult day care", "senior housing", "elder care",
    ),
    ResourceCategory.DISABILITIES: (
        "disability services", "disabled", "accessibility", "independent living",
        "special needs", "wheelchair", "deaf", "blind", "vocational rehabilitation",
        "assistive technology",
    ),
    ResourceCategory.ADDICTION: (
        "addiction recovery services", "recovery center", "methadone clinic",
        "needle exchange", "harm reduction", "twelve step", "12 step",
        "recovery housing", "outpatient treatment", "sobriety",
    ),
    ResourceCategory.WOMEN: (
        "women's services center", "women's center", "women's health", "maternity",
        "pregnancy center", "prenatal", "mothers", "women's resource", "women's clinic",
        "postpartum",
    ),
    ResourceCategory.MEN: (
        "men's services support", "men's center", "men's health", "fathers",
        "fatherhood program", "men's group", "men's recovery", "men's resource",
        "men's clinic", "brotherhood",
    ),
}

# Pre-built provider queries; categories without an entry search by label.
CATEGORY_QUERIES: Dict[ResourceCategory, str] = {
    ResourceCategory.SHELTER: "homeless shelter",
    ResourceCategory.FOOD: "food bank",
    ResourceCategory.HEALTHCARE: "health clinic hospital",
    ResourceCategory.MENTAL_HEALTH: "mental health services counseling",
    ResourceCategory.SUBSTANCE_SUPPORT: "addiction recovery",
    ResourceCategory.CRISIS: "crisis center hotline",
    ResourceCategory.LEGAL_AID: "legal aid services",
    ResourceCategory.IMMIGRATION: "immigrant refugee services",
    ResourceCategory.FINANCIAL: "financial assistance",
    ResourceCategory.EMPLOYMENT: "employment center job services",
    ResourceCategory.EDUCATION: "adult education center",
    ResourceCategory.TRANSPORTATION: "transportation services",
    ResourceCategory.FAMILY: "family support services",
    ResourceCategory.VETERANS: "veterans services",
    ResourceCategory.LGBTQ: "lgbtq support center",
    ResourceCategory.YOUTH_SERVICES: "youth services center",
    ResourceCategory.DOMESTIC_VIOLENCE: "domestic violence shelter",
    ResourceCategory.SUPPORT: "community support center",
    ResourceCategory.CHILDCARE: "childcare services",
    ResourceCategory.CLOTHING: "clothing donation center",
    ResourceCategory.SENIORS: "senior services assistance",
    ResourceCategory.DISABILITIES: "disability services support",
    ResourceCategory.ADDICTION: "addiction recovery services",
    ResourceCategory.WOMEN: "women's services center",
    ResourceCategory.MEN: "men's services support",
}


def category_query(category: ResourceCategory) -> str:
    return CATEGORY_QUERIES.get(category, category.value)


class Classifier(Protocol):
    def classify(self, query: str, name: str) -> ResourceCategory:
        ...


class KeywordClassifier:
    """Substring classifier over the leading keywords of each category."""

    def __init__(self, keyword_limit: int = CLASSIFY_KEYWORD_LIMIT):
        self.keyword_limit = keyword_limit

    def classify(self, query: str, name: str) -> ResourceCategory:
        lowered_query = (query or "").lower()
        lowered_name = (name or "").lower()
        for category in ResourceCategory.searchable():
            for keyword in category.top_keywords(self.keyword_limit):
                if keyword in lowered_query or keyword in lowered_name:
                    return category
        return ResourceCategory.ALL


_default_classifier = KeywordClassifier()


def classify(query: str, name: str, classifier: Optional[Classifier] = None) -> ResourceCategory:
    return (classifier or _default_classifier).classify(query, name)
