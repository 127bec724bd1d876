"""
Structured Data Analyzer Engine

Reads schema.org markup from two sources:
- JSON-LD <script type="application/ld+json"> blocks
- Microdata (itemscope / itemtype / itemprop)

Each item is validated and given a coverage score from its property count.
The combined analysis recommends SEO-critical types the page seems to need.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, Field

from seo_info.core.dom import Document, Element
from seo_info.core.scoring import average_score
from seo_info.engines.base import AnalysisEngine, FacetResult, PageContext

NO_MICRODATA_TYPE = "No type specified"

# (exclusive upper bound on property count, score, assessment)
COVERAGE_BUCKETS = [
    (1, 0, "No properties defined"),
    (3, 20, "Minimal properties defined"),
    (5, 40, "Basic properties defined"),
    (8, 60, "Good property coverage"),
    (12, 80, "Very good property coverage"),
]
FULL_COVERAGE = (100, "Excellent property coverage")

REQUIRED_PROPERTIES: dict[str, list[tuple[str, str]]] = {
    "Product": [
        ("name", "Product schema missing required property: name"),
        ("description", "Product schema missing recommended property: description"),
        ("image", "Product schema missing recommended property: image"),
        ("offers", "Product schema missing recommended property: offers"),
    ],
    "Article": [
        ("headline", "Article schema missing required property: headline"),
        ("author", "Article schema missing recommended property: author"),
        ("datePublished", "Article schema missing recommended property: datePublished"),
    ],
}
REQUIRED_PROPERTIES["BlogPosting"] = REQUIRED_PROPERTIES["Article"]


# ─────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────

class Validation(BaseModel):
    valid: bool
    issues: list[str] = Field(default_factory=list)


class Coverage(BaseModel):
    score: int
    assessment: str


class JsonLdError(BaseModel):
    index: int
    error: str


class JsonLdItem(BaseModel):
    index: int
    type: str
    valid: bool
    validation_issues: list[str] = Field(default_factory=list)
    coverage: int = 0
    coverage_assessment: str = ""
    recommendations: list[str] = Field(default_factory=list)


class JsonLdAnalysis(BaseModel):
    count: int = 0
    data: list[Any] = Field(default_factory=list)
    analysis: list[JsonLdItem] = Field(default_factory=list)
    errors: list[JsonLdError] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class MicrodataEntry(BaseModel):
    type: str = NO_MICRODATA_TYPE
    properties: dict[str, Optional[str]] = Field(default_factory=dict)


class MicrodataItem(BaseModel):
    index: int
    type: str
    property_count: int = 0
    coverage: int = 0
    coverage_assessment: str = ""
    valid: bool = False
    validation_issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class MicrodataAnalysis(BaseModel):
    count: int = 0
    data: list[MicrodataEntry] = Field(default_factory=list)
    analysis: list[MicrodataItem] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class StructuredDataAnalysis(FacetResult):
    has_structured_data: bool = False
    jsonld: JsonLdAnalysis = Field(default_factory=JsonLdAnalysis)
    microdata: MicrodataAnalysis = Field(default_factory=MicrodataAnalysis)
    implemented_types: list[str] = Field(default_factory=list)


# ─────────────────────────────────────────────
# Shared helpers
# ─────────────────────────────────────────────

def assess_coverage(property_count: int) -> Coverage:
    for upper, score, assessment in COVERAGE_BUCKETS:
        if property_count < upper:
            return Coverage(score=score, assessment=assessment)
    score, assessment = FULL_COVERAGE
    return Coverage(score=score, assessment=assessment)


def _type_name(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


# ─────────────────────────────────────────────
# JSON-LD
# ─────────────────────────────────────────────

def get_json_ld_type(data: Any) -> str:
    if not data:
        return "Unknown"
    if isinstance(data, list):
        return ", ".join(
            _type_name(item["@type"]) if isinstance(item, dict) and item.get("@type") else "Unspecified"
            for item in data
        )
    if isinstance(data, dict) and data.get("@type"):
        return _type_name(data["@type"])
    return "Unspecified"


def validate_json_ld(data: Any) -> Validation:
    if not data:
        return Validation(valid=False, issues=["Empty JSON-LD data"])

    block = data if isinstance(data, dict) else {}
    issues = []

    context = block.get("@context")
    context_text = context if isinstance(context, str) else json.dumps(context or "")
    if not context or "schema.org" not in context_text:
        issues.append("Missing or invalid @context (should be schema.org)")

    schema_type = block.get("@type")
    if not schema_type:
        issues.append("Missing @type property")

    if isinstance(schema_type, str):
        for prop, message in REQUIRED_PROPERTIES.get(schema_type, []):
            if not block.get(prop):
                issues.append(message)

    return Validation(valid=not issues, issues=issues)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a valid JSON value")


def assess_json_ld_coverage(data: Any) -> Coverage:
    if not isinstance(data, dict) or not data.get("@type"):
        return Coverage(score=0, assessment="Missing or invalid schema")
    properties = [key for key in data if key not in ("@context", "@type")]
    return assess_coverage(len(properties))


def analyze_json_ld(document: Document) -> JsonLdAnalysis:
    scripts = document.query_all('script[type="application/ld+json"]')
    blocks: list[Any] = []
    errors: list[JsonLdError] = []

    for index, script in enumerate(scripts):
        try:
            blocks.append(json.loads((script.string or "").strip(), parse_constant=_reject_constant))
        except ValueError as exc:
            errors.append(JsonLdError(index=index, error=f"Invalid JSON-LD: {exc}"))

    analysis = []
    for index, data in enumerate(blocks):
        schema_type = get_json_ld_type(data)
        validation = validate_json_ld(data)
        coverage = assess_json_ld_coverage(data)

        recommendations = [f"Fix: {issue}" for issue in validation.issues]
        if coverage.score < 60:
            recommendations.append(f"Improve your {schema_type} schema by adding more properties.")

        analysis.append(JsonLdItem(
            index=index,
            type=schema_type,
            valid=validation.valid,
            validation_issues=validation.issues,
            coverage=coverage.score,
            coverage_assessment=coverage.assessment,
            recommendations=recommendations,
        ))

    recommendations = []
    if errors:
        recommendations.append("Fix JSON-LD syntax errors to ensure proper interpretation by search engines.")
    if not blocks:
        recommendations.append(
            "Implement JSON-LD structured data to improve search engine understanding of your content."
        )
    elif len(blocks) > 5:
        recommendations.append("You have many JSON-LD blocks. Consider consolidating them if possible.")

    return JsonLdAnalysis(
        count=len(scripts),
        data=blocks,
        analysis=analysis,
        errors=errors,
        recommendations=recommendations,
    )


# ─────────────────────────────────────────────
# Microdata
# ─────────────────────────────────────────────

def _itemprop_value(prop: Element, document: Document) -> str | None:
    if prop.name == "meta":
        return prop.get("content")
    if prop.name == "img":
        return prop.get("src")
    if prop.name == "a":
        return prop.get("href")
    if prop.name == "time":
        return prop.get("datetime") or document.text_of(prop)
    return document.text_of(prop)


def validate_microdata(item: MicrodataEntry) -> Validation:
    issues = []
    if not item.type or item.type == NO_MICRODATA_TYPE:
        issues.append("Missing itemtype attribute")
    elif "schema.org" not in item.type:
        issues.append("itemtype should reference schema.org")

    if not item.properties:
        issues.append("No itemprop attributes found")

    return Validation(valid=not issues, issues=issues)


def analyze_microdata(document: Document) -> MicrodataAnalysis:
    elements = document.query_all("[itemscope]")
    items = []
    for element in elements:
        properties = {}
        for prop in element.select("[itemprop]"):
            properties[prop.get("itemprop")] = _itemprop_value(prop, document)
        items.append(MicrodataEntry(
            type=element.get("itemtype") or NO_MICRODATA_TYPE,
            properties=properties,
        ))

    analysis = []
    for index, item in enumerate(items):
        coverage = assess_coverage(len(item.properties))
        validation = validate_microdata(item)

        recommendations = [f"Fix: {issue}" for issue in validation.issues]
        if coverage.score < 60:
            type_name = item.type.split("/")[-1]
            recommendations.append(f"Add more properties to your {type_name} microdata to improve coverage.")

        analysis.append(MicrodataItem(
            index=index,
            type=item.type,
            property_count=len(item.properties),
            coverage=coverage.score,
            coverage_assessment=coverage.assessment,
            valid=validation.valid,
            validation_issues=validation.issues,
            recommendations=recommendations,
        ))

    if items:
        recommendations = ["Consider converting microdata to JSON-LD format, which is preferred by Google."]
    else:
        recommendations = ["No microdata found. Consider implementing structured data (preferably JSON-LD)."]

    return MicrodataAnalysis(
        count=len(elements),
        data=items,
        analysis=analysis,
        recommendations=recommendations,
    )


# ─────────────────────────────────────────────
# Combined analysis
# ─────────────────────────────────────────────

def get_implemented_schema_types(jsonld: JsonLdAnalysis, microdata: MicrodataAnalysis) -> list[str]:
    types: dict[str, None] = {}

    for data in jsonld.data:
        candidates = data if isinstance(data, list) else [data]
        for item in candidates:
            if isinstance(item, dict) and item.get("@type"):
                types[_type_name(item["@type"])] = None

    for item in microdata.data:
        if item.type and item.type != NO_MICRODATA_TYPE:
            type_name = item.type.split("/")[-1]
            if type_name:
                types[type_name] = None

    return list(types)


def analyze_structured_data(document: Document) -> StructuredDataAnalysis:
    jsonld = analyze_json_ld(document)
    microdata = analyze_microdata(document)

    has_structured_data = jsonld.count > 0 or microdata.count > 0
    types = get_implemented_schema_types(jsonld, microdata)

    recommendations = []
    if not has_structured_data:
        recommendations.append(
            "No structured data found. Consider implementing JSON-LD for better search engine visibility."
        )
    if not {"Organization", "LocalBusiness"} & set(types):
        recommendations.append(
            "No Organization schema found. Add this to improve your brand presence in search results."
        )
    if "BreadcrumbList" not in types and document.query_all("nav, ol, ul"):
        recommendations.append(
            "Consider adding BreadcrumbList schema to enhance navigation display in search results."
        )
    if document.query_all("article, .article, .post") and not {"Article", "NewsArticle", "BlogPosting"} & set(types):
        recommendations.append(
            "Content appears to be an article. Add Article schema type to improve visibility in search."
        )
    if document.query_all('.product, [id*="product"]') and "Product" not in types:
        recommendations.append("Page may contain product information. Consider adding Product schema.")
    if document.query_all("q, blockquote, .faq, .question") and "FAQPage" not in types:
        recommendations.append(
            "Page may contain FAQ content. Consider adding FAQPage schema to be eligible for rich results."
        )

    issues = [error.error for error in jsonld.errors]
    issues += [issue for item in jsonld.analysis for issue in item.validation_issues]
    coverages = [item.coverage for item in jsonld.analysis] + [item.coverage for item in microdata.analysis]

    return StructuredDataAnalysis(
        has_structured_data=has_structured_data,
        jsonld=jsonld,
        microdata=microdata,
        implemented_types=types,
        issues=issues,
        recommendations=recommendations,
        score=average_score(coverages),
    )


class SchemaAnalyzerEngine(AnalysisEngine[StructuredDataAnalysis]):

    FACET_NAME = "schema"

    def run(self, page: PageContext) -> StructuredDataAnalysis:
        return analyze_structured_data(page.document)
