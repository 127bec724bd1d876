"""
Content Analyzer Engine

Four independent measurements over page text and markup:
- Readability (Flesch Reading Ease, Flesch-Kincaid grade)
- Keyword frequency and target-keyword density
- Paragraph / list structure
- Text-to-HTML ratio

The facet score is the clamped reading-ease score.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Optional

from pydantic import BaseModel, Field

from seo_info.core.dom import Document
from seo_info.core.scoring import clamp_score
from seo_info.engines.base import AnalysisEngine, FacetResult, PageContext

STOP_WORDS = {
    "the", "and", "a", "to", "of", "in", "is", "it", "that", "you",
    "for", "on", "with", "as", "are", "be", "this", "was", "have", "or", "at", "not", "your",
}

SENTENCE_SPLIT = re.compile(r"[.!?]+")
NON_WORD = re.compile(r"[^\w\s]", re.ASCII)
NON_LETTER = re.compile(r"[^a-z]")
SILENT_SUFFIX = re.compile(r"(?:[^laeiouy]|ed|[^laeiouy]e)$")
VOWEL_GROUP = re.compile(r"[aeiouy]{1,2}")

READABILITY_LEVELS = [
    (90, "Very Easy"),
    (80, "Easy"),
    (70, "Fairly Easy"),
    (60, "Standard"),
    (50, "Fairly Difficult"),
    (30, "Difficult"),
]


# ─────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────

class ReadabilityStatistics(BaseModel):
    sentence_count: int = 0
    word_count: int = 0
    syllable_count: int = 0
    average_words_per_sentence: float = 0.0
    average_syllables_per_word: float = 0.0


class ReadabilityScores(BaseModel):
    flesch_reading_ease: float = 0.0
    flesch_kincaid_grade: float = 0.0
    readability_level: str = "Very Difficult"


class Readability(BaseModel):
    statistics: ReadabilityStatistics = Field(default_factory=ReadabilityStatistics)
    scores: ReadabilityScores = Field(default_factory=ReadabilityScores)
    score: int = Field(ge=0, le=100, default=0)


class WordFrequency(BaseModel):
    word: str
    count: int
    density: str


class TargetKeyword(BaseModel):
    keyword: str
    count: int
    density: str
    sufficient: bool


class KeywordAnalysis(BaseModel):
    word_count: int = 0
    top_words: list[WordFrequency] = Field(default_factory=list)
    relevant_keywords: list[WordFrequency] = Field(default_factory=list)
    target_keywords: Optional[list[TargetKeyword]] = None


class ContentStructure(BaseModel):
    paragraph_count: int = 0
    average_paragraph_length: int = 0
    long_paragraphs: int = 0
    short_paragraphs: int = 0
    list_count: int = 0
    list_item_count: int = 0
    structure_rating: str = "Average"
    recommendations: list[str] = Field(default_factory=list)


class ContentRatio(BaseModel):
    html_size: int = 0
    text_size: int = 0
    ratio: str = "0.00%"
    rating: str = "Poor"


class ContentAnalysis(FacetResult):
    readability: Optional[Readability] = None
    keywords: Optional[KeywordAnalysis] = None
    structure: Optional[ContentStructure] = None
    content_ratio: Optional[ContentRatio] = None


# ─────────────────────────────────────────────
# Readability
# ─────────────────────────────────────────────

def count_syllables(text: str) -> int:
    """Vowel-group syllable estimate summed over whitespace-separated words."""
    count = 0
    for word in text.lower().split():
        word = NON_LETTER.sub("", word)
        if not word:
            continue
        if len(word) <= 3:
            count += 1
            continue
        word = SILENT_SUFFIX.sub("", word, count=1)
        word = re.sub(r"^y", "", word)
        groups = VOWEL_GROUP.findall(word)
        count += len(groups) if groups else 1
    return count


def readability_level(reading_ease: float) -> str:
    for threshold, label in READABILITY_LEVELS:
        if reading_ease >= threshold:
            return label
    return "Very Difficult"


def calculate_readability(text: str) -> Readability:
    clean = " ".join(text.split())
    sentences = [s for s in SENTENCE_SPLIT.split(clean) if s.strip()]
    words = clean.split()
    syllables = count_syllables(clean)

    words_per_sentence = len(words) / max(len(sentences), 1)
    syllables_per_word = syllables / max(len(words), 1)

    reading_ease = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
    grade = 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59
    bounded_ease = max(0.0, min(100.0, reading_ease))

    return Readability(
        statistics=ReadabilityStatistics(
            sentence_count=len(sentences),
            word_count=len(words),
            syllable_count=syllables,
            average_words_per_sentence=round(words_per_sentence, 1),
            average_syllables_per_word=round(syllables_per_word, 1),
        ),
        scores=ReadabilityScores(
            flesch_reading_ease=round(bounded_ease, 1),
            flesch_kincaid_grade=round(max(0.0, grade), 1),
            readability_level=readability_level(reading_ease),
        ),
        score=clamp_score(bounded_ease),
    )


# ─────────────────────────────────────────────
# Keywords
# ─────────────────────────────────────────────

def _density(count: int, total: int) -> str:
    if total == 0:
        return "0.00%"
    return f"{count / total * 100:.2f}%"


def analyze_keywords(text: str, target_keywords: list[str] | None = None) -> KeywordAnalysis:
    clean = NON_WORD.sub(" ", text.lower())
    words = clean.split()
    counts = Counter(word for word in words if len(word) >= 2)

    # Counter.most_common keeps first-seen order for ties
    top_words = [
        WordFrequency(word=word, count=count, density=_density(count, len(words)))
        for word, count in counts.most_common(20)
    ]
    relevant = [item for item in top_words if item.word not in STOP_WORDS][:10]

    targets = None
    if target_keywords:
        targets = []
        for keyword in target_keywords:
            pattern = re.compile(rf"\b{re.escape(keyword.lower())}\b", re.ASCII)
            count = len(pattern.findall(clean))
            targets.append(TargetKeyword(
                keyword=keyword,
                count=count,
                density=_density(count, len(words)),
                sufficient=count > 0,
            ))

    return KeywordAnalysis(
        word_count=len(words),
        top_words=top_words,
        relevant_keywords=relevant,
        target_keywords=targets,
    )


# ─────────────────────────────────────────────
# Structure and ratio
# ─────────────────────────────────────────────

def rate_structure(avg_length: float, long_paragraphs: int, paragraph_count: int, lists: int) -> str:
    if avg_length > 150 and long_paragraphs > 5 and lists == 0:
        return "Poor"
    if avg_length > 100 and long_paragraphs > 2:
        return "Below Average"
    if avg_length < 80 and paragraph_count > 3 and lists > 0:
        return "Good"
    if avg_length < 60 and paragraph_count > 5 and lists > 1:
        return "Excellent"
    return "Average"


def structure_recommendations(
    avg_length: float, long_paragraphs: int, paragraph_count: int, lists: int
) -> list[str]:
    recommendations = []
    if avg_length > 100:
        recommendations.append("Consider breaking long paragraphs into shorter ones for better readability.")
    if long_paragraphs > 3:
        recommendations.append("Too many long paragraphs detected. Web users prefer shorter paragraphs.")
    if paragraph_count < 3:
        recommendations.append("Add more paragraphs to properly organize your content.")
    if lists == 0:
        recommendations.append("Consider using bulleted or numbered lists to improve content scanability.")
    return recommendations


def analyze_content_structure(document: Document) -> ContentStructure:
    lengths = [len(document.text_of(p).split()) for p in document.query_all("p")]
    avg_length = sum(lengths) / max(len(lengths), 1)
    long_paragraphs = sum(1 for length in lengths if length > 150)
    lists = len(document.query_all("ul, ol"))

    return ContentStructure(
        paragraph_count=len(lengths),
        average_paragraph_length=round(avg_length),
        long_paragraphs=long_paragraphs,
        short_paragraphs=sum(1 for length in lengths if length <= 50),
        list_count=lists,
        list_item_count=len(document.query_all("li")),
        structure_rating=rate_structure(avg_length, long_paragraphs, len(lengths), lists),
        recommendations=structure_recommendations(avg_length, long_paragraphs, len(lengths), lists),
    )


def analyze_content_ratio(html: str, text: str) -> ContentRatio:
    ratio = len(text) / len(html) * 100 if html else 0.0

    if ratio < 10:
        rating = "Poor"
    elif ratio < 25:
        rating = "Average"
    elif ratio < 50:
        rating = "Good"
    else:
        rating = "Excellent"

    return ContentRatio(
        html_size=len(html),
        text_size=len(text),
        ratio=f"{ratio:.2f}%",
        rating=rating,
    )


# ─────────────────────────────────────────────
# Engine
# ─────────────────────────────────────────────

class ContentAnalyzerEngine(AnalysisEngine[ContentAnalysis]):
    """Combines the four content measurements into one facet result."""

    FACET_NAME = "content"

    def run(self, page: PageContext) -> ContentAnalysis:
        text = page.document.text()
        readability = calculate_readability(text)
        keywords = analyze_keywords(text, page.options.target_keywords)
        structure = analyze_content_structure(page.document)
        ratio = analyze_content_ratio(page.html, text)

        issues = []
        recommendations = []

        min_words = page.options.thresholds.min_words
        if keywords.word_count < min_words:
            issues.append(f"Thin content: {keywords.word_count} words (minimum recommended {min_words})")
            recommendations.append("Expand the page copy with useful, original content")

        if ratio.rating == "Poor":
            issues.append(f"Low text-to-HTML ratio ({ratio.ratio})")
            recommendations.append("Reduce markup bloat or add more visible text content")

        for target in keywords.target_keywords or []:
            if not target.sufficient:
                issues.append(f'Target keyword "{target.keyword}" not found in page content')
                recommendations.append(f'Use "{target.keyword}" naturally in headings and body text')

        recommendations.extend(structure.recommendations)

        return ContentAnalysis(
            readability=readability,
            keywords=keywords,
            structure=structure,
            content_ratio=ratio,
            issues=issues,
            recommendations=recommendations,
            score=readability.score,
        )
