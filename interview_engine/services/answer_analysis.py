"""
Text heuristics over candidate answers.

`analyze_answer_quality` drives question difficulty; `communication_score`
feeds the communication sub-score at completion.
"""
import re

from interview_engine.utils.enums import AnswerQuality

STRUCTURE_RE = re.compile(r"\n|bullet|point|first|second|finally")
DEPTH_RE = re.compile(r"because|therefore|however|specifically|implementation")
EXAMPLE_RE = re.compile(r"example|instance|such as|like")
CODE_RE = re.compile(r"```|code|function|class|method")

FILLER_WORDS = ["um", "uh", "like", "you know", "basically"]
BULLET_MARKERS = ("\n", "•")


def analyze_answer_quality(answer: str) -> dict:
    text = (answer or "").lower()
    metrics = {
        "length": len(answer or ""),
        "has_structure": bool(STRUCTURE_RE.search(text)),
        "has_technical_depth": bool(DEPTH_RE.search(text)),
        "has_examples": bool(EXAMPLE_RE.search(text)),
        "has_code": bool(CODE_RE.search(text)),
    }

    score = 0
    if metrics["length"] > 100:
        score += 20
    if metrics["length"] > 200:
        score += 10
    if metrics["has_structure"]:
        score += 20
    if metrics["has_technical_depth"]:
        score += 25
    if metrics["has_examples"]:
        score += 15
    if metrics["has_code"]:
        score += 10
    score = min(score, 100)

    return {
        "score": score,
        "quality": quality_label(score).value,
        "metrics": metrics,
    }


def quality_label(score: int) -> AnswerQuality:
    if score >= 70:
        return AnswerQuality.EXCELLENT
    if score >= 50:
        return AnswerQuality.GOOD
    if score >= 30:
        return AnswerQuality.FAIR
    return AnswerQuality.POOR


def count_filler_words(answer: str) -> int:
    # substring occurrences, so "like" also matches inside "likely"
    text = (answer or "").lower()
    return sum(text.count(word) for word in FILLER_WORDS)


def communication_score(answer: str) -> int:
    text = answer or ""
    score = 50

    word_count = len(text.split())
    if 30 <= word_count <= 200:
        score += 20
    elif word_count < 10:
        score -= 20

    if any(marker in text for marker in BULLET_MARKERS):
        score += 15

    if count_filler_words(text) < 3:
        score += 15

    return min(100, max(0, score))
