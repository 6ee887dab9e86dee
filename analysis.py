from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats


MIN_SAMPLE_SIZE = 10
MIN_NUMERIC_VALUES = 5
TOP_FREQUENT_LIMIT = 10
ALTERNATIVE_LIMIT = 4
BASE_CONFIDENCE = 60.0
MAX_CONFIDENCE = 95.0
METHOD_LABEL = "Weighted Statistical & Frequency Model"


class AnalysisError(ValueError):
    pass


class InsufficientDataError(AnalysisError):
    pass


class EmptyInputError(InsufficientDataError):
    pass


class NonNumericDataError(AnalysisError):
    pass


@dataclass(frozen=True)
class AnalysisReport:
    statistical_summary: Dict[str, str]
    pattern_analysis: Dict[str, Any]
    prediction_output: Dict[str, Any]
    detailed_explanation: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statistical_summary": dict(self.statistical_summary),
            "pattern_analysis": dict(self.pattern_analysis),
            "prediction_output": dict(self.prediction_output),
            "detailed_explanation": dict(self.detailed_explanation),
        }


def confidence_for(sample_size: int) -> float:
    return min(BASE_CONFIDENCE + (sample_size / 100.0 * 20.0), MAX_CONFIDENCE)


def rank_frequencies(values: Sequence[str]) -> List[Tuple[str, int]]:
    """Distinct values by count, highest first; ties keep first-seen order."""
    # most_common() sorts stably over insertion order
    return Counter(values).most_common()


def positional_digit_frequency(values: Sequence[str]) -> List[Dict[str, Any]]:
    positions: Dict[int, Counter] = {}
    for value in values:
        for index, char in enumerate(value):
            positions.setdefault(index, Counter())[char] += 1

    out: List[Dict[str, Any]] = []
    for index in sorted(positions):
        digit, count = positions[index].most_common(1)[0]
        out.append({"position": index + 1, "digit": digit, "count": count})
    return out


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _normalize_input(numbers: Sequence[str]) -> List[str]:
    # blanks are kept and read as non-numeric
    return [str(item).strip() for item in numbers or []]


def _skewness(mean: float, std_dev: float) -> float:
    if std_dev <= 0:
        return 0.0
    skew = float(stats.norm(loc=mean, scale=std_dev).stats(moments="s"))
    return skew if math.isfinite(skew) else 0.0


def analyze_numbers(numbers: Sequence[str]) -> AnalysisReport:
    """Build the statistics, frequency patterns and mode-based prediction.

    Raises ``EmptyInputError`` for no input, ``InsufficientDataError`` for
    fewer than ten entries and ``NonNumericDataError`` when fewer than five
    entries read as numbers.
    """
    values = _normalize_input(numbers)
    if not values:
        raise EmptyInputError("No numbers were supplied for analysis.")
    if len(values) < MIN_SAMPLE_SIZE:
        raise InsufficientDataError(
            f"Insufficient data: at least {MIN_SAMPLE_SIZE} numbers are required, but only {len(values)} were given."
        )

    parsed = [_parse_number(value) for value in values]
    numeric = np.array([number for number in parsed if number is not None], dtype=float)
    if numeric.size < MIN_NUMERIC_VALUES:
        raise NonNumericDataError("The input could not be converted into valid numbers for statistical analysis.")

    mean = float(np.mean(numeric))
    median = float(np.median(numeric))
    std_dev = float(np.std(numeric, ddof=1))
    variance = float(np.var(numeric, ddof=1))
    low = float(np.min(numeric))
    high = float(np.max(numeric))
    skewness = _skewness(mean, std_dev)

    ranked = rank_frequencies(values)
    mode, mode_count = ranked[0]
    alternatives = [value for value, _count in ranked[1:1 + ALTERNATIVE_LIMIT]]
    confidence = confidence_for(len(values))

    statistical_summary = {
        "Dataset Size": str(len(values)),
        "Mean": f"{mean:.2f}",
        "Median": f"{median:.2f}",
        "Mode": mode,
        "Std. Dev.": f"{std_dev:.2f}",
        "Variance": f"{variance:.2f}",
        "Range": f"{low:.2f} - {high:.2f}",
        "Distribution Skewness": f"{skewness:.4f}",
    }

    pattern_analysis = {
        "Most Frequent Numbers": [
            {"number": value, "count": count} for value, count in ranked[:TOP_FREQUENT_LIMIT]
        ],
        "Digit & Position Analysis": positional_digit_frequency(values),
    }

    prediction_output = {
        "PREDICTION": mode,
        "CONFIDENCE": f"{confidence:.2f}%",
        "METHOD": METHOD_LABEL,
        "ALTERNATIVE_PREDICTIONS": alternatives,
    }

    share = mode_count / len(values) * 100.0
    detailed_explanation = {
        "Methodology": (
            "A blend of frequency analysis and statistical significance. The value that appears most often "
            "in its original form (the mode) carries the most weight."
        ),
        "Statistical Evidence": (
            f"'{mode}' is the mode, appearing {mode_count} times. The standard deviation of the numeric "
            f"values is {std_dev:.2f}, which describes how widely the history is spread."
        ),
        "Prediction Logic": (
            "The main prediction is the mode, the strongest indicator in this data set of a value that repeats. "
            "Alternatives are the next most frequent values."
        ),
        "Uncertainty Analysis": (
            f"Confidence is based on the sample size ({len(values)} entries) and on how prominent the mode is "
            f"({share:.1f}% of the input). The spread of the data remains a major source of uncertainty."
        ),
    }

    return AnalysisReport(
        statistical_summary=statistical_summary,
        pattern_analysis=pattern_analysis,
        prediction_output=prediction_output,
        detailed_explanation=detailed_explanation,
    )
